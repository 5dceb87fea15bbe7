from __future__ import annotations
import logging
import socket
import threading
from dataclasses import dataclass
from typing import BinaryIO
from urllib.parse import unquote, urlsplit

from metricwire.transport.base import WriteParams
from metricwire.transport.errors import DialError, ParseError, ResolveError, SizeMismatchError

logger = logging.getLogger(__name__)

# reasonable default for packets that may travel over the internet
UDP_PAYLOAD_SIZE = 512


@dataclass(frozen=True)
class UdpConfig:
    # "udp://host:port" or "udp://[ipv6-host%zone]:port"
    url: str
    # size of the scratch buffer used by write_stream; <= 0 means UDP_PAYLOAD_SIZE
    payload_size: int = 0


def _split_url(url: str) -> tuple[str, str | None, int | None]:
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError as e:
        raise ParseError(url, e) from e

    if parts.scheme != "udp":
        raise ParseError(url, f"unsupported scheme {parts.scheme!r}, expected 'udp'")

    netloc = parts.netloc.rpartition("@")[2]
    host = parts.hostname
    if host and "%" in host:
        if "[" not in netloc:
            raise ParseError(url, "percent sign outside an IPv6 zone")
        # hostname lowercases the zone id, take it verbatim from the netloc
        host = unquote(netloc[netloc.index("[") + 1:netloc.index("]")])
    return netloc, host, port


def _resolve(netloc: str, host: str | None, port: int | None) -> tuple:
    if not host:
        raise ResolveError(netloc, "missing host in address")
    if port is None:
        raise ResolveError(netloc, "missing port in address")
    try:
        infos = socket.getaddrinfo(host, port, type=socket.SOCK_DGRAM)
    except (OSError, UnicodeError) as e:
        raise ResolveError(netloc, e) from e
    if not infos:
        raise ResolveError(netloc, "no addresses found")
    return infos[0]


class UdpClient:
    """
    Datagram output transport.

    The socket is resolved and connected eagerly in the constructor, so a
    live instance is always ready to send. Delivery is best effort: a
    successful write only means the local socket accepted the bytes.

    write/write_with_params may be called from several threads. write_stream
    holds an internal lock for the whole copy since it reuses one scratch
    buffer; interleaving it with plain writes from other threads gives no
    ordering guarantee.
    """

    def __init__(self, config: UdpConfig):
        netloc, host, port = _split_url(config.url)
        family, sock_type, proto, _, sockaddr = _resolve(netloc, host, port)

        sock = None
        try:
            sock = socket.socket(family, sock_type, proto)
            sock.connect(sockaddr)
        except OSError as e:
            if sock is not None:
                sock.close()
            addr = f"[{sockaddr[0]}]:{sockaddr[1]}" if family == socket.AF_INET6 else f"{sockaddr[0]}:{sockaddr[1]}"
            raise DialError(addr, e) from e

        size = config.payload_size if config.payload_size > 0 else UDP_PAYLOAD_SIZE
        self._sock = sock
        self._address = sockaddr
        self._buffer = bytearray(size)
        self._lock = threading.Lock()
        logger.debug("dialed udp %s (payload_size=%d)", sockaddr, size)

    def __enter__(self) -> UdpClient:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    @property
    def payload_size(self) -> int:
        return len(self._buffer)

    @property
    def remote_address(self) -> tuple:
        return self._address

    def query(self, command: str) -> None:
        """UDP has no request/response channel; this never does anything."""
        return None

    def write(self, data: bytes) -> int:
        # one send, one datagram. oversized data fails in the kernel, it is not chunked here.
        return self._sock.send(data)

    def write_with_params(self, data: bytes, params: WriteParams) -> int:
        """
        Same as write(). params are ignored: retention policy, precision and
        the like have no meaning for the datagram transport.
        """
        return self.write(data)

    def write_stream(self, reader: BinaryIO, size: int) -> int:
        """
        Copy reader to the socket through the scratch buffer, one datagram per
        chunk. Only safe when the receiver can parse each chunk on its own
        (e.g. newline delimited records sized under payload_size).

        Raises SizeMismatchError when the total written differs from size. If
        the copy fails part way through, the SizeMismatchError carries the
        bytes written so far and chains the underlying error.
        """
        written = 0
        with self._lock:
            with memoryview(self._buffer) as view:
                try:
                    while True:
                        n = self._read_chunk(reader, view)
                        if not n:
                            break
                        sent = self._sock.send(view[:n])
                        written += sent
                        if sent != n:
                            break
                except Exception as e:
                    if written != size:
                        raise SizeMismatchError(size, written) from e
                    raise

        if written != size:
            raise SizeMismatchError(size, written)
        logger.debug("streamed %d bytes to %s", written, self._address)
        return written

    def write_stream_with_params(self, reader: BinaryIO, size: int, params: WriteParams) -> int:
        """Same as write_stream(); params are ignored by the UDP client."""
        return self.write_stream(reader, size)

    def close(self) -> None:
        # writes after close raise OSError (bad file descriptor)
        self._sock.close()
        logger.debug("closed udp %s", self._address)

    @staticmethod
    def _read_chunk(reader: BinaryIO, view: memoryview) -> int:
        readinto = getattr(reader, "readinto", None)
        if readinto is not None:
            return readinto(view) or 0
        chunk = reader.read(len(view))
        if not chunk:
            return 0
        view[:len(chunk)] = chunk
        return len(chunk)


def new_udp(config: UdpConfig) -> UdpClient:
    return UdpClient(config)
