from __future__ import annotations


class MetricWireError(Exception):
    pass


class ParseError(MetricWireError):
    def __init__(self, url: str, cause: BaseException | str):
        self.url = url
        self.cause = cause
        super().__init__(f"error parsing url [{url}]: {cause}")


class ResolveError(MetricWireError):
    def __init__(self, address: str, cause: BaseException | str):
        self.address = address
        self.cause = cause
        super().__init__(f"error resolving address [{address}]: {cause}")


class DialError(MetricWireError):
    def __init__(self, address: str, cause: BaseException | str):
        self.address = address
        self.cause = cause
        super().__init__(f"error dialing address [{address}]: {cause}")


class SizeMismatchError(MetricWireError):
    """
    declared stream size did not match the bytes actually transferred.
    a short source and a short send both end up here.
    """
    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"expected to write {expected} bytes, only wrote {actual}")


class QueryError(MetricWireError):
    def __init__(self, command: str, message: str):
        self.command = command
        self.message = message
        super().__init__(f"query [{command}] failed: {message}")
