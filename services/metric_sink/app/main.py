import asyncio
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from services.metric_sink.app.core.store import SinkModel

HTTP_HOST = os.getenv("SINK_HTTP_HOST", "127.0.0.1")
HTTP_PORT = int(os.getenv("SINK_HTTP_PORT", "8086"))

logger = logging.getLogger("metric_sink")

MODEL = SinkModel()

class UdpProto(asyncio.DatagramProtocol):
    def connection_made(self, transport):
        self.transport = transport

    def datagram_received(self, data: bytes, addr):
        # best effort, just like a real listener under load
        if MODEL.faults.should_drop():
            return
        MODEL.add("udp", data)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # read at startup so tests can pick an ephemeral port (SINK_UDP_PORT=0)
    host = os.getenv("SINK_UDP_HOST", "127.0.0.1")
    port = int(os.getenv("SINK_UDP_PORT", "8089"))

    loop = asyncio.get_running_loop()
    transport, _ = await loop.create_datagram_endpoint(UdpProto, local_addr=(host, port))
    app.state.udp_transport = transport
    logger.info("udp listener on %s", transport.get_extra_info("sockname"))
    try:
        yield
    finally:
        transport.close()

app = FastAPI(title="Metric Sink", version="0.1.0", lifespan=lifespan)

class FaultsIn(BaseModel):
    drop_rate: float = Field(0.0, ge=0.0, le=1.0)
    fail_writes: int = Field(0, ge=0, le=1000)

@app.get("/health")
def health(request: Request):
    sockname = request.app.state.udp_transport.get_extra_info("sockname")
    return {
        "status": "ok",
        "udp_host": sockname[0],
        "udp_port": sockname[1],
        "reset_count": MODEL.reset_count,
    }

@app.get("/ping")
def ping():
    return Response(status_code=204)

@app.post("/query")
def query(q: str = "", db: str = ""):
    if not q:
        return JSONResponse(status_code=400, content={"error": 'missing required parameter "q"'})

    statement = q.strip()
    upper = statement.upper()
    if upper.startswith("CREATE DATABASE "):
        MODEL.databases.add(statement[len("CREATE DATABASE "):].strip().strip('"'))
        return {"results": [{"statement_id": 0}]}
    if upper == "SHOW DATABASES":
        values = [[name] for name in sorted(MODEL.databases)]
        return {"results": [{"statement_id": 0, "series": [
            {"name": "databases", "columns": ["name"], "values": values}
        ]}]}
    return {"results": [{"statement_id": 0, "error": f"unsupported statement: {statement}"}]}

@app.post("/write")
async def write(request: Request, db: str = "", rp: str = "", precision: str = "", consistency: str = ""):
    if MODEL.faults.take_write_failure():
        raise HTTPException(status_code=500, detail="injected write failure")
    if not db:
        return JSONResponse(status_code=400, content={"error": "database is required"})
    if db not in MODEL.databases:
        return JSONResponse(status_code=404, content={"error": f'database not found: "{db}"'})

    body = await request.body()
    params = {"db": db, "rp": rp, "precision": precision, "consistency": consistency}
    MODEL.add("http", body, {k: v for k, v in params.items() if v})
    return Response(status_code=204)

@app.get("/received")
def received(transport: str | None = None):
    return [
        {
            "transport": r.transport,
            "payload": r.payload.decode("utf-8", errors="backslashreplace"),
            "size": len(r.payload),
            "params": r.params,
        }
        for r in MODEL.received(transport)
    ]

@app.post("/control/reset")
def reset():
    MODEL.reset()
    return {"status": "reset", "reset_count": MODEL.reset_count}

@app.post("/control/faults")
def set_faults(f: FaultsIn):
    MODEL.faults.drop_rate = f.drop_rate
    MODEL.faults.fail_writes = f.fail_writes
    return {"status": "faults_updated", "faults": f.model_dump()}

@app.get("/control/faults")
def get_faults():
    return {
        "drop_rate": MODEL.faults.drop_rate,
        "fail_writes": MODEL.faults.fail_writes,
    }

if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host=HTTP_HOST, port=HTTP_PORT, reload=False)
