import logging

from fastapi import FastAPI

from relay_control.api.routes.config import router as config_router
from relay_control.api.routes.dkim import router as dkim_router
from relay_control.api.routes.dmarc import router as dmarc_router
from relay_control.api.routes.warmup import router as warmup_router

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

app = FastAPI(title="Relay Control API")

@app.get("/health")
def health():
    return {"status": "ok"}

app.include_router(config_router)
app.include_router(warmup_router)
app.include_router(dkim_router)
app.include_router(dmarc_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host="127.0.0.1",
        port=8000,
        log_level="info"
    )
