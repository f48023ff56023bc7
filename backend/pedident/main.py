import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from pedident.core.settings import settings, validate_settings
from pedident.db.session import engine
from pedident.models import Base
from pedident.routers.charting_sessions import router as charting_sessions_router
from pedident.routers.dental_charts import router as dental_charts_router
from pedident.routers.patients import router as patients_router
from pedident.services.charting_keymap import load_key_bindings
from pedident.services.charting_registry import ChartingSessionRegistry

app = FastAPI(title="Pedident Dental Charting API", version="0.1.0")
logger = logging.getLogger("pedident.startup")


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    request_id = request.headers.get("x-request-id")
    logger.exception("Unhandled server error", extra={"request_id": request_id})
    payload = {"detail": "Internal server error"}
    if request_id:
        payload["request_id"] = request_id
    return JSONResponse(status_code=500, content=payload)


@app.on_event("startup")
def startup():
    validate_settings(settings)
    Base.metadata.create_all(bind=engine)
    bindings = load_key_bindings(settings.keymap_path)
    app.state.charting_registry = ChartingSessionRegistry(
        limit=settings.session_limit, key_bindings=bindings
    )
    logger.info(
        "Charting ready (%s key bindings, session limit %s).", len(bindings), settings.session_limit
    )


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(patients_router)
app.include_router(dental_charts_router)
app.include_router(charting_sessions_router)
