import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .config import settings
from .redis_client import redis_client
from .routers import appointments, closing_days, forms, slots
from .services.slots import SlotError

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Appointment Slots API")

app.include_router(forms.router)
app.include_router(slots.router)
app.include_router(closing_days.router)
app.include_router(appointments.router)


@app.exception_handler(SlotError)
async def slot_error_handler(request: Request, exc: SlotError):
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.get("/health")
def health():
    return {"redis": redis_client.ping()}
