import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.realtime import router as realtime_router
from app.api.v1.appointments import router as appointments_router
from app.api.v1.bookings import router as bookings_router
from app.core.config import settings
from app.wiring.dependencies import close_marketplace


class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in ("session_id", "appointment_id", "step", "stylist_id", "count", "reason", "error"):
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


handler = logging.StreamHandler()
handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

root = logging.getLogger()
root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)


@asynccontextmanager
async def lifespan(_: FastAPI):
    yield
    await close_marketplace()


app = FastAPI(title="Stylist Booking", version="1.0.0", lifespan=lifespan)

app.include_router(bookings_router, prefix="/v1", tags=["bookings"])
app.include_router(appointments_router, prefix="/v1", tags=["appointments"])
app.include_router(realtime_router, tags=["realtime"])


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
