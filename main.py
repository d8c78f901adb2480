import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import CORS_ORIGINS
from database.connection import Base, engine
import models  # registers every model on Base.metadata
from services import reconciliation_scheduler
from utils.errors import ReservationError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logger.info("[OK] Tables created (or already existed)")
    reconciliation_scheduler.start_scheduler()
    yield
    reconciliation_scheduler.stop_scheduler()


app = FastAPI(title="Hotel Reservation Core", lifespan=lifespan)

origins = [o.strip() for o in CORS_ORIGINS.split(",") if o.strip()] or [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ReservationError)
async def reservation_error_handler(request: Request, exc: ReservationError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


from endpoints import availability, reservations, payments, block_bookings, reports
app.include_router(availability.router)
app.include_router(reservations.router)
app.include_router(payments.router)
app.include_router(block_bookings.router)
app.include_router(reports.router)


@app.get("/health")
def health():
    return {"status": "ok", "scheduler": reconciliation_scheduler.get_status()["scheduler_running"]}
