import logging
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import datetime, timezone, date as _date
from typing import Optional

from fastapi import FastAPI, Depends, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from sqlalchemy.orm import Session

import config
import storage
from bonus import compute_bonus, summarize_records
from database import get_db, init_db
from routers import tracking_records as tracking_router
from routers import customer_reports as customer_reports_router
from routers import calendly as calendly_router

logging.basicConfig(level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Report Tracker started.")
    yield


app = FastAPI(title="Report Tracker", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(tracking_router.router, prefix="/api")
app.include_router(customer_reports_router.router, prefix="/api")
app.include_router(calendly_router.router, prefix="/api")

# --- Pydantic Models ---
class BonusOut(BaseModel):
    scheduled: int
    reported: int
    percentage: float
    rate: int
    total: int
    tier: Optional[str]

# --- API Endpoints ---
@app.get("/health")
def health():
    return {"status": "OK", "timestamp": datetime.now(timezone.utc).isoformat()}

@app.get("/api/bonus", response_model=BonusOut, tags=["Dashboard"])
def get_bonus(scheduled: int = Query(ge=0), reported: int = Query(ge=0)):
    result = compute_bonus(scheduled, reported)
    return BonusOut(scheduled=scheduled, reported=reported, **asdict(result))

@app.get("/api/summary", tags=["Dashboard"])
def get_summary(
    start_date: Optional[_date] = None,
    end_date: Optional[_date] = None,
    db: Session = Depends(get_db),
):
    if start_date and end_date and start_date > end_date:
        raise HTTPException(status_code=400, detail="start_date must be on or before end_date")
    records = storage.list_tracking_records(db, start_date, end_date)
    return summarize_records(records)
