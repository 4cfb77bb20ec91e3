import asyncio

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session
from typing import Optional, List
from datetime import date as _date

import config
import storage
import sync
from bonus import compute_bonus
from database import get_db
from models import PaymentStatus
from utils import business_today, next_working_day

router = APIRouter()

_LEGACY_PAYMENT_STATUS = {label: status for status, label in config.PAYMENT_STATUS_LABELS.items()}

# --- Pydantic Models ---
class TrackingRecordFields(BaseModel):
    scheduled_customers: Optional[int] = Field(default=None, ge=0)
    reported_customers: Optional[int] = Field(default=None, ge=0)
    closed_customers: Optional[int] = Field(default=None, ge=0)
    payment_status: Optional[PaymentStatus] = None

    @field_validator("payment_status", mode="before")
    @classmethod
    def accept_legacy_label(cls, value):
        # "chưa pay" / "đã pay" from the old spreadsheet
        if isinstance(value, str):
            return _LEGACY_PAYMENT_STATUS.get(value.strip(), value)
        return value

class TrackingRecordCreate(TrackingRecordFields):
    date: Optional[_date] = None

class TrackingRecordUpdate(TrackingRecordFields):
    date: Optional[_date] = None

class TrackingRecordOut(BaseModel):
    id: int
    date: _date
    scheduled_customers: int
    reported_customers: int
    closed_customers: int
    payment_status: PaymentStatus
    percentage: float
    bonus_rate: int
    total_bonus: int
    tier: Optional[str]

class ReconcileResult(BaseModel):
    updated: int

class PaymentCheckResult(BaseModel):
    date: _date
    checked: bool
    first_time_payments: int


def _serialize(record) -> TrackingRecordOut:
    bonus = compute_bonus(record.scheduled_customers, record.reported_customers)
    return TrackingRecordOut(
        id=record.id,
        date=record.date,
        scheduled_customers=record.scheduled_customers,
        reported_customers=record.reported_customers,
        closed_customers=record.closed_customers,
        payment_status=record.payment_status,
        percentage=bonus.percentage,
        bonus_rate=bonus.rate,
        total_bonus=bonus.total,
        tier=bonus.tier,
    )


# --- API Endpoints ---
@router.get("/tracking-records", response_model=List[TrackingRecordOut], tags=["Tracking"])
def list_tracking_records(
    start_date: Optional[_date] = None,
    end_date: Optional[_date] = None,
    db: Session = Depends(get_db),
):
    return [_serialize(r) for r in storage.list_tracking_records(db, start_date, end_date)]

@router.get("/tracking-records/{record_id}", response_model=TrackingRecordOut, tags=["Tracking"])
def get_tracking_record(record_id: int, db: Session = Depends(get_db)):
    record = storage.get_tracking_record(db, record_id)
    if not record:
        raise HTTPException(status_code=404, detail="Record not found")
    return _serialize(record)

@router.post("/tracking-records", response_model=TrackingRecordOut, status_code=201, tags=["Tracking"])
def create_tracking_record(payload: TrackingRecordCreate, db: Session = Depends(get_db)):
    fields = payload.model_dump(exclude_none=True)
    if "date" not in fields:
        # Default to the working day after the latest record.
        latest = storage.list_tracking_records(db)
        fields["date"] = next_working_day(latest[0].date) if latest else business_today()
    return _serialize(storage.create_tracking_record(db, fields))

@router.patch("/tracking-records/{record_id}", response_model=TrackingRecordOut, tags=["Tracking"])
def update_tracking_record(record_id: int, payload: TrackingRecordUpdate, db: Session = Depends(get_db)):
    fields = payload.model_dump(exclude_unset=True)
    if any(value is None for value in fields.values()):
        raise HTTPException(status_code=422, detail="Fields cannot be set to null")
    record = storage.update_tracking_record(db, record_id, fields)
    if not record:
        raise HTTPException(status_code=404, detail="Record not found")
    return _serialize(record)

@router.delete("/tracking-records/{record_id}", status_code=204, tags=["Tracking"])
def delete_tracking_record(record_id: int, db: Session = Depends(get_db)):
    try:
        deleted = storage.delete_tracking_record(db, record_id)
    except storage.StorageError as e:
        raise HTTPException(status_code=500, detail=str(e))
    if not deleted:
        raise HTTPException(status_code=404, detail="Record not found")
    return Response(status_code=204)

# Plain `def` handlers run in the threadpool, so the session work stays off the
# event loop; asyncio.run drives the async API clients inside that thread.
@router.post("/tracking-records/create-for-date", tags=["Sync"])
def create_for_date(target_date: Optional[_date] = Query(default=None, alias="date"), db: Session = Depends(get_db)):
    """Runs the daily sync job for `target_date` (default: today in the business time zone)."""
    return asyncio.run(sync.run_daily_sync(db, target_date))

@router.post("/sync", response_model=ReconcileResult, tags=["Sync"])
def sync_tracking_records(db: Session = Depends(get_db)):
    return ReconcileResult(updated=sync.reconcile_tracking_records(db))

@router.post("/check-payments", response_model=PaymentCheckResult, tags=["Sync"])
def check_payments(target_date: Optional[_date] = Query(default=None, alias="date"), db: Session = Depends(get_db)):
    target_date = target_date or business_today()
    first_time = asyncio.run(sync.run_stripe_step(db, target_date))
    return PaymentCheckResult(
        date=target_date,
        checked=first_time is not None,
        first_time_payments=first_time or 0,
    )
