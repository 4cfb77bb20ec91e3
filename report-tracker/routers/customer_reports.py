from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session
from typing import Optional, List
from datetime import date as _date, datetime

import storage
from database import get_db
from utils import split_import_text

router = APIRouter()

# --- Pydantic Models ---
class CustomerReportCreate(BaseModel):
    customer_name: str = Field(min_length=1)
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    appointment_time: Optional[str] = None
    report_sent: bool = False
    report_received_date: Optional[_date] = None
    customer_date: _date
    tracking_record_id: Optional[int] = None

class CustomerReportUpdate(BaseModel):
    customer_name: Optional[str] = Field(default=None, min_length=1)
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    appointment_time: Optional[str] = None
    report_sent: Optional[bool] = None
    report_received_date: Optional[_date] = None
    customer_date: Optional[_date] = None
    tracking_record_id: Optional[int] = None

class CustomerReportOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    customer_name: str
    customer_email: Optional[str]
    customer_phone: Optional[str]
    appointment_time: Optional[str]
    report_sent: bool
    report_received_date: Optional[_date]
    customer_date: _date
    tracking_record_id: Optional[int]
    created_at: Optional[datetime]

class TextImport(BaseModel):
    text: str
    customer_date: _date
    tracking_record_id: Optional[int] = None

# Columns that must keep a value once set.
_REQUIRED_FIELDS = {"customer_name", "report_sent", "customer_date"}


def _check_tracking_record(db: Session, record_id: Optional[int]):
    if record_id is not None and not storage.get_tracking_record(db, record_id):
        raise HTTPException(status_code=422, detail=f"Tracking record {record_id} does not exist")


# --- API Endpoints ---
@router.get("/customer-reports", response_model=List[CustomerReportOut], tags=["Customer Reports"])
def list_customer_reports(
    customer_date: Optional[_date] = None,
    tracking_record_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    return storage.list_customer_reports(db, customer_date, tracking_record_id)

@router.get("/customer-reports/{report_id}", response_model=CustomerReportOut, tags=["Customer Reports"])
def get_customer_report(report_id: int, db: Session = Depends(get_db)):
    report = storage.get_customer_report(db, report_id)
    if not report:
        raise HTTPException(status_code=404, detail="Customer report not found")
    return report

@router.post("/customer-reports", response_model=CustomerReportOut, status_code=201, tags=["Customer Reports"])
def create_customer_report(payload: CustomerReportCreate, db: Session = Depends(get_db)):
    fields = payload.model_dump()
    fields["customer_name"] = fields["customer_name"].strip()
    if not fields["customer_name"]:
        raise HTTPException(status_code=422, detail="customer_name cannot be blank")
    _check_tracking_record(db, fields["tracking_record_id"])
    return storage.create_customer_report(db, fields)

@router.patch("/customer-reports/{report_id}", response_model=CustomerReportOut, tags=["Customer Reports"])
def update_customer_report(report_id: int, payload: CustomerReportUpdate, db: Session = Depends(get_db)):
    fields = payload.model_dump(exclude_unset=True)
    nulled = sorted(k for k in _REQUIRED_FIELDS if k in fields and fields[k] is None)
    if nulled:
        raise HTTPException(status_code=422, detail=f"Fields cannot be set to null: {', '.join(nulled)}")
    if not storage.get_customer_report(db, report_id):
        raise HTTPException(status_code=404, detail="Customer report not found")
    _check_tracking_record(db, fields.get("tracking_record_id"))
    return storage.update_customer_report(db, report_id, fields)

@router.delete("/customer-reports/{report_id}", status_code=204, tags=["Customer Reports"])
def delete_customer_report(report_id: int, db: Session = Depends(get_db)):
    if not storage.delete_customer_report(db, report_id):
        raise HTTPException(status_code=404, detail="Customer report not found")
    return Response(status_code=204)

@router.post("/customer-reports/import-text", response_model=List[CustomerReportOut], status_code=201, tags=["Customer Reports"])
def import_customer_names(payload: TextImport, db: Session = Depends(get_db)):
    """
    Creates one customer report per name found in pasted calendar text.
    Names are split by line, comma or " and ", then cleaned and de-duplicated.
    """
    names = split_import_text(payload.text)
    if not names:
        raise HTTPException(status_code=422, detail="No customer names found in text")
    _check_tracking_record(db, payload.tracking_record_id)
    return [
        storage.create_customer_report(db, {
            "customer_name": name,
            "customer_date": payload.customer_date,
            "tracking_record_id": payload.tracking_record_id,
        })
        for name in names
    ]
