# report-tracker/storage.py
"""
CRUD operations for tracking records, customer reports and settings.

Every function takes an open SQLAlchemy session and commits its own write.
Lookups by id return None (or False for deletes) when the row is absent.
"""
import logging
from datetime import date
from typing import Optional, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models import TrackingRecord, CustomerReport, Setting, PaymentStatus

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """A write could not be completed and was rolled back."""


def _apply(obj, fields: dict):
    for key, value in fields.items():
        setattr(obj, key, value)


# ===================
# TRACKING RECORDS
# ===================

def list_tracking_records(db: Session, start_date: date = None, end_date: date = None) -> List[TrackingRecord]:
    query = db.query(TrackingRecord)
    if start_date:
        query = query.filter(TrackingRecord.date >= start_date)
    if end_date:
        query = query.filter(TrackingRecord.date <= end_date)
    return query.order_by(TrackingRecord.date.desc(), TrackingRecord.id.desc()).all()

def get_tracking_record(db: Session, record_id: int) -> Optional[TrackingRecord]:
    return db.get(TrackingRecord, record_id)

def get_tracking_record_by_date(db: Session, target_date: date) -> Optional[TrackingRecord]:
    return (
        db.query(TrackingRecord)
        .filter(TrackingRecord.date == target_date)
        .order_by(TrackingRecord.id)
        .first()
    )

def create_tracking_record(db: Session, fields: dict) -> TrackingRecord:
    record = TrackingRecord(
        scheduled_customers=0,
        reported_customers=0,
        closed_customers=0,
        payment_status=PaymentStatus.UNPAID,
    )
    _apply(record, fields)
    db.add(record)
    db.commit()
    db.refresh(record)
    return record

def update_tracking_record(db: Session, record_id: int, fields: dict) -> Optional[TrackingRecord]:
    record = get_tracking_record(db, record_id)
    if not record:
        return None
    _apply(record, fields)
    db.commit()
    db.refresh(record)
    return record

def delete_tracking_record(db: Session, record_id: int) -> bool:
    """
    Deletes a tracking record together with its customer reports.

    Unlinked reports on the same date are removed along with the linked ones,
    all in one transaction. Raises StorageError after rolling back if any
    statement fails.
    """
    record = get_tracking_record(db, record_id)
    if not record:
        return False

    try:
        unlinked = (
            db.query(CustomerReport)
            .filter(
                CustomerReport.tracking_record_id.is_(None),
                CustomerReport.customer_date == record.date,
            )
            .delete()
        )
        deleted_reports = unlinked + len(record.customer_reports)
        # Linked reports go through the relationship cascade.
        db.delete(record)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to delete tracking record {record_id}: {e}")
        raise StorageError(f"Could not delete tracking record {record_id}.") from e

    logger.info(f"Deleted tracking record {record_id} and {deleted_reports} customer reports.")
    return True


# ===================
# CUSTOMER REPORTS
# ===================

def list_customer_reports(
    db: Session,
    customer_date: date = None,
    tracking_record_id: int = None,
) -> List[CustomerReport]:
    query = db.query(CustomerReport)
    if customer_date:
        query = query.filter(CustomerReport.customer_date == customer_date)
    if tracking_record_id:
        query = query.filter(CustomerReport.tracking_record_id == tracking_record_id)
    return query.order_by(CustomerReport.id).all()

def get_customer_report(db: Session, report_id: int) -> Optional[CustomerReport]:
    return db.get(CustomerReport, report_id)

def create_customer_report(db: Session, fields: dict) -> CustomerReport:
    report = CustomerReport(report_sent=False)
    _apply(report, fields)
    db.add(report)
    db.commit()
    db.refresh(report)
    return report

def update_customer_report(db: Session, report_id: int, fields: dict) -> Optional[CustomerReport]:
    report = get_customer_report(db, report_id)
    if not report:
        return None
    _apply(report, fields)
    db.commit()
    db.refresh(report)
    return report

def delete_customer_report(db: Session, report_id: int) -> bool:
    report = get_customer_report(db, report_id)
    if not report:
        return False
    db.delete(report)
    db.commit()
    return True


# ===================
# SETTINGS
# ===================

def get_setting(db: Session, key: str) -> Optional[str]:
    setting = db.query(Setting).filter_by(key=key).first()
    return setting.value if setting else None

def set_setting(db: Session, key: str, value: str) -> Setting:
    setting = db.query(Setting).filter_by(key=key).first()
    if setting:
        setting.value = value
    else:
        setting = Setting(key=key, value=value)
        db.add(setting)
    db.commit()
    db.refresh(setting)
    return setting

def delete_setting(db: Session, key: str) -> bool:
    deleted = db.query(Setting).filter_by(key=key).delete()
    db.commit()
    return deleted > 0
