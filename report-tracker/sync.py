# report-tracker/sync.py
"""
Daily sync job and reconciliation of tracking record counters.

The daily job creates the day's tracking record, then imports Calendly
invitees and checks Stripe for first-time payments. Only creating the record
can fail the job; both integration steps log their errors and carry on.
"""
import logging
from collections import defaultdict
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

import config
import storage
import calendly_client
import stripe_client
from models import TrackingRecord, CustomerReport, PaymentStatus
from utils import business_today, day_bounds

logger = logging.getLogger(__name__)


def resolve_credential(db: Session, setting_key: str, env_fallback: Optional[str] = None) -> Optional[str]:
    """Stored credential from the settings table, or the environment value when none is stored."""
    return storage.get_setting(db, config.SETTING_KEYS[setting_key]) or env_fallback


async def import_calendly_customers(db: Session, record: TrackingRecord, token: str) -> int:
    """
    Creates a customer report for every Calendly invitee on the record's date.

    Invitees already on that date (case-insensitive exact name) and those named
    "Unknown" or blank are skipped. Adds the number imported to
    `scheduled_customers`, which for a new record makes it equal to that
    number. Returns the number imported.
    """
    invitees = await calendly_client.get_invitees_for_date(token, record.date)
    if invitees is None:
        logger.warning(f"Calendly import for {record.date} skipped: events could not be fetched.")
        return 0

    existing = storage.list_customer_reports(db, customer_date=record.date)
    seen = {r.customer_name.strip().lower() for r in existing}

    imported = 0
    for invitee in invitees:
        name = invitee["name"]
        key = name.lower()
        if key in config.IGNORED_CUSTOMER_NAMES or key in seen:
            continue
        storage.create_customer_report(db, {
            "customer_name": name,
            "customer_email": invitee.get("email"),
            "customer_phone": invitee.get("phone"),
            "appointment_time": invitee.get("start_time"),
            "customer_date": record.date,
            "tracking_record_id": record.id,
        })
        seen.add(key)
        imported += 1

    if imported > 0:
        storage.update_tracking_record(db, record.id, {
            "scheduled_customers": record.scheduled_customers + imported,
        })
    logger.info(f"Imported {imported} customers from Calendly for {record.date}.")
    return imported


async def check_stripe_payments(db: Session, target_date: date, secret_key: str) -> int:
    """
    Counts first-time Stripe payments on `target_date` and, when there are any,
    marks that date's tracking record as paid with `closed_customers` set to
    the count. Returns the count.
    """
    window_start, window_end = day_bounds(target_date)
    first_time = await stripe_client.count_first_time_payments(secret_key, window_start, window_end)

    if first_time > 0:
        record = storage.get_tracking_record_by_date(db, target_date)
        if record:
            storage.update_tracking_record(db, record.id, {
                "closed_customers": first_time,
                "payment_status": PaymentStatus.PAID,
            })
            logger.info(f"Marked {target_date} as paid with {first_time} first-time payments.")
        else:
            logger.warning(f"{first_time} first-time payments on {target_date} but no tracking record exists.")
    return first_time


async def run_calendly_step(db: Session, record: TrackingRecord) -> Optional[int]:
    record_date = record.date
    try:
        token = resolve_credential(db, "calendly_token", config.CALENDLY_API_TOKEN)
        if not token:
            logger.info("No Calendly token stored. Skipping customer import.")
            return None
        return await import_calendly_customers(db, record, token)
    except Exception as e:
        db.rollback()
        logger.error(f"Calendly import failed for {record_date}: {e}")
        return None


async def run_stripe_step(db: Session, target_date: date) -> Optional[int]:
    try:
        secret_key = resolve_credential(db, "stripe_secret_key", config.STRIPE_SECRET_KEY)
        if not secret_key:
            logger.info("No Stripe secret key stored. Skipping payment check.")
            return None
        return await check_stripe_payments(db, target_date, secret_key)
    except Exception as e:
        db.rollback()
        logger.error(f"Stripe payment check failed for {target_date}: {e}")
        return None


async def run_daily_sync(db: Session, target_date: date = None) -> dict:
    """
    Creates the tracking record for `target_date` (default: today in the
    business time zone) and runs the best-effort integration steps.

    A date that already has a record is left untouched.
    """
    target_date = target_date or business_today()

    existing = storage.get_tracking_record_by_date(db, target_date)
    if existing:
        logger.info(f"Tracking record for {target_date} already exists (id={existing.id}). Skipping.")
        return {"status": "exists", "date": target_date.isoformat(), "record_id": existing.id}

    record = storage.create_tracking_record(db, {"date": target_date})
    record_id = record.id
    logger.info(f"Created tracking record {record_id} for {target_date}.")

    imported = await run_calendly_step(db, record)
    first_time_payments = await run_stripe_step(db, target_date)

    logger.info(f"Daily sync for {target_date} complete.")
    return {
        "status": "created",
        "date": target_date.isoformat(),
        "record_id": record_id,
        "imported_customers": imported,
        "first_time_payments": first_time_payments,
    }


def reconcile_tracking_records(db: Session) -> int:
    """
    Recomputes scheduled/reported counts of every tracking record from the
    customer reports on its date. Only records whose counts changed are
    written. `closed_customers` is left to the Stripe check. Returns the
    number of records updated.
    """
    by_date = defaultdict(list)
    for report in db.query(CustomerReport).all():
        by_date[report.customer_date].append(report)

    updated = 0
    for record in db.query(TrackingRecord).all():
        group = by_date.get(record.date, [])
        scheduled = len(group)
        reported = sum(1 for r in group if r.report_received_date is not None)

        if record.scheduled_customers != scheduled or record.reported_customers != reported:
            record.scheduled_customers = scheduled
            record.reported_customers = reported
            updated += 1

    if updated:
        db.commit()
    logger.info(f"Reconciled tracking records: {updated} updated.")
    return updated
