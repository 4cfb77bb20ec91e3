# report-tracker/celery_worker.py
import asyncio
import logging
from datetime import date

from celery import Celery
from celery.schedules import crontab

import config
import sync
from database import SessionLocal, init_db
from utils import business_today

logging.basicConfig(level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger(__name__)

celery_app = Celery("tasks", broker=config.REDIS_URL, backend=config.REDIS_URL)
celery_app.conf.timezone = config.BUSINESS_TIMEZONE
celery_app.conf.enable_utc = False

# Weekdays only, in the business time zone.
celery_app.conf.beat_schedule = {
    "create-daily-tracking-record": {
        "task": "celery_worker.create_daily_tracking_record",
        "schedule": crontab(hour=config.DAILY_SYNC_HOUR, minute=config.DAILY_SYNC_MINUTE, day_of_week="mon-fri"),
    },
    "check-daily-payments": {
        "task": "celery_worker.check_daily_payments",
        "schedule": crontab(hour=config.PAYMENT_CHECK_HOUR, minute=config.PAYMENT_CHECK_MINUTE, day_of_week="mon-fri"),
    },
    "reconcile-tracking-records": {
        "task": "celery_worker.reconcile_tracking_data",
        "schedule": config.RECONCILE_INTERVAL_SECONDS,
    },
}


@celery_app.on_after_configure.connect
def setup_database(sender, **kwargs):
    init_db()


@celery_app.task
def create_daily_tracking_record(target_date: str = None):
    logger.info("Running scheduled task: creating today's tracking record...")
    day = date.fromisoformat(target_date) if target_date else business_today()
    db = SessionLocal()
    try:
        return asyncio.run(sync.run_daily_sync(db, day))
    except Exception as e:
        db.rollback()
        logger.error(f"An error occurred in create_daily_tracking_record for {day}: {e}")
        return {"status": "Error during processing.", "date": day.isoformat()}
    finally:
        db.close()


@celery_app.task
def check_daily_payments(target_date: str = None):
    logger.info("Running scheduled task: checking Stripe payments...")
    day = date.fromisoformat(target_date) if target_date else business_today()
    db = SessionLocal()
    try:
        first_time = asyncio.run(sync.run_stripe_step(db, day))
    except Exception as e:
        db.rollback()
        logger.error(f"An error occurred in check_daily_payments for {day}: {e}")
        return {"status": "Error during processing.", "date": day.isoformat()}
    finally:
        db.close()
    return {"status": "Payment check complete.", "date": day.isoformat(), "first_time_payments": first_time}


@celery_app.task
def reconcile_tracking_data():
    db = SessionLocal()
    try:
        updated = sync.reconcile_tracking_records(db)
    except Exception as e:
        db.rollback()
        logger.error(f"An error occurred in reconcile_tracking_data: {e}")
        return {"status": "Error during processing."}
    finally:
        db.close()
    return {"status": f"Reconciliation complete. Updated {updated} records."}
