from datetime import date

import pytest
from sqlalchemy.exc import SQLAlchemyError

import storage
from models import CustomerReport, PaymentStatus, TrackingRecord

DAY = date(2025, 6, 26)


def _add_reports(db, record, count, customer_date=DAY):
    return [
        storage.create_customer_report(db, {
            "customer_name": f"Customer {i}",
            "customer_date": customer_date,
            "tracking_record_id": record.id if record else None,
        })
        for i in range(count)
    ]


def test_create_tracking_record_defaults(db) -> None:
    record = storage.create_tracking_record(db, {"date": DAY})

    assert record.id is not None
    assert record.scheduled_customers == 0
    assert record.reported_customers == 0
    assert record.closed_customers == 0
    assert record.payment_status == PaymentStatus.UNPAID


def test_list_tracking_records_newest_first_and_range(db) -> None:
    for d in (date(2025, 6, 24), date(2025, 6, 26), date(2025, 6, 25)):
        storage.create_tracking_record(db, {"date": d})

    assert [r.date for r in storage.list_tracking_records(db)] == [
        date(2025, 6, 26), date(2025, 6, 25), date(2025, 6, 24),
    ]
    assert [r.date for r in storage.list_tracking_records(db, start_date=date(2025, 6, 25))] == [
        date(2025, 6, 26), date(2025, 6, 25),
    ]


def test_update_and_missing_ids(db) -> None:
    record = storage.create_tracking_record(db, {"date": DAY})

    updated = storage.update_tracking_record(db, record.id, {"closed_customers": 2, "payment_status": PaymentStatus.PAID})
    assert updated.closed_customers == 2
    assert updated.payment_status == PaymentStatus.PAID
    assert updated.date == DAY

    assert storage.get_tracking_record(db, 999) is None
    assert storage.update_tracking_record(db, 999, {"closed_customers": 1}) is None
    assert storage.delete_tracking_record(db, 999) is False
    assert storage.get_customer_report(db, 999) is None
    assert storage.update_customer_report(db, 999, {"report_sent": True}) is None
    assert storage.delete_customer_report(db, 999) is False


def test_list_customer_reports_filters(db) -> None:
    record = storage.create_tracking_record(db, {"date": DAY})
    _add_reports(db, record, 2)
    _add_reports(db, None, 1, customer_date=date(2025, 6, 27))

    assert len(storage.list_customer_reports(db)) == 3
    assert len(storage.list_customer_reports(db, customer_date=DAY)) == 2
    assert len(storage.list_customer_reports(db, tracking_record_id=record.id)) == 2


def test_delete_tracking_record_cascades_to_reports(db) -> None:
    record = storage.create_tracking_record(db, {"date": DAY})
    _add_reports(db, record, 3)
    _add_reports(db, None, 1)  # same date, not linked
    other = storage.create_tracking_record(db, {"date": date(2025, 6, 27)})
    _add_reports(db, other, 2, customer_date=other.date)

    # Touch the collection so the cascade sees already-loaded children.
    assert len(record.customer_reports) == 3

    assert storage.delete_tracking_record(db, record.id) is True

    assert storage.get_tracking_record(db, record.id) is None
    assert storage.list_customer_reports(db, customer_date=DAY) == []
    assert len(storage.list_customer_reports(db, customer_date=other.date)) == 2


def test_delete_tracking_record_rolls_back_on_failure(db, monkeypatch) -> None:
    record = storage.create_tracking_record(db, {"date": DAY})
    _add_reports(db, record, 2)

    def failing_commit():
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(db, "commit", failing_commit)
    with pytest.raises(storage.StorageError):
        storage.delete_tracking_record(db, record.id)
    monkeypatch.undo()

    assert db.query(TrackingRecord).count() == 1
    assert db.query(CustomerReport).count() == 2


def test_settings_roundtrip(db) -> None:
    assert storage.get_setting(db, "calendly_token") is None

    storage.set_setting(db, "calendly_token", "abc")
    storage.set_setting(db, "calendly_token", "def")
    assert storage.get_setting(db, "calendly_token") == "def"

    assert storage.delete_setting(db, "calendly_token") is True
    assert storage.delete_setting(db, "calendly_token") is False
    assert storage.get_setting(db, "calendly_token") is None
