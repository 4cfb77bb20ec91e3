# models.py
import enum
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Boolean,
    Date,
    DateTime,
    Enum,
    ForeignKey,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()

class PaymentStatus(enum.Enum):
    UNPAID = "unpaid"
    PAID = "paid"

class TrackingRecord(Base):
    __tablename__ = 'tracking_records'

    id = Column(Integer, primary_key=True, index=True)
    # Logical key. One record per date is expected but not enforced.
    date = Column(Date, nullable=False, index=True)
    scheduled_customers = Column(Integer, nullable=False, default=0)
    reported_customers = Column(Integer, nullable=False, default=0)
    closed_customers = Column(Integer, nullable=False, default=0)
    payment_status = Column(
        Enum(PaymentStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=PaymentStatus.UNPAID,
    )

    customer_reports = relationship("CustomerReport", back_populates="tracking_record", cascade="all, delete")

class CustomerReport(Base):
    __tablename__ = 'customer_reports'

    id = Column(Integer, primary_key=True, index=True)
    customer_name = Column(String, nullable=False)
    customer_email = Column(String, nullable=True)
    customer_phone = Column(String, nullable=True)
    appointment_time = Column(String, nullable=True)
    report_sent = Column(Boolean, nullable=False, default=False)
    report_received_date = Column(Date, nullable=True)
    customer_date = Column(Date, nullable=False, index=True)
    tracking_record_id = Column(Integer, ForeignKey('tracking_records.id'), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    tracking_record = relationship("TrackingRecord", back_populates="customer_reports")

class Setting(Base):
    __tablename__ = 'settings'

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String, nullable=False, unique=True, index=True)
    value = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
