"""SQLAlchemy ORM models — maps to PostgreSQL tables."""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.adapters.persistence.database import Base


class ServiceCategoryModel(Base):
    __tablename__ = "service_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    specialization_required: Mapped[str | None] = mapped_column(String(100), nullable=True)


class TechnicianModel(Base):
    __tablename__ = "technicians"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    specializations: Mapped[list[str]] = mapped_column(
        ARRAY(String(100)), nullable=False, default=list
    )
    lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    lng: Mapped[float | None] = mapped_column(Float, nullable=True)
    max_concurrent_orders: Mapped[int | None] = mapped_column(Integer, nullable=True)
    location_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    shifts: Mapped[list["ShiftModel"]] = relationship(
        back_populates="technician", lazy="selectin", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_technicians_status", "status"),
        Index("idx_technicians_location", "location_id"),
    )


class ShiftModel(Base):
    __tablename__ = "technician_shifts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    technician_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("technicians.id", ondelete="CASCADE"), nullable=False
    )
    start_datetime: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_datetime: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="scheduled")

    technician: Mapped["TechnicianModel"] = relationship(back_populates="shifts")

    __table_args__ = (Index("idx_shifts_technician", "technician_id"),)


class WorkOrderModel(Base):
    __tablename__ = "work_orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    work_order_number: Mapped[str | None] = mapped_column(String(50), unique=True, nullable=True)
    status: Mapped[str] = mapped_column(String(30), nullable=False, default="Open")
    assigned_technician_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("technicians.id"), nullable=True
    )
    service_category_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("service_categories.id"), nullable=True
    )
    customer_lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    customer_lng: Mapped[float | None] = mapped_column(Float, nullable=True)
    priority: Mapped[str | None] = mapped_column(String(20), nullable=True)
    location_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    service_category: Mapped["ServiceCategoryModel | None"] = relationship(lazy="joined")

    __table_args__ = (
        Index("idx_work_orders_status", "status"),
        Index("idx_work_orders_technician", "assigned_technician_id"),
    )


class AssignmentRuleModel(Base):
    __tablename__ = "auto_assignment_rules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    weight_availability: Mapped[float] = mapped_column(Float, nullable=False, default=30)
    weight_specialization: Mapped[float] = mapped_column(Float, nullable=False, default=25)
    weight_proximity: Mapped[float] = mapped_column(Float, nullable=False, default=20)
    weight_workload: Mapped[float] = mapped_column(Float, nullable=False, default=15)
    weight_performance: Mapped[float] = mapped_column(Float, nullable=False, default=10)
    max_distance_km: Mapped[float | None] = mapped_column(Float, nullable=True)
    require_specialization_match: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    respect_max_concurrent_orders: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    allowed_locations: Mapped[list[int] | None] = mapped_column(ARRAY(Integer), nullable=True)
    allowed_service_categories: Mapped[list[int] | None] = mapped_column(ARRAY(Integer), nullable=True)
    priority_levels: Mapped[list[str] | None] = mapped_column(ARRAY(String(20)), nullable=True)
    fallback_action: Mapped[str] = mapped_column(String(20), nullable=False, default="queue")
    fallback_user_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    execution_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_executed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (Index("idx_rules_active_priority", "is_active", "priority"),)


class AssignmentQueueModel(Base):
    __tablename__ = "assignment_queue"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    work_order_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("work_orders.id", ondelete="CASCADE"), nullable=False
    )
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    retry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_retries: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    next_retry_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    assigned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    failed_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("idx_queue_due", "status", "priority", "added_at"),
        Index("idx_queue_work_order", "work_order_id"),
    )


class AssignmentLogModel(Base):
    __tablename__ = "auto_assignment_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    work_order_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("work_orders.id", ondelete="CASCADE"), nullable=False
    )
    rule_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("auto_assignment_rules.id", ondelete="SET NULL"), nullable=True
    )
    assigned_technician_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("technicians.id"), nullable=True
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    assignment_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    availability_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    specialization_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    proximity_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    workload_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    performance_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    candidates_evaluated: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    candidates_data: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    execution_time_ms: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    decision_factors: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    failure_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    fallback_action_taken: Mapped[str | None] = mapped_column(String(20), nullable=True)
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        Index("idx_assignment_logs_work_order", "work_order_id"),
        Index("idx_assignment_logs_assigned_at", "assigned_at"),
    )
