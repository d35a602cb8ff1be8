"""Initial schema — auto-assignment tables.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ARRAY, JSONB

from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Service categories
    op.create_table(
        "service_categories",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("specialization_required", sa.String(100), nullable=True),
    )

    # Technicians
    op.create_table(
        "technicians",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column(
            "specializations", ARRAY(sa.String(100)), nullable=False, server_default="{}"
        ),
        sa.Column("lat", sa.Float, nullable=True),
        sa.Column("lng", sa.Float, nullable=True),
        sa.Column("max_concurrent_orders", sa.Integer, nullable=True),
        sa.Column("location_id", sa.Integer, nullable=True),
    )
    op.create_index("idx_technicians_status", "technicians", ["status"])
    op.create_index("idx_technicians_location", "technicians", ["location_id"])

    # Shifts
    op.create_table(
        "technician_shifts",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "technician_id",
            sa.Integer,
            sa.ForeignKey("technicians.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("start_datetime", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_datetime", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="scheduled"),
    )
    op.create_index("idx_shifts_technician", "technician_shifts", ["technician_id"])

    # Work orders
    op.create_table(
        "work_orders",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("work_order_number", sa.String(50), unique=True, nullable=True),
        sa.Column("status", sa.String(30), nullable=False, server_default="Open"),
        sa.Column(
            "assigned_technician_id",
            sa.Integer,
            sa.ForeignKey("technicians.id"),
            nullable=True,
        ),
        sa.Column(
            "service_category_id",
            sa.Integer,
            sa.ForeignKey("service_categories.id"),
            nullable=True,
        ),
        sa.Column("customer_lat", sa.Float, nullable=True),
        sa.Column("customer_lng", sa.Float, nullable=True),
        sa.Column("priority", sa.String(20), nullable=True),
        sa.Column("location_id", sa.Integer, nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
    )
    op.create_index("idx_work_orders_status", "work_orders", ["status"])
    op.create_index("idx_work_orders_technician", "work_orders", ["assigned_technician_id"])

    # Assignment rules
    op.create_table(
        "auto_assignment_rules",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("priority", sa.Integer, nullable=False, server_default="0"),
        sa.Column("weight_availability", sa.Float, nullable=False, server_default="30"),
        sa.Column("weight_specialization", sa.Float, nullable=False, server_default="25"),
        sa.Column("weight_proximity", sa.Float, nullable=False, server_default="20"),
        sa.Column("weight_workload", sa.Float, nullable=False, server_default="15"),
        sa.Column("weight_performance", sa.Float, nullable=False, server_default="10"),
        sa.Column("max_distance_km", sa.Float, nullable=True),
        sa.Column(
            "require_specialization_match", sa.Boolean, nullable=False, server_default=sa.false()
        ),
        sa.Column(
            "respect_max_concurrent_orders", sa.Boolean, nullable=False, server_default=sa.true()
        ),
        sa.Column("allowed_locations", ARRAY(sa.Integer), nullable=True),
        sa.Column("allowed_service_categories", ARRAY(sa.Integer), nullable=True),
        sa.Column("priority_levels", ARRAY(sa.String(20)), nullable=True),
        sa.Column("fallback_action", sa.String(20), nullable=False, server_default="queue"),
        sa.Column("fallback_user_id", sa.Integer, nullable=True),
        sa.Column("execution_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("last_executed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(
        "idx_rules_active_priority", "auto_assignment_rules", ["is_active", "priority"]
    )

    # Assignment queue
    op.create_table(
        "assignment_queue",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "work_order_id",
            sa.Integer,
            sa.ForeignKey("work_orders.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("priority", sa.Integer, nullable=False, server_default="0"),
        sa.Column(
            "added_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("retry_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("max_retries", sa.Integer, nullable=False, server_default="3"),
        sa.Column("next_retry_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("failed_reason", sa.Text, nullable=True),
    )
    op.create_index("idx_queue_due", "assignment_queue", ["status", "priority", "added_at"])
    op.create_index("idx_queue_work_order", "assignment_queue", ["work_order_id"])

    # Audit log
    op.create_table(
        "auto_assignment_logs",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "work_order_id",
            sa.Integer,
            sa.ForeignKey("work_orders.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "rule_id",
            sa.Integer,
            sa.ForeignKey("auto_assignment_rules.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "assigned_technician_id",
            sa.Integer,
            sa.ForeignKey("technicians.id"),
            nullable=True,
        ),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("assignment_score", sa.Float, nullable=True),
        sa.Column("availability_score", sa.Float, nullable=True),
        sa.Column("specialization_score", sa.Float, nullable=True),
        sa.Column("proximity_score", sa.Float, nullable=True),
        sa.Column("workload_score", sa.Float, nullable=True),
        sa.Column("performance_score", sa.Float, nullable=True),
        sa.Column("candidates_evaluated", sa.Integer, nullable=False, server_default="0"),
        sa.Column("candidates_data", JSONB, nullable=False, server_default="[]"),
        sa.Column("execution_time_ms", sa.Integer, nullable=False, server_default="0"),
        sa.Column("decision_factors", JSONB, nullable=False, server_default="{}"),
        sa.Column("failure_reason", sa.Text, nullable=True),
        sa.Column("fallback_action_taken", sa.String(20), nullable=True),
        sa.Column(
            "assigned_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
    )
    op.create_index("idx_assignment_logs_work_order", "auto_assignment_logs", ["work_order_id"])
    op.create_index("idx_assignment_logs_assigned_at", "auto_assignment_logs", ["assigned_at"])


def downgrade() -> None:
    op.drop_table("auto_assignment_logs")
    op.drop_table("assignment_queue")
    op.drop_table("auto_assignment_rules")
    op.drop_table("work_orders")
    op.drop_table("technician_shifts")
    op.drop_table("technicians")
    op.drop_table("service_categories")
