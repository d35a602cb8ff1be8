"""Domain enums — pure Python, no external dependencies."""

from enum import Enum


class WorkOrderStatus(str, Enum):
    OPEN = "Open"
    CONFIRMATION = "Confirmation"
    READY = "Ready"
    IN_PROGRESS = "In Progress"
    ON_HOLD = "On Hold"
    COMPLETED = "Completed"


# Statuses that count towards a technician's current workload
ACTIVE_WORKLOAD_STATUSES = (WorkOrderStatus.IN_PROGRESS, WorkOrderStatus.READY)


class TechnicianStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class ShiftStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class QueueStatus(str, Enum):
    PENDING = "pending"
    ASSIGNED = "assigned"
    FAILED = "failed"


class AssignmentOutcome(str, Enum):
    SUCCESS = "success"
    FALLBACK = "fallback"
    FAILED = "failed"


class FallbackAction(str, Enum):
    ESCALATE = "escalate"
    QUEUE = "queue"
    NOTIFY_MANAGER = "notify_manager"


class AssignmentMode(str, Enum):
    """How the orchestrator obtains its work: drain the queue or explicit ids."""

    QUEUE = "queue"
    DIRECT = "direct"
