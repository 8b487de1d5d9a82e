"""
Closed value sets used by the models, plus the status transition tables.

A transition is legal only when the target appears in the table entry of the
current status. Terminal statuses map to an empty set.
"""
from enum import Enum
from typing import Dict, FrozenSet, Set


class Role(str, Enum):
    ADMIN = "admin"
    DOCTOR = "doctor"
    RECEPTIONIST = "receptionist"
    PATIENT = "patient"


class ServiceType(str, Enum):
    CONSULTATION = "Consultation"
    GROUP_CONSULTATION = "GroupConsultation"


class ServiceStatus(str, Enum):
    SCHEDULED = "Scheduled"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class AttendanceStatus(str, Enum):
    EXPECTED = "Expected"
    ATTENDED = "Attended"
    NO_SHOW = "NoShow"
    EXCUSED = "Excused"


class RequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    SCHEDULED = "scheduled"


class PreferredTime(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"


class QuestionType(str, Enum):
    TEXT = "TEXT"
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    SCALE = "SCALE"


class FeedbackTarget(str, Enum):
    DOCTOR = "DOCTOR"
    SERVICE = "SERVICE"


SERVICE_TRANSITIONS: Dict[ServiceStatus, FrozenSet[ServiceStatus]] = {
    ServiceStatus.SCHEDULED: frozenset({ServiceStatus.COMPLETED, ServiceStatus.CANCELLED}),
    ServiceStatus.COMPLETED: frozenset(),
    ServiceStatus.CANCELLED: frozenset(),
}

REQUEST_TRANSITIONS: Dict[RequestStatus, FrozenSet[RequestStatus]] = {
    RequestStatus.PENDING: frozenset({RequestStatus.APPROVED, RequestStatus.REJECTED}),
    RequestStatus.APPROVED: frozenset({RequestStatus.SCHEDULED}),
    RequestStatus.REJECTED: frozenset(),
    RequestStatus.SCHEDULED: frozenset(),
}


def can_transition(table: Dict[Enum, FrozenSet[Enum]], current: Enum, target: Enum) -> bool:
    return target in table.get(current, frozenset())


def allowed_sources(table: Dict[Enum, FrozenSet[Enum]], target: Enum) -> Set[Enum]:
    """Statuses from which ``target`` can be reached in one step."""
    return {source for source in table if can_transition(table, source, target)}
