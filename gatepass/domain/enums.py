"""String enums shared by the ORM models, schemas and lifecycle rules."""

from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    SECURITY = "security"
    FLAT_OWNER = "flat_owner"


class Wing(str, Enum):
    A = "A"
    B = "B"


class VisitorType(str, Enum):
    GUEST = "Guest"
    DELIVERY = "Delivery"
    SERVICE = "Service"
    CAB = "Cab"


class VisitorStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


class ReviewAction(str, Enum):
    APPROVE = "approve"
    DENY = "deny"


class VisitorSource(str, Enum):
    """How a visitor row was created; fixed at insert time."""

    PRE_APPROVAL = "pre_approval"
    GATE_ENTRY = "gate_entry"
