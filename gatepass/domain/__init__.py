"""Domain package — all ORM models are imported here so Alembic autogenerate detects them.

Folder intent:
  flat.py     — Flats (wing / floor / unit)
  user.py     — Users, their role-bearing Profiles, and sign-in AuthSessions
  visitor.py  — Visitor records and their pending/approved/denied status
  audit.py    — Immutable audit trail (never updated or deleted)
  enums.py    — Role, Wing, VisitorType, VisitorStatus, ReviewAction
  mixins.py   — Shared UUID primary key and timestamp columns
"""

from gatepass.domain.audit import AuditTrail
from gatepass.domain.flat import Flat
from gatepass.domain.user import AuthSession, Profile, User
from gatepass.domain.visitor import Visitor

__all__ = [
    "AuditTrail",
    "AuthSession",
    "Flat",
    "Profile",
    "User",
    "Visitor",
]
