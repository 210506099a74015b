"""Visitor lifecycle and role-based access rules.

Pure functions, no I/O. They decide which status transitions exist, whether a
viewer is shown Approve/Deny for a given visitor, and which dashboard
affordances a role gets.

    viewer role   status            registered by owner   approve/deny
    security      any               any                   no
    flat_owner    pending           yes                   no
    flat_owner    pending           no                    yes
    flat_owner    approved/denied   any                   no
    admin         pending           any                   yes
    admin         approved/denied   any                   no
    (no profile)  any               any                   no
"""

from dataclasses import dataclass

from gatepass.core.exceptions import InvalidTransitionError
from gatepass.domain.enums import ReviewAction, Role, VisitorStatus

TERMINAL_STATUSES = frozenset({VisitorStatus.APPROVED, VisitorStatus.DENIED})

_ACTION_TARGET = {
    ReviewAction.APPROVE: VisitorStatus.APPROVED,
    ReviewAction.DENY: VisitorStatus.DENIED,
}


@dataclass(frozen=True)
class Capabilities:
    can_pre_approve: bool = False
    can_scan: bool = False
    can_register_entry: bool = False
    can_manage_users: bool = False


def can_review(
    role: Role | str | None,
    status: VisitorStatus | str,
    registered_by_owner: bool,
) -> bool:
    """Whether a viewer with *role* is shown Approve/Deny for this visitor."""
    if role is None or VisitorStatus(status) is not VisitorStatus.PENDING:
        return False
    role = Role(role)
    if role is Role.SECURITY:
        return False
    if role is Role.FLAT_OWNER:
        return not registered_by_owner
    return True


def allowed_actions(
    role: Role | str | None,
    status: VisitorStatus | str,
    registered_by_owner: bool,
) -> list[ReviewAction]:
    if can_review(role, status, registered_by_owner):
        return [ReviewAction.APPROVE, ReviewAction.DENY]
    return []


def target_status(action: ReviewAction | str) -> VisitorStatus:
    return _ACTION_TARGET[ReviewAction(action)]


def next_status(current: VisitorStatus | str, target: VisitorStatus | str) -> VisitorStatus:
    """Validate `current -> target`; only pending visitors can be decided."""
    current = VisitorStatus(current)
    target = VisitorStatus(target)
    if target not in TERMINAL_STATUSES:
        raise InvalidTransitionError(current.value, target.value)
    if current in TERMINAL_STATUSES:
        raise InvalidTransitionError(current.value, target.value)
    return target


def capabilities(role: Role | str | None) -> Capabilities:
    if role is None:
        return Capabilities()
    role = Role(role)
    return Capabilities(
        can_pre_approve=role is Role.FLAT_OWNER,
        can_scan=role in (Role.SECURITY, Role.ADMIN),
        can_register_entry=role in (Role.SECURITY, Role.ADMIN),
        can_manage_users=role is Role.ADMIN,
    )
