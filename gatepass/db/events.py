"""Session hooks that release staged change events once a transaction commits.

Repositories call :func:`stage_change` while they write. Nothing reaches the
change feed until the surrounding transaction commits; a rollback discards
everything staged since the last commit.
"""


from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from gatepass.services.realtime import change_feed

_PENDING_KEY = "pending_changes"


def stage_change(session: AsyncSession, table: str, change_type: str, entity_id: str) -> None:
    session.info.setdefault(_PENDING_KEY, []).append(
        {"table": table, "type": change_type, "id": entity_id}
    )


@event.listens_for(Session, "after_commit")
def _publish_staged_changes(session: Session) -> None:
    changes: list[dict[str, Any]] = session.info.pop(_PENDING_KEY, [])
    for change in changes:
        change_feed.publish(change)


@event.listens_for(Session, "after_soft_rollback")
def _discard_staged_changes(session: Session, previous_transaction: Any) -> None:
    session.info.pop(_PENDING_KEY, None)
