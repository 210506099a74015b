"""Visitor service — pre-approvals, gate entries, reviews and QR verification.

Visibility: flat owners only ever see visitors of their own flat; security and
admins see every visitor; a viewer without a profile sees nothing. A visitor
outside the viewer's visibility is reported as not found.

Rule: No FastAPI here. Store errors are converted to WriteFailedError.
"""


import logging
import re
from dataclasses import asdict, dataclass
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gatepass.core.config import settings
from gatepass.core.exceptions import (
    ForbiddenError,
    InvalidCredentialError,
    InvalidTransitionError,
    NotFoundError,
    SharingUnavailableError,
    ValidationError,
    WriteFailedError,
)
from gatepass.core.pagination import PaginationParams
from gatepass.domain.enums import ReviewAction, Role, VisitorSource, VisitorStatus
from gatepass.domain.visitor import Visitor
from gatepass.repositories.flat import FlatRepository
from gatepass.repositories.visitor import VisitorRepository
from gatepass.schemas.dashboard import CapabilitiesOut, DashboardOut
from gatepass.schemas.visitor import (
    GateEntryRequest,
    PreApproveRequest,
    ShareOut,
    VisitorOut,
)
from gatepass.services import lifecycle, qr
from gatepass.services.audit import AuditService
from gatepass.services.auth import Viewer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScanResult:
    visitor: Visitor
    message: str


def registered_by_owner(visitor: Visitor) -> bool:
    return visitor.source == VisitorSource.PRE_APPROVAL.value


def _slug(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-") or "visitor"


class VisitorService:
    def __init__(self, session: AsyncSession, viewer: Viewer):
        self._repo = VisitorRepository(session)
        self._flats = FlatRepository(session)
        self._audit = AuditService(session)
        self._viewer = viewer

    # ------------------------------------------------------------------
    # Presentation
    # ------------------------------------------------------------------

    def to_out(self, visitor: Visitor) -> VisitorOut:
        """Serialize a visitor with the review actions this viewer may take."""
        out = VisitorOut.model_validate(visitor)
        out.flat_number = visitor.flat.flat_number if visitor.flat else None
        out.actions = lifecycle.allowed_actions(
            self._viewer.role, visitor.status, registered_by_owner(visitor)
        )
        return out

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _visibility_filter(self) -> dict[str, str] | None:
        """Equality filter scoping the listing; None means "nothing visible"."""
        if self._viewer.role is Role.FLAT_OWNER:
            return {"flat_id": self._viewer.flat_id} if self._viewer.flat_id else None
        if self._viewer.role in (Role.SECURITY, Role.ADMIN):
            return {}
        return None

    async def list_visitors(self, pagination: PaginationParams) -> tuple[list[Visitor], int]:
        filters = self._visibility_filter()
        if filters is None:
            return [], 0
        return await self._repo.list(
            offset=pagination.offset,
            limit=pagination.limit,
            order_by="created_at",
            order="desc",
            filters=filters,
        )

    async def get_visitor(self, visitor_id: str) -> Visitor:
        visitor = await self._repo.get_by_id(visitor_id)
        filters = self._visibility_filter()
        if (
            not visitor
            or filters is None
            or ("flat_id" in filters and visitor.flat_id != filters["flat_id"])
        ):
            raise NotFoundError("Visitor", visitor_id)
        return visitor

    async def dashboard(self) -> DashboardOut:
        caps = lifecycle.capabilities(self._viewer.role)
        recent, _ = await self.list_visitors(
            PaginationParams(page=1, limit=settings.recent_visitors_limit)
        )
        return DashboardOut(
            role=self._viewer.role.value if self._viewer.role else None,
            capabilities=CapabilitiesOut(**asdict(caps)),
            recent_visitors=[self.to_out(v) for v in recent],
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def _write(self, description: str, coro):
        try:
            return await coro
        except SQLAlchemyError as exc:
            logger.exception("Failed to %s", description)
            raise WriteFailedError() from exc

    async def pre_approve(self, data: PreApproveRequest) -> Visitor:
        """Register an expected visitor for the owner's flat and issue a QR gate pass."""
        if not lifecycle.capabilities(self._viewer.role).can_pre_approve:
            raise ForbiddenError("Only flat owners can pre-approve visitors")
        if not self._viewer.flat_id:
            raise ValidationError("Your profile is not linked to a flat")

        qr_code = qr.encode(data.name, data.type.value, datetime.now(timezone.utc))
        visitor = await self._write(
            "pre-approve visitor",
            self._repo.create(
                name=data.name,
                type=data.type.value,
                phone=data.phone,
                source=VisitorSource.PRE_APPROVAL.value,
                qr_code=qr_code,
                status=VisitorStatus.PENDING.value,
                flat_id=self._viewer.flat_id,
                registered_by=self._viewer.user_id,
            ),
        )
        await self._write(
            "record audit entry",
            self._audit.record(
                user_id=self._viewer.user_id,
                action="visitor.pre_approved",
                entity_type="visitor",
                entity_id=visitor.id,
                new_value={"status": visitor.status, "flat_id": visitor.flat_id},
            ),
        )
        logger.info("Visitor %s pre-approved for flat %s", visitor.id, visitor.flat_id)
        return visitor

    async def register_entry(self, data: GateEntryRequest) -> Visitor:
        """Log a walk-in at the gate; the flat owner decides on it."""
        if not lifecycle.capabilities(self._viewer.role).can_register_entry:
            raise ForbiddenError("Only security staff can register gate entries")
        if data.flat_id and not await self._flats.get_by_id(data.flat_id):
            raise NotFoundError("Flat", data.flat_id)

        visitor = await self._write(
            "register gate entry",
            self._repo.create(
                name=data.name,
                type=data.type.value,
                phone=data.phone,
                source=VisitorSource.GATE_ENTRY.value,
                status=VisitorStatus.PENDING.value,
                flat_id=data.flat_id,
                registered_by=self._viewer.user_id,
            ),
        )
        await self._write(
            "record audit entry",
            self._audit.record(
                user_id=self._viewer.user_id,
                action="visitor.entry_registered",
                entity_type="visitor",
                entity_id=visitor.id,
                new_value={"status": visitor.status, "flat_id": visitor.flat_id},
            ),
        )
        logger.info("Gate entry %s registered for flat %s", visitor.id, visitor.flat_id)
        return visitor

    async def set_status(self, visitor_id: str, action: ReviewAction) -> Visitor:
        """Approve or deny a pending visitor on behalf of the viewer."""
        visitor = await self.get_visitor(visitor_id)
        target = lifecycle.target_status(action)

        if self._viewer.role is Role.SECURITY:
            raise ForbiddenError("Security staff cannot approve or deny visitors")
        lifecycle.next_status(visitor.status, target)
        if not lifecycle.can_review(self._viewer.role, visitor.status, registered_by_owner(visitor)):
            raise ForbiddenError("You cannot review a visitor you pre-approved")

        return await self._transition(visitor, target, f"visitor.{target.value}")

    async def _transition(self, visitor: Visitor, target: VisitorStatus, audit_action: str) -> Visitor:
        old_status = visitor.status
        updated = await self._write(
            f"set visitor {visitor.id} to {target.value}",
            self._repo.update(visitor, status=target.value),
        )
        await self._write(
            "record audit entry",
            self._audit.record(
                user_id=self._viewer.user_id,
                action=audit_action,
                entity_type="visitor",
                entity_id=visitor.id,
                old_value={"status": old_status},
                new_value={"status": updated.status},
            ),
        )
        logger.info("Visitor %s: %s -> %s by %s", visitor.id, old_status, updated.status, self._viewer.user_id)
        return updated

    async def verify_scan(self, raw: str) -> ScanResult:
        """Verify a scanned gate pass and admit the visitor it names.

        Matches on (name, type) among gate pass holders and takes the most
        recent; the pass holds no unique id, so collisions and replays are
        logged rather than prevented.
        """
        if not lifecycle.capabilities(self._viewer.role).can_scan:
            raise ForbiddenError("Only security staff can scan gate passes")

        credential = qr.decode(raw)
        matches = await self._repo.find_by_name_and_type(credential.name, credential.type)
        if not matches:
            logger.info("Scan matched no visitor for %r / %r", credential.name, credential.type)
            raise InvalidCredentialError()
        if len(matches) > 1:
            logger.warning(
                "Scan for %r / %r matched %d visitors; using the most recent",
                credential.name, credential.type, len(matches),
            )

        visitor = matches[0]
        if visitor.status == VisitorStatus.APPROVED.value:
            logger.warning("Gate pass for visitor %s scanned again after approval", visitor.id)
            return ScanResult(visitor, f"Visitor already verified: {visitor.name}")
        if visitor.status == VisitorStatus.DENIED.value:
            raise InvalidTransitionError(VisitorStatus.DENIED.value, VisitorStatus.APPROVED.value)

        updated = await self._transition(visitor, VisitorStatus.APPROVED, "visitor.scan_verified")
        return ScanResult(updated, f"Verified visitor: {updated.name}")

    # ------------------------------------------------------------------
    # QR download / share
    # ------------------------------------------------------------------

    async def qr_png(self, visitor_id: str) -> tuple[bytes, str]:
        """Return the gate pass PNG and a download filename."""
        visitor = await self.get_visitor(visitor_id)
        if not visitor.qr_code:
            raise NotFoundError("QR code for visitor", visitor_id)
        return qr.png_from_data_url(visitor.qr_code), f"{_slug(visitor.name)}-qr.png"

    async def share(self, visitor_id: str, download_url: str) -> ShareOut:
        visitor = await self.get_visitor(visitor_id)
        if not visitor.qr_code:
            raise NotFoundError("QR code for visitor", visitor_id)
        if not settings.share_enabled:
            raise SharingUnavailableError(download_url)
        return ShareOut(
            title="Visitor QR Code",
            text=f"QR code for visitor: {visitor.name}",
            download_url=download_url,
        )
