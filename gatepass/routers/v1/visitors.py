"""Visitor router — listing, pre-approval, gate entries, reviews, QR scan/download/share,
and the realtime change feed WebSocket.
"""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, Query, Request, Response, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession

from gatepass.core.exceptions import UnauthorizedError
from gatepass.core.pagination import PaginationParams
from gatepass.core.response import DataResponse, ListResponse, paginated
from gatepass.db.base import async_session_factory, get_db
from gatepass.domain.enums import ReviewAction
from gatepass.routers.deps import get_viewer
from gatepass.schemas.visitor import (
    GateEntryRequest,
    PreApproveRequest,
    ScanRequest,
    ScanResultOut,
    ShareOut,
    VisitorOut,
)
from gatepass.services.auth import AuthService, Viewer
from gatepass.services.realtime import change_feed
from gatepass.services.visitor import VisitorService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/visitors", tags=["Visitors"])


def _svc(session: AsyncSession, viewer: Viewer) -> VisitorService:
    return VisitorService(session, viewer)


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.get("", response_model=ListResponse[VisitorOut])
async def list_visitors(
    pagination: PaginationParams = Depends(),
    viewer: Viewer = Depends(get_viewer),
    session: AsyncSession = Depends(get_db),
):
    """Visitors newest first. Flat owners only see their own flat."""
    svc = _svc(session, viewer)
    items, total = await svc.list_visitors(pagination)
    return paginated([svc.to_out(v) for v in items], total, pagination.page, pagination.limit)


@router.post("/pre-approve", response_model=DataResponse[VisitorOut], status_code=status.HTTP_201_CREATED)
async def pre_approve_visitor(
    body: PreApproveRequest,
    viewer: Viewer = Depends(get_viewer),
    session: AsyncSession = Depends(get_db),
):
    """Flat owner registers an expected visitor and receives a QR gate pass."""
    svc = _svc(session, viewer)
    visitor = await svc.pre_approve(body)
    return {"data": svc.to_out(visitor)}


@router.post("/entries", response_model=DataResponse[VisitorOut], status_code=status.HTTP_201_CREATED)
async def register_gate_entry(
    body: GateEntryRequest,
    viewer: Viewer = Depends(get_viewer),
    session: AsyncSession = Depends(get_db),
):
    svc = _svc(session, viewer)
    visitor = await svc.register_entry(body)
    return {"data": svc.to_out(visitor)}


@router.post("/scan", response_model=DataResponse[ScanResultOut])
async def scan_gate_pass(
    body: ScanRequest,
    viewer: Viewer = Depends(get_viewer),
    session: AsyncSession = Depends(get_db),
):
    """Verify the raw text of a scanned QR code and admit the matching visitor."""
    svc = _svc(session, viewer)
    result = await svc.verify_scan(body.raw)
    return {"data": ScanResultOut(visitor=svc.to_out(result.visitor), message=result.message)}


@router.websocket("/changes")
async def visitor_changes(websocket: WebSocket, token: str = Query(default="")):
    """Push `{"table", "type", "id"}` for every committed visitor insert/update.

    Clients re-fetch the page they display on each event. Messages sent by the
    client are ignored.
    """
    try:
        async with async_session_factory() as session:
            await AuthService(session).resolve(token)
    except UnauthorizedError:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    queue = change_feed.subscribe()

    async def _forward() -> None:
        while True:
            event = await queue.get()
            await websocket.send_json(event)

    forwarder = asyncio.create_task(_forward())
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug("Visitor change feed client disconnected")
    finally:
        forwarder.cancel()
        (outcome,) = await asyncio.gather(forwarder, return_exceptions=True)
        if isinstance(outcome, Exception):
            logger.debug("Visitor change feed forwarder stopped: %r", outcome)
        change_feed.unsubscribe(queue)


@router.get("/{visitor_id}", response_model=DataResponse[VisitorOut])
async def get_visitor(
    visitor_id: str,
    viewer: Viewer = Depends(get_viewer),
    session: AsyncSession = Depends(get_db),
):
    svc = _svc(session, viewer)
    return {"data": svc.to_out(await svc.get_visitor(visitor_id))}


@router.post("/{visitor_id}/approve", response_model=DataResponse[VisitorOut])
async def approve_visitor(
    visitor_id: str,
    viewer: Viewer = Depends(get_viewer),
    session: AsyncSession = Depends(get_db),
):
    svc = _svc(session, viewer)
    visitor = await svc.set_status(visitor_id, ReviewAction.APPROVE)
    return {"data": svc.to_out(visitor)}


@router.post("/{visitor_id}/deny", response_model=DataResponse[VisitorOut])
async def deny_visitor(
    visitor_id: str,
    viewer: Viewer = Depends(get_viewer),
    session: AsyncSession = Depends(get_db),
):
    svc = _svc(session, viewer)
    visitor = await svc.set_status(visitor_id, ReviewAction.DENY)
    return {"data": svc.to_out(visitor)}


@router.get("/{visitor_id}/qr.png", name="download_visitor_qr")
async def download_qr(
    visitor_id: str,
    viewer: Viewer = Depends(get_viewer),
    session: AsyncSession = Depends(get_db),
):
    png, filename = await _svc(session, viewer).qr_png(visitor_id)
    return Response(
        content=png,
        media_type="image/png",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{visitor_id}/qr/share", response_model=DataResponse[ShareOut])
async def share_qr(
    visitor_id: str,
    request: Request,
    viewer: Viewer = Depends(get_viewer),
    session: AsyncSession = Depends(get_db),
):
    """Share payload for the gate pass; 501 with a download link when sharing is off."""
    download_url = str(request.url_for("download_visitor_qr", visitor_id=visitor_id))
    share = await _svc(session, viewer).share(visitor_id, download_url)
    return {"data": share}
