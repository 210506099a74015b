"""Visitor Pydantic schemas (request DTOs and response models)."""


from datetime import datetime

from pydantic import Field

from gatepass.domain.enums import ReviewAction, VisitorSource, VisitorStatus, VisitorType
from gatepass.schemas.common import CamelModel

class PreApproveRequest(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    type: VisitorType
    phone: str | None = Field(default=None, max_length=50)

class GateEntryRequest(CamelModel):
    """A walk-in recorded by security; it waits for the flat owner's decision."""

    name: str = Field(min_length=1, max_length=255)
    type: VisitorType
    phone: str | None = Field(default=None, max_length=50)
    flat_id: str | None = None

class ScanRequest(CamelModel):
    raw: str = Field(min_length=1, description="Raw text read from the QR code.")

class VisitorOut(CamelModel):
    id: str
    name: str
    type: VisitorType
    phone: str | None = None
    status: VisitorStatus
    source: VisitorSource
    qr_code: str | None = None
    flat_id: str | None = None
    flat_number: str | None = None
    registered_by: str | None = None
    arrival_time: datetime | None = None
    created_at: datetime
    actions: list[ReviewAction] = Field(
        default_factory=list,
        description="Review actions the current viewer may take on this visitor.",
    )

class ScanResultOut(CamelModel):
    visitor: VisitorOut
    message: str

class ShareOut(CamelModel):
    title: str
    text: str
    download_url: str
