from gatepass.schemas.common import CamelModel
from gatepass.schemas.visitor import VisitorOut

class CapabilitiesOut(CamelModel):
    can_pre_approve: bool = False
    can_scan: bool = False
    can_register_entry: bool = False
    can_manage_users: bool = False

class DashboardOut(CamelModel):
    role: str | None = None
    capabilities: CapabilitiesOut
    recent_visitors: list[VisitorOut]
