"""Profile schemas used by /auth/me and admin user management."""


from gatepass.domain.enums import Role
from gatepass.schemas.common import CamelModel

class ProfileOut(CamelModel):
    id: str
    role: Role
    flat_id: str | None = None

class ProfileDetailOut(ProfileOut):
    email: str | None = None
    flat_number: str | None = None

class ProfileUpdate(CamelModel):
    role: Role
    flat_id: str | None = None
