"""Sign-up / sign-in schemas."""


from datetime import datetime

from pydantic import EmailStr, Field

from gatepass.schemas.common import CamelModel
from gatepass.schemas.profile import ProfileOut

class SignUpRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)

class SignInRequest(CamelModel):
    email: EmailStr
    password: str

class SessionOut(CamelModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime

class CurrentUserOut(CamelModel):
    id: str
    email: str
    profile: ProfileOut | None = None
