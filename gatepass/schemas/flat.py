"""Flat Pydantic schemas."""


from pydantic import Field

from gatepass.domain.enums import Wing
from gatepass.schemas.common import CamelModel

class FlatCreate(CamelModel):
    wing: Wing
    floor: int = Field(ge=0)
    unit: int = Field(ge=1, le=99)
    flat_number: str | None = None

class FlatOut(CamelModel):
    id: str
    wing: Wing
    floor: int
    unit: int
    flat_number: str | None = None
