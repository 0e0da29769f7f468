from pydantic import BaseModel, field_validator
from datetime import datetime
from typing import Optional


class SoloItem(BaseModel):
    id: int
    user_cid: int
    instructor_cid: Optional[int] = None
    position: str
    expiry: datetime
    max_days: Optional[int] = None
    facility: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class EndorsementItem(BaseModel):
    id: int
    user_cid: int
    instructor_cid: Optional[int] = None
    position: str
    facility: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class FamiliarizationItem(BaseModel):
    user__username: str                 # the controller id, as a string
    sector__name: str
    sector__fir: str

    @field_validator("user__username")
    @classmethod
    def numeric_username(cls, v):
        assert v.strip().isdigit(), f"Bad controller id: {v}"
        return v.strip()

    @property
    def controller_id(self) -> int:
        return int(self.user__username)


class SoloResponse(BaseModel):
    success: Optional[bool] = None
    data: list[SoloItem]


class EndorsementResponse(BaseModel):
    success: Optional[bool] = None
    data: list[EndorsementItem]
