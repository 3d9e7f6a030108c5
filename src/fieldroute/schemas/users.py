"""User profile schemas."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from ..models.domain import Theme, User
from .jobs import CoordinatesModel


class UserModel(BaseModel):
    user_id: str
    email: str = ""
    name: Optional[str] = None
    home_address: Optional[str] = None
    home_coordinates: Optional[CoordinatesModel] = None
    theme: Optional[str] = None

    @classmethod
    def from_domain(cls, user: User) -> "UserModel":
        return cls(
            user_id=user.user_id,
            email=user.email,
            name=user.name,
            home_address=user.home_address,
            home_coordinates=CoordinatesModel.from_domain(user.home_coordinates),
            theme=user.theme,
        )


class HomeAddressRequest(BaseModel):
    address: str = Field(..., min_length=1)
    coordinates: Optional[CoordinatesModel] = Field(
        default=None,
        description="Known coordinates for the address; geocoded when omitted.",
    )


class SettingsRequest(BaseModel):
    theme: Theme
