"""Request and response schemas.

Field names are snake_case in Python and camelCase on the wire
(``imageUrl``, ``userId``, ``isAdminCreated`` ...).
"""

import re
from datetime import datetime
from typing import Annotated, List, Literal, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    StringConstraints,
    model_validator,
)
from pydantic.alias_generators import to_camel


Status = Literal["to-visit", "visited"]
Role = Literal["user", "admin"]

RequiredText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
Title = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)
]
Text = Annotated[str, StringConstraints(strip_whitespace=True)]
Rating = Annotated[int, Field(ge=1, le=5)]

_OBJECT_ID = re.compile(r"[0-9a-fA-F]{24}")


def is_object_id(value: str) -> bool:
    """True for 24-character hexadecimal identifiers."""
    return bool(_OBJECT_ID.fullmatch(value or ""))


class CamelModel(BaseModel):
    """Base schema exchanging camelCase JSON and reading ORM objects."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Coordinates(CamelModel):
    """Geotag of a destination."""

    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class DestinationBase(CamelModel):
    """Shared fields for destination schemas."""

    title: Title
    country: RequiredText
    description: Text = ""
    notes: Text = ""
    status: Status = "to-visit"
    image_url: RequiredText
    coordinates: Optional[Coordinates] = None
    tags: List[str] = []
    rating: Optional[Rating] = None


class DestinationCreate(DestinationBase):
    """Payload for creating a destination.

    Unknown keys such as ``_id`` or ``createdAt`` are ignored, the server
    assigns identity and timestamps.
    """

    featured: bool = False
    user_id: Optional[str] = None
    is_admin_created: Optional[bool] = None


class DestinationUpdate(CamelModel):
    """Partial destination update (all fields optional).

    Ownership fields are not accepted here.
    """

    title: Optional[Title] = None
    country: Optional[RequiredText] = None
    description: Optional[Text] = None
    notes: Optional[Text] = None
    status: Optional[Status] = None
    image_url: Optional[RequiredText] = None
    coordinates: Optional[Coordinates] = None
    tags: Optional[List[str]] = None
    rating: Optional[Rating] = None
    featured: Optional[bool] = None

    @model_validator(mode="after")
    def reject_nulls(self):
        """Only ``coordinates`` and ``rating`` may be cleared with null."""
        for name in self.model_fields_set - {"coordinates", "rating"}:
            if getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} cannot be null")
        return self


class DestinationOut(DestinationBase):
    """Destination as returned by the API."""

    id: str
    featured: bool = False
    user_id: Optional[str] = None
    is_admin_created: bool = False
    parent_destination_id: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class CopyRequest(CamelModel):
    """Body of a copy request; admins may copy on behalf of another user."""

    user_id: Optional[str] = None


class DestinationStats(CamelModel):
    """Progress numbers for one user's bucket list."""

    total: int = 0
    visited: int = 0
    to_visit: int = 0
    countries: int = 0
    progress: int = 0


class DestinationEnvelope(CamelModel):
    success: bool = True
    data: DestinationOut


class DestinationListEnvelope(CamelModel):
    success: bool = True
    count: int
    data: List[DestinationOut]


class StatsEnvelope(CamelModel):
    success: bool = True
    data: DestinationStats


class EmptyEnvelope(CamelModel):
    success: bool = True
    data: dict = {}


class UserBase(CamelModel):
    """Shared fields for user schemas."""

    email: EmailStr
    name: RequiredText


class UserCreate(UserBase):
    """Payload for registering a new user."""

    password: str = Field(min_length=6)
    role: Role = "user"
    avatar: Optional[str] = None


class UserUpdate(CamelModel):
    """Profile update; only name, email and avatar can change."""

    email: Optional[EmailStr] = None
    name: Optional[RequiredText] = None
    avatar: Optional[str] = None


class LoginRequest(CamelModel):
    """Credentials posted to the login endpoint.

    The email is normalized the same way as at registration.
    """

    email: EmailStr
    password: str


class UserOut(UserBase):
    """Response schema for user data. The credential is never included."""

    id: str
    avatar: Optional[str] = None
    role: Role = "user"
    created_at: datetime


class LoginOut(UserOut):
    """Logged-in user together with a bearer access token."""

    access_token: str
    token_type: str = "bearer"


class TokenData(BaseModel):
    """Payload stored inside JWT token."""

    sub: str | None = None
    exp: Optional[datetime] = None
    scope: Optional[str] = None
