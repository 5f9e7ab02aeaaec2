"""Carpool profile models."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from pyridepool.models._base import RidePoolBaseModel
from pyridepool.session import Session, encode_identifier


class CarpoolStatus(StrEnum):
    """Where a family stands in the carpool process."""

    LOOKING = "looking"
    OFFERING = "offering"
    MATCHED = "matched"
    INACTIVE = "inactive"


class ProfileFields(BaseModel):
    """User-editable profile fields, validated.

    Integer fields accept their form representation (``"2"``) and are
    coerced; anything that is not a whole non-negative number is rejected.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_camel,
        str_strip_whitespace=True,
    )

    nickname: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    address: str = Field(min_length=1)
    number_of_kids: int = Field(default=0, ge=0)
    number_of_seats: int = Field(default=0, ge=0)
    carpool_status: CarpoolStatus = CarpoolStatus.LOOKING

    @field_validator("number_of_kids", "number_of_seats", mode="before")
    @classmethod
    def _strip_numeric_text(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("carpool_status", mode="before")
    @classmethod
    def _normalise_status(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    def to_payload(self, session: Session) -> dict[str, Any]:
        """Build the JSON write body for ``POST``/``PUT /users``."""
        return {
            "userId": session.user_id,
            "email": session.email,
            **self.model_dump(mode="json", by_alias=True),
        }


class Profile(RidePoolBaseModel):
    """A carpool participant record as stored by the profile API."""

    user_id: str | None = None
    email: str
    nickname: str = ""
    phone: str = ""
    address: str = ""
    number_of_kids: int = Field(default=0, ge=0)
    number_of_seats: int = Field(default=0, ge=0)
    carpool_status: CarpoolStatus = CarpoolStatus.LOOKING

    @property
    def identifier(self) -> str:
        """URL-safe key of this profile (the percent-encoded email)."""
        return encode_identifier(self.email)

    @classmethod
    def assemble(cls, session: Session, fields: ProfileFields) -> Profile:
        """Build a profile client-side from the session and submitted fields."""
        return cls.model_validate(fields.to_payload(session))
