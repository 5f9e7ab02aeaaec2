"""Form drafts for profile registration and editing.

A :class:`FormDraft` holds raw input exactly as typed (strings) and only
turns it into :class:`~pyridepool.models.profile.ProfileFields` on
:meth:`FormDraft.validate`. Field updates are independent of each other,
and discarding a draft never touches the cached profile.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import Any

from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from pyridepool.exceptions import DraftValidationError
from pyridepool.models.profile import CarpoolStatus, Profile, ProfileFields

FIELD_NAMES: tuple[str, ...] = (
    "nickname",
    "phone",
    "address",
    "number_of_kids",
    "number_of_seats",
    "carpool_status",
)

_BY_ALIAS = {to_camel(name): name for name in FIELD_NAMES}

_MESSAGES: dict[str, str] = {
    "missing": "This field is required.",
    "string_too_short": "This field is required.",
    "int_parsing": "Must be a whole number.",
    "int_from_float": "Must be a whole number.",
    "int_type": "Must be a whole number.",
    "greater_than_equal": "Must be 0 or more.",
    "enum": "Must be one of: " + ", ".join(status.value for status in CarpoolStatus) + ".",
}


class FormMode(StrEnum):
    REGISTER = "register"
    EDIT = "edit"


def _field_name(key: str) -> str:
    if key in FIELD_NAMES:
        return key
    name = _BY_ALIAS.get(key)
    if name is None:
        raise KeyError(f"Unknown profile field: {key!r}")
    return name


class FormDraft:
    """Editable copy of the profile fields."""

    def __init__(self, mode: FormMode, values: Mapping[str, Any] | None = None) -> None:
        self.mode = mode
        self._values: dict[str, str] = {
            "nickname": "",
            "phone": "",
            "address": "",
            "number_of_kids": "0",
            "number_of_seats": "0",
            "carpool_status": CarpoolStatus.LOOKING.value,
        }
        self.errors: dict[str, str] = {}
        if values:
            self.update(values)

    @classmethod
    def for_registration(cls) -> FormDraft:
        return cls(FormMode.REGISTER)

    @classmethod
    def for_profile(cls, profile: Profile) -> FormDraft:
        """Seed an edit draft from the cached profile."""
        return cls(
            FormMode.EDIT,
            {
                "nickname": profile.nickname,
                "phone": profile.phone,
                "address": profile.address,
                "number_of_kids": profile.number_of_kids,
                "number_of_seats": profile.number_of_seats,
                "carpool_status": profile.carpool_status,
            },
        )

    @property
    def values(self) -> dict[str, str]:
        return dict(self._values)

    def get(self, field: str) -> str:
        return self._values[_field_name(field)]

    def set(self, field: str, value: Any) -> None:
        """Change one field. Accepts snake_case or camelCase names."""
        name = _field_name(field)
        self._values[name] = "" if value is None else str(value)
        self.errors.pop(name, None)

    def update(self, values: Mapping[str, Any]) -> None:
        for field, value in values.items():
            self.set(field, value)

    def validate(self) -> ProfileFields:
        """Parse the draft.

        Raises
        ------
        DraftValidationError
            With one message per offending field; the same messages are
            left on :attr:`errors` for inline display.
        """
        try:
            fields = ProfileFields.model_validate(self._values)
        except ValidationError as exc:
            errors: dict[str, str] = {}
            for err in exc.errors():
                loc = err.get("loc") or ("",)
                name = _BY_ALIAS.get(str(loc[0]), str(loc[0]))
                errors.setdefault(name, _MESSAGES.get(err["type"], err["msg"]))
            self.errors = errors
            raise DraftValidationError(errors) from exc
        self.errors = {}
        return fields
