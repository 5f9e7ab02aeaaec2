"""Tests for profile/session parsing and the write payload."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from pyridepool.exceptions import IncompleteSessionError
from pyridepool.models.profile import CarpoolStatus, Profile, ProfileFields
from pyridepool.models.token import TokenSet
from pyridepool.session import Session, encode_identifier

# ------------------------------------------------------------------
# Session
# ------------------------------------------------------------------


class TestSession:
    def test_identifier_percent_encodes_everything(self) -> None:
        assert encode_identifier("a+b/c@example.com") == "a%2Bb%2Fc%40example.com"

    def test_from_claims(self) -> None:
        session = Session.from_claims("user-1", {"sub": "user-1", "email": " parent@example.com "})
        assert session.email == "parent@example.com"
        assert session.identifier == "parent%40example.com"

    @pytest.mark.parametrize("claims", [{}, {"email": ""}, {"email": "   "}, {"email": 42}])
    def test_missing_email_is_incomplete(self, claims: dict[str, object]) -> None:
        with pytest.raises(IncompleteSessionError) as exc_info:
            Session.from_claims("user-1", claims)
        assert exc_info.value.missing_claim == "email"

    def test_empty_user_id_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Session(user_id="", email="parent@example.com")

    @pytest.mark.parametrize("user_id", ["", "   "])
    def test_blank_user_id_is_incomplete(self, user_id: str) -> None:
        with pytest.raises(IncompleteSessionError) as exc_info:
            Session.from_claims(user_id, {"email": "parent@example.com"})
        assert exc_info.value.missing_claim == "sub"


# ------------------------------------------------------------------
# Profile
# ------------------------------------------------------------------


class TestProfile:
    def test_camel_case_payload(self) -> None:
        payload = {
            "userId": "user-1",
            "email": "parent@example.com",
            "nickname": "Jo",
            "phone": "555-0000",
            "address": "9 Pine St",
            "numberOfKids": 2,
            "numberOfSeats": 5,
            "carpoolStatus": "offering",
            "createdAt": "2024-09-01",
        }
        profile = Profile.model_validate(payload)

        assert profile.user_id == "user-1"
        assert profile.number_of_kids == 2
        assert profile.number_of_seats == 5
        assert profile.carpool_status is CarpoolStatus.OFFERING
        assert profile.raw["createdAt"] == "2024-09-01"
        assert profile.identifier == "parent%40example.com"

    def test_nulls_fall_back_to_defaults(self) -> None:
        profile = Profile.model_validate({"email": "a@b.c", "nickname": None, "numberOfKids": None})
        assert profile.nickname == ""
        assert profile.number_of_kids == 0
        assert profile.carpool_status is CarpoolStatus.LOOKING

    def test_raw_is_not_dumped(self) -> None:
        profile = Profile.model_validate({"email": "a@b.c"})
        assert "raw" not in profile.model_dump()

    def test_email_is_required(self) -> None:
        with pytest.raises(ValidationError):
            Profile.model_validate({"nickname": "Jo"})

    def test_assemble_from_session_and_fields(self) -> None:
        session = Session(user_id="user-1", email="parent@example.com")
        fields = ProfileFields(nickname="Sam", phone="555-2222", address="2 Elm St", number_of_seats=4)
        profile = Profile.assemble(session, fields)

        assert profile.user_id == "user-1"
        assert profile.email == "parent@example.com"
        assert profile.nickname == "Sam"
        assert profile.number_of_seats == 4


# ------------------------------------------------------------------
# ProfileFields
# ------------------------------------------------------------------


class TestProfileFields:
    def test_numeric_text_is_coerced(self) -> None:
        fields = ProfileFields.model_validate(
            {
                "nickname": " Sam ",
                "phone": "555-2222",
                "address": "2 Elm St",
                "numberOfKids": " 2 ",
                "numberOfSeats": "4",
                "carpoolStatus": "Offering",
            }
        )
        assert fields.nickname == "Sam"
        assert fields.number_of_kids == 2
        assert fields.number_of_seats == 4
        assert fields.carpool_status is CarpoolStatus.OFFERING

    @pytest.mark.parametrize("value", ["two", "1.5", "-1", ""])
    def test_bad_counts_rejected(self, value: str) -> None:
        with pytest.raises(ValidationError):
            ProfileFields(nickname="Sam", phone="1", address="x", number_of_kids=value)

    def test_unknown_field_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ProfileFields.model_validate({"nickname": "Sam", "phone": "1", "address": "x", "email": "a@b.c"})

    def test_payload_carries_identity_and_camel_case_keys(self) -> None:
        session = Session(user_id="user-1", email="parent@example.com")
        fields = ProfileFields(nickname="Sam", phone="555-2222", address="2 Elm St")

        assert fields.to_payload(session) == {
            "userId": "user-1",
            "email": "parent@example.com",
            "nickname": "Sam",
            "phone": "555-2222",
            "address": "2 Elm St",
            "numberOfKids": 0,
            "numberOfSeats": 0,
            "carpoolStatus": "looking",
        }


# ------------------------------------------------------------------
# TokenSet
# ------------------------------------------------------------------


class TestTokenSet:
    def test_from_token_response(self) -> None:
        tokens = TokenSet.from_token_response(
            {"id_token": "id", "access_token": "acc", "refresh_token": "rt", "expires_in": 600},
            now=1000.0,
        )
        assert tokens.expires_at == 1600.0
        assert tokens.refresh_token == "rt"
        assert not tokens.is_expired(leeway=60, now=1500.0)
        assert tokens.is_expired(leeway=60, now=1550.0)

    def test_refresh_keeps_previous_refresh_token(self) -> None:
        tokens = TokenSet.from_token_response(
            {"id_token": "id", "access_token": "acc"},
            previous_refresh_token="rt-old",
            now=0.0,
        )
        assert tokens.refresh_token == "rt-old"
        assert tokens.expires_at == 3600.0
