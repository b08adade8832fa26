"""Field validation for registration payloads.

Each validator returns every problem it finds so the form can show them
all at once. An empty list means the payload is acceptable.
"""

import re

from .models import (
    AuctionPlayerCandidate,
    ProfilePhoto,
    TeamOwnerCandidate,
    TeamRegistrationRequest,
)
from .roster import calculate_age, is_valid_email, validate_roster

PHONE_DIGITS = 10
MAX_PHOTO_BYTES = 5 * 1024 * 1024
ALLOWED_PHOTO_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/webp")


def _required(value: str | None, message: str, errors: list[str]) -> None:
    if not (value or "").strip():
        errors.append(message)


def _phone_digits(phone: str) -> str:
    return re.sub(r"\D", "", phone)


def validate_team_request(request: TeamRegistrationRequest) -> list[str]:
    errors: list[str] = []
    _required(request.team_name, "Team name is required", errors)
    _required(request.emergency_contact.name, "Emergency contact name is required", errors)
    _required(request.emergency_contact.phone, "Emergency contact phone is required", errors)
    errors.extend(validate_roster(request.roster))
    return errors


def validate_player_candidate(
    candidate: AuctionPlayerCandidate, min_age: int = 16
) -> list[str]:
    errors: list[str] = []
    _required(candidate.name, "Name is required", errors)
    _required(candidate.phone, "Phone number is required", errors)
    _required(candidate.email, "Email is required", errors)
    _required(candidate.city, "City is required", errors)
    _required(candidate.position, "Position is required", errors)
    _required(candidate.emergency_contact, "Emergency contact name is required", errors)
    _required(candidate.emergency_phone, "Emergency contact phone is required", errors)

    age = calculate_age(candidate.date_of_birth) if candidate.date_of_birth else candidate.age
    if age < min_age:
        errors.append(f"Player must be at least {min_age} years old")

    email = candidate.email.strip()
    if email and not is_valid_email(email):
        errors.append("Email format is invalid")

    phone = candidate.phone.strip()
    if phone and len(_phone_digits(phone)) != PHONE_DIGITS:
        errors.append(f"Phone number must be {PHONE_DIGITS} digits")

    return errors


def validate_owner_candidate(
    candidate: TeamOwnerCandidate, min_age: int = 18
) -> list[str]:
    errors: list[str] = []
    _required(candidate.owner_name, "Owner name is required", errors)
    _required(candidate.owner_phone, "Owner phone is required", errors)
    _required(candidate.owner_email, "Owner email is required", errors)
    _required(candidate.owner_city, "Owner city is required", errors)
    _required(candidate.team_name, "Team name is required", errors)
    _required(candidate.emergency_contact, "Emergency contact name is required", errors)
    _required(candidate.emergency_phone, "Emergency contact phone is required", errors)

    if candidate.owner_age < min_age:
        errors.append(f"Team owner must be at least {min_age} years old")

    email = candidate.owner_email.strip()
    if email and not is_valid_email(email):
        errors.append("Owner email format is invalid")

    return errors


def validate_photo(
    photo: ProfilePhoto,
    max_bytes: int = MAX_PHOTO_BYTES,
    allowed_types: tuple[str, ...] | list[str] = ALLOWED_PHOTO_TYPES,
) -> list[str]:
    errors: list[str] = []
    if photo.content_type.lower() not in allowed_types:
        errors.append("Profile photo must be a JPEG, PNG or WebP image")
    if photo.size > max_bytes:
        errors.append(
            f"Profile photo must be less than {max_bytes // (1024 * 1024)}MB"
        )
    return errors
