"""Team roster construction and captain synchronisation.

Slot 0 holds the captain. The captain view on :class:`Roster` is computed
from that slot, so writing the captain and writing player 1 are the same
operation. Every function here returns a new roster and leaves its input
untouched.
"""

import re
from datetime import date
from typing import Any

from .models import PlayerSlot, Roster, Tournament

EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")

CAPTAIN_FIELDS = frozenset({"name", "age", "date_of_birth", "phone", "email"})
EDITABLE_FIELDS = frozenset(
    {"name", "age", "date_of_birth", "phone", "email", "city", "position", "experience"}
)

DEFAULT_AGE = 18


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.search(value))


def calculate_age(date_of_birth: date | None, today: date | None = None) -> int:
    """Age in whole years on ``today``; 18 when the birth date is unknown."""
    if date_of_birth is None:
        return DEFAULT_AGE
    today = today or date.today()
    age = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


def init_roster(tournament: Tournament) -> Roster:
    """Empty roster with one fixed slot per team member."""
    return Roster(
        team_size=tournament.team_size,
        substitutes=tournament.substitutes,
        slots=[PlayerSlot(slot_index=i) for i in range(tournament.team_size)],
    )


def _write_slot(slot: PlayerSlot, field: str, value: Any) -> PlayerSlot:
    data = slot.model_dump()
    data[field] = value
    updated = PlayerSlot.model_validate(data)
    # A known birth date always decides the age
    if updated.date_of_birth is not None:
        updated.age = calculate_age(updated.date_of_birth)
    elif field == "date_of_birth":
        updated.age = DEFAULT_AGE
    return updated


def sync_captain(roster: Roster, field: str, value: Any) -> Roster:
    """Write a captain field, which is slot 0."""
    if field not in CAPTAIN_FIELDS:
        raise ValueError(
            f"Unknown captain field: {field}. Available: {sorted(CAPTAIN_FIELDS)}"
        )
    return update_slot(roster, 0, field, value)


def update_slot(roster: Roster, index: int, field: str, value: Any) -> Roster:
    """Write one field of one slot."""
    if field not in EDITABLE_FIELDS:
        raise ValueError(
            f"Unknown player field: {field}. Available: {sorted(EDITABLE_FIELDS)}"
        )
    if not 0 <= index < len(roster.slots):
        raise ValueError(f"Slot {index} is out of range")

    updated = roster.model_copy(deep=True)
    updated.slots[index] = _write_slot(updated.slots[index], field, value)
    return updated


def add_substitute(roster: Roster) -> Roster:
    """Append a substitute slot while the substitute allowance lasts."""
    if len(roster.substitute_slots) >= roster.substitutes:
        return roster

    updated = roster.model_copy(deep=True)
    updated.slots.append(
        PlayerSlot(slot_index=len(updated.slots), is_substitute=True)
    )
    return updated


def remove_slot(roster: Roster, index: int) -> Roster:
    """Remove a substitute slot. The captain and fixed slots stay."""
    if index == 0 or not 0 <= index < len(roster.slots):
        return roster
    if not roster.slots[index].is_substitute:
        return roster

    updated = roster.model_copy(deep=True)
    del updated.slots[index]
    for position, slot in enumerate(updated.slots):
        slot.slot_index = position
    return updated


def validate_roster(roster: Roster) -> list[str]:
    """Return every problem with the roster; empty when it can be submitted."""
    errors: list[str] = []

    main_count = len(roster.main_slots)
    if main_count < roster.team_size:
        for missing in range(main_count, roster.team_size):
            errors.append(
                f"Player {missing + 1} is required (team size is {roster.team_size})"
            )
    elif main_count > roster.team_size:
        errors.append(
            f"Team must have exactly {roster.team_size} main players, got {main_count}"
        )

    substitute_count = len(roster.substitute_slots)
    if substitute_count > roster.substitutes:
        errors.append(
            f"At most {roster.substitutes} substitutes are allowed, got {substitute_count}"
        )

    seen_substitute = False
    for slot in roster.slots:
        if slot.is_substitute:
            seen_substitute = True
        elif seen_substitute:
            errors.append("Substitutes must come after all main players")
            break

    if roster.slots and roster.slots[0].is_substitute:
        errors.append("Player 1 is the captain and cannot be a substitute")

    for position, slot in enumerate(roster.slots):
        if slot.slot_index != position:
            errors.append(
                f"Player {position + 1} has slot index {slot.slot_index}, expected {position}"
            )
            break

    for i, slot in enumerate(roster.slots):
        label = "Captain" if i == 0 else f"Player {i + 1}"
        if not slot.name.strip():
            errors.append(f"Player {i + 1} name is required")
        if not slot.phone.strip():
            errors.append(f"Player {i + 1} phone is required")
        if not slot.position.strip():
            errors.append(f"Player {i + 1} position is required")

        email = slot.email.strip()
        if i == 0 and not email:
            errors.append("Captain email is required")
        elif email and not is_valid_email(email):
            errors.append(f"{label} email format is invalid")

    return errors
