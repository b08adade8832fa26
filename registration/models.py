"""Registration data models."""

from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from notifications.delivery import DeliveryReport


class CompetitionType(Enum):
    """Competition types a tournament can be configured with."""

    LEAGUE = "LEAGUE"
    ROUND_ROBIN = "ROUND_ROBIN"
    SWISS_SYSTEM = "SWISS_SYSTEM"
    KNOCKOUT = "KNOCKOUT"
    ONE_DAY_KNOCKOUT = "ONE_DAY_KNOCKOUT"
    GROUP_KNOCKOUT = "GROUP_KNOCKOUT"
    KNOCKOUT_PLUS_FINAL = "KNOCKOUT_PLUS_FINAL"
    DOUBLE_ELIMINATION = "DOUBLE_ELIMINATION"
    VILLAGE_CHAMPIONSHIP = "VILLAGE_CHAMPIONSHIP"
    CITY_CHAMPIONSHIP = "CITY_CHAMPIONSHIP"
    INTER_VILLAGE = "INTER_VILLAGE"
    INTER_CITY = "INTER_CITY"
    FRIENDLY_SERIES = "FRIENDLY_SERIES"
    BEST_OF_THREE = "BEST_OF_THREE"
    BEST_OF_FIVE = "BEST_OF_FIVE"
    CUSTOM = "CUSTOM"
    AUCTION_BASED_FIXED_TEAMS = "AUCTION_BASED_FIXED_TEAMS"
    AUCTION_BASED_GROUPS = "AUCTION_BASED_GROUPS"
    AUCTION_LEAGUE = "AUCTION_LEAGUE"
    AUCTION_KNOCKOUT = "AUCTION_KNOCKOUT"

    @classmethod
    def parse(cls, raw: str | None) -> "CompetitionType | None":
        """Map a stored string to a member, or None when unknown."""
        if not raw:
            return None
        try:
            return cls(raw.strip())
        except ValueError:
            return None


class RegistrationRegime(Enum):
    """How participants enter a tournament."""

    TEAM = "TEAM"  # captain registers a full roster
    AUCTION = "AUCTION"  # players and owners register separately


class RegistrationRole(Enum):
    """Role a registrant asks for."""

    PLAYER = "PLAYER"
    TEAM = "TEAM"
    OWNER = "OWNER"

    @classmethod
    def parse(cls, raw: "str | RegistrationRole | None") -> "RegistrationRole | None":
        if raw is None or isinstance(raw, RegistrationRole):
            return raw
        value = raw.strip().upper()
        if not value:
            return None
        return cls(value)


class TournamentStatus(Enum):
    """Tournament lifecycle status."""

    UPCOMING = "UPCOMING"
    REGISTRATION_OPEN = "REGISTRATION_OPEN"
    REGISTRATION_CLOSED = "REGISTRATION_CLOSED"
    ONGOING = "ONGOING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class RegistrationStatus(Enum):
    """Review status of a team registration."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class AuctionStatus(Enum):
    """Auction pool status of an individual player."""

    AVAILABLE = "AVAILABLE"
    APPROVED = "APPROVED"
    SOLD = "SOLD"
    UNSOLD = "UNSOLD"
    REJECTED = "REJECTED"


class Tournament(BaseModel):
    """Tournament configuration as read from the store. Never mutated here."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    competition_type: str | None = Field(
        default=None, description="Raw competition type, may be unknown"
    )
    format: str = Field(default="T20", description="Match format, e.g. T10")
    status: TournamentStatus = TournamentStatus.REGISTRATION_OPEN
    registration_deadline: datetime | None = None
    venue: str | None = None
    start_date: datetime | None = None
    auction_date: datetime | None = None
    max_teams: int = Field(default=16, ge=0)
    team_size: int = Field(default=11, ge=1)
    substitutes: int = Field(default=0, ge=0)
    player_pool_size: int = Field(default=100, ge=0)
    auction_team_count: int = Field(default=8, ge=0)
    entry_fee: int = 0
    player_entry_fee: int = 0
    team_entry_fee: int = 0
    is_auction_based: bool = False

    @property
    def competition(self) -> CompetitionType | None:
        """Configured competition type, falling back to the format."""
        return CompetitionType.parse(self.competition_type or self.format)


class PlayerSlot(BaseModel):
    """One position in a team roster."""

    slot_index: int = 0
    name: str = ""
    age: int = 18
    date_of_birth: date | None = None
    phone: str = ""
    email: str = ""
    city: str = ""
    position: str = "BATSMAN"
    experience: str = "INTERMEDIATE"
    is_substitute: bool = False


class CaptainView(BaseModel):
    """Captain details as projected from roster slot 0."""

    name: str
    age: int
    date_of_birth: date | None = None
    phone: str
    email: str


class Roster(BaseModel):
    """Ordered roster. Slot 0 is always the captain."""

    team_size: int = Field(..., ge=1)
    substitutes: int = Field(default=0, ge=0)
    slots: list[PlayerSlot] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def captain(self) -> CaptainView | None:
        if not self.slots:
            return None
        first = self.slots[0]
        return CaptainView(
            name=first.name,
            age=first.age,
            date_of_birth=first.date_of_birth,
            phone=first.phone,
            email=first.email,
        )

    @property
    def main_slots(self) -> list[PlayerSlot]:
        return [slot for slot in self.slots if not slot.is_substitute]

    @property
    def substitute_slots(self) -> list[PlayerSlot]:
        return [slot for slot in self.slots if slot.is_substitute]


class EmergencyContact(BaseModel):
    """Emergency contact attached to a team registration."""

    name: str = ""
    phone: str = ""
    relation: str = ""


class TeamRegistrationRequest(BaseModel):
    """Payload submitted by a captain for a TEAM-regime tournament."""

    team_name: str = ""
    team_city: str = ""
    roster: Roster
    emergency_contact: EmergencyContact = Field(default_factory=EmergencyContact)
    payment_method: str = "UPI"
    payment_amount: int | None = None  # defaults to the tournament team fee
    special_requests: str = ""


class AuctionPlayerCandidate(BaseModel):
    """Individual player asking to enter an auction pool."""

    name: str = ""
    phone: str = ""
    email: str = ""
    city: str = ""
    position: str = ""
    experience: str = "INTERMEDIATE"
    age: int = 18
    date_of_birth: date | None = None
    address: str | None = None
    father_name: str | None = None
    emergency_contact: str = ""
    emergency_phone: str = ""
    emergency_relation: str = ""
    payment_method: str = "UPI"
    payment_amount: int | None = None  # defaults to the player entry fee
    profile_image_url: str | None = None


class TeamOwnerCandidate(BaseModel):
    """Team owner asking for a franchise in an auction tournament."""

    owner_name: str = ""
    owner_phone: str = ""
    owner_email: str = ""
    owner_city: str = ""
    owner_age: int = 18
    team_name: str = ""
    sponsor_name: str | None = None
    sponsor_contact: str | None = None
    emergency_contact: str = ""
    emergency_phone: str = ""
    payment_method: str = "UPI"
    payment_amount: int | None = None  # defaults to the team entry fee


class TeamRegistrationRecord(TeamRegistrationRequest):
    """Persisted team registration."""

    id: str
    tournament_id: str
    status: RegistrationStatus = RegistrationStatus.PENDING
    registered_at: datetime | None = None
    reviewed_by: str | None = None
    reviewed_at: datetime | None = None
    rejection_reason: str | None = None


class AuctionPlayerRecord(AuctionPlayerCandidate):
    """Persisted auction-pool player."""

    id: str
    tournament_id: str
    auction_status: AuctionStatus = AuctionStatus.AVAILABLE
    base_price: int = 0
    sold_price: int | None = None
    auction_team_id: str | None = None
    created_at: datetime | None = None


class TeamOwnerRecord(TeamOwnerCandidate):
    """Persisted team owner."""

    id: str
    tournament_id: str
    team_index: int
    verified: bool = False
    entry_fee_paid: bool = False
    auction_token: str | None = None
    created_at: datetime | None = None


class ProfilePhoto(BaseModel):
    """Photo attached to an auction player registration."""

    filename: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


class RegistrationIntent(BaseModel):
    """One registration attempt for a tournament."""

    tournament_id: str
    role: RegistrationRole | None = None
    payload: dict[str, Any] = Field(default_factory=dict)

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, value: Any) -> Any:
        if isinstance(value, str):
            return RegistrationRole.parse(value)
        return value


class RegistrationResult(BaseModel):
    """Outcome reported to the caller after a successful registration."""

    registration_id: str
    tournament_id: str
    role: RegistrationRole
    regime: RegistrationRegime
    message: str
    notifications: DeliveryReport = Field(default_factory=DeliveryReport)
