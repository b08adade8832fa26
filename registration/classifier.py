"""Tournament classification into registration regimes."""

from .models import CompetitionType, RegistrationRegime, RegistrationRole, Tournament

AUCTION_TYPES = frozenset(
    {
        CompetitionType.AUCTION_BASED_FIXED_TEAMS,
        CompetitionType.AUCTION_BASED_GROUPS,
        CompetitionType.AUCTION_LEAGUE,
        CompetitionType.AUCTION_KNOCKOUT,
    }
)

# Display labels by competition family
COMPETITION_LABELS: dict[str, frozenset[CompetitionType]] = {
    "Auction Tournament": AUCTION_TYPES,
    "Knockout Tournament": frozenset(
        {
            CompetitionType.KNOCKOUT,
            CompetitionType.ONE_DAY_KNOCKOUT,
            CompetitionType.GROUP_KNOCKOUT,
            CompetitionType.KNOCKOUT_PLUS_FINAL,
            CompetitionType.DOUBLE_ELIMINATION,
        }
    ),
    "League Tournament": frozenset(
        {
            CompetitionType.LEAGUE,
            CompetitionType.ROUND_ROBIN,
            CompetitionType.SWISS_SYSTEM,
        }
    ),
    "Championship Tournament": frozenset(
        {
            CompetitionType.VILLAGE_CHAMPIONSHIP,
            CompetitionType.CITY_CHAMPIONSHIP,
            CompetitionType.INTER_VILLAGE,
            CompetitionType.INTER_CITY,
        }
    ),
    "Series Tournament": frozenset(
        {
            CompetitionType.FRIENDLY_SERIES,
            CompetitionType.BEST_OF_THREE,
            CompetitionType.BEST_OF_FIVE,
        }
    ),
    "Custom Tournament": frozenset({CompetitionType.CUSTOM}),
}

ROLES_BY_REGIME = {
    RegistrationRegime.TEAM: [RegistrationRole.TEAM],
    RegistrationRegime.AUCTION: [RegistrationRole.PLAYER, RegistrationRole.OWNER],
}


def regime_for(competition: CompetitionType | None) -> RegistrationRegime:
    """Regime of a competition type.

    One-day knockouts always take full teams. Only the four auction
    competition types are AUCTION; anything else, including unknown types
    (``None``), registers as TEAM.
    """
    if competition is CompetitionType.ONE_DAY_KNOCKOUT:
        return RegistrationRegime.TEAM
    if competition in AUCTION_TYPES:
        return RegistrationRegime.AUCTION
    return RegistrationRegime.TEAM


def classify(tournament: Tournament) -> RegistrationRegime:
    """Return the registration regime for a tournament.

    The ``is_auction_based`` flag is informational and never changes the
    regime.
    """
    return regime_for(tournament.competition)


def is_auction(tournament: Tournament) -> bool:
    return classify(tournament) is RegistrationRegime.AUCTION


def available_roles(regime: RegistrationRegime) -> list[RegistrationRole]:
    """Roles a registrant can pick for the given regime."""
    return list(ROLES_BY_REGIME[regime])


def describe_competition(tournament: Tournament) -> str:
    """Human label for the tournament's competition family."""
    competition = tournament.competition
    if competition is not None:
        for label, members in COMPETITION_LABELS.items():
            if competition in members:
                return label

    raw = (tournament.competition_type or tournament.format or "").strip()
    if not raw:
        return "Tournament"
    return raw.replace("_", " ").title()


def describe_format(tournament: Tournament) -> str:
    """Display form of the match format (``T10`` becomes ``10 Overs``)."""
    if tournament.format == "T10":
        return "10 Overs"
    return tournament.format
