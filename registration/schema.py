"""SQLite schema for the registration store."""

import logging
import sqlite3

logger = logging.getLogger(__name__)

TOURNAMENTS = """
CREATE TABLE IF NOT EXISTS tournaments (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    competition_type TEXT,
    format TEXT NOT NULL DEFAULT 'T20',
    status TEXT NOT NULL DEFAULT 'REGISTRATION_OPEN',
    registration_deadline TIMESTAMP,
    venue TEXT,
    start_date TIMESTAMP,
    auction_date TIMESTAMP,
    max_teams INTEGER NOT NULL DEFAULT 16,
    team_size INTEGER NOT NULL DEFAULT 11,
    substitutes INTEGER NOT NULL DEFAULT 0,
    player_pool_size INTEGER NOT NULL DEFAULT 100,
    auction_team_count INTEGER NOT NULL DEFAULT 8,
    entry_fee INTEGER NOT NULL DEFAULT 0,
    player_entry_fee INTEGER NOT NULL DEFAULT 0,
    team_entry_fee INTEGER NOT NULL DEFAULT 0,
    is_auction_based INTEGER NOT NULL DEFAULT 0
)
"""

TEAM_REGISTRATIONS = """
CREATE TABLE IF NOT EXISTS team_registrations (
    id TEXT PRIMARY KEY,
    tournament_id TEXT NOT NULL,
    team_name TEXT NOT NULL,
    team_city TEXT,
    captain_name TEXT NOT NULL,
    captain_phone TEXT NOT NULL,
    captain_email TEXT NOT NULL,
    roster TEXT NOT NULL,
    emergency_contact TEXT NOT NULL,
    payment_method TEXT,
    payment_amount INTEGER,
    special_requests TEXT,
    status TEXT NOT NULL DEFAULT 'PENDING',
    registered_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    reviewed_by TEXT,
    reviewed_at TIMESTAMP,
    rejection_reason TEXT,
    FOREIGN KEY (tournament_id) REFERENCES tournaments (id)
)
"""

# The unique triple backs up the in-process duplicate check under concurrency.
AUCTION_PLAYERS = """
CREATE TABLE IF NOT EXISTS auction_players (
    id TEXT PRIMARY KEY,
    tournament_id TEXT NOT NULL,
    name TEXT NOT NULL,
    phone TEXT NOT NULL,
    email TEXT NOT NULL,
    city TEXT,
    position TEXT,
    experience TEXT,
    age INTEGER,
    date_of_birth DATE,
    address TEXT,
    father_name TEXT,
    emergency_contact TEXT,
    emergency_phone TEXT,
    emergency_relation TEXT,
    payment_method TEXT,
    payment_amount INTEGER,
    profile_image_url TEXT,
    auction_status TEXT NOT NULL DEFAULT 'AVAILABLE',
    base_price INTEGER NOT NULL DEFAULT 0,
    sold_price INTEGER,
    auction_team_id TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (tournament_id, name, phone, email),
    FOREIGN KEY (tournament_id) REFERENCES tournaments (id)
)
"""

TEAM_OWNERS = """
CREATE TABLE IF NOT EXISTS team_owners (
    id TEXT PRIMARY KEY,
    tournament_id TEXT NOT NULL,
    team_index INTEGER NOT NULL,
    team_name TEXT NOT NULL,
    owner_name TEXT NOT NULL,
    owner_phone TEXT NOT NULL,
    owner_email TEXT NOT NULL,
    owner_city TEXT,
    owner_age INTEGER,
    sponsor_name TEXT,
    sponsor_contact TEXT,
    emergency_contact TEXT,
    emergency_phone TEXT,
    payment_method TEXT,
    payment_amount INTEGER,
    verified INTEGER NOT NULL DEFAULT 0,
    entry_fee_paid INTEGER NOT NULL DEFAULT 0,
    auction_token TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (tournament_id, team_index),
    FOREIGN KEY (tournament_id) REFERENCES tournaments (id)
)
"""

EMAIL_ALERT_SETTINGS = """
CREATE TABLE IF NOT EXISTS email_alert_settings (
    alert_type TEXT PRIMARY KEY,
    alert_name TEXT NOT NULL,
    description TEXT,
    is_enabled INTEGER NOT NULL DEFAULT 1,
    enabled_for_players INTEGER NOT NULL DEFAULT 1,
    enabled_for_admins INTEGER NOT NULL DEFAULT 1,
    enabled_for_team_owners INTEGER NOT NULL DEFAULT 1,
    testing_mode INTEGER NOT NULL DEFAULT 0,
    last_modified_by TEXT,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
)
"""

EMAIL_ACTIVITY = """
CREATE TABLE IF NOT EXISTS email_activity (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    alert_type TEXT NOT NULL,
    recipient_class TEXT NOT NULL,
    recipients TEXT NOT NULL,
    subject TEXT NOT NULL,
    sent INTEGER NOT NULL,
    reason TEXT,
    testing_mode INTEGER NOT NULL DEFAULT 0,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
)
"""

INDEXES = """
CREATE INDEX IF NOT EXISTS idx_team_registrations_tournament
    ON team_registrations (tournament_id);
CREATE INDEX IF NOT EXISTS idx_auction_players_tournament
    ON auction_players (tournament_id, auction_status);
CREATE INDEX IF NOT EXISTS idx_team_owners_tournament
    ON team_owners (tournament_id);
CREATE INDEX IF NOT EXISTS idx_email_activity_alert_type
    ON email_activity (alert_type)
"""


class SchemaManager:
    """Creates the registration tables in dependency order."""

    def __init__(self):
        # Tables before the indexes that reference them
        self.table_creation_order: list[tuple[str, str]] = [
            ("tournaments", TOURNAMENTS),
            ("team_registrations", TEAM_REGISTRATIONS),
            ("auction_players", AUCTION_PLAYERS),
            ("team_owners", TEAM_OWNERS),
            ("email_alert_settings", EMAIL_ALERT_SETTINGS),
            ("email_activity", EMAIL_ACTIVITY),
            ("indexes", INDEXES),
        ]

    def execute_schema(self, cursor: sqlite3.Cursor, name: str, sql: str) -> None:
        """Execute every statement of one schema block."""
        try:
            statements = [stmt.strip() for stmt in sql.split(";") if stmt.strip()]
            for statement in statements:
                cursor.execute(statement)
            logger.debug(f"Executed schema block: {name}")
        except sqlite3.Error as e:
            logger.error(f"Failed to execute schema block {name}: {e}")
            raise

    def initialize_database_schema(self, cursor: sqlite3.Cursor) -> None:
        """Create all tables and indexes."""
        logger.info("Initializing registration database schema")
        for name, sql in self.table_creation_order:
            self.execute_schema(cursor, name, sql)
        logger.info("Registration database schema initialization completed")

    def table_names(self) -> list[str]:
        return [name for name, _ in self.table_creation_order if name != "indexes"]
