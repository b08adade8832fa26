"""Registration database operations."""

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

from notifications.alert_settings import AlertSettingUpdate, EmailAlertSetting
from notifications.gate import EmailActivity

from .exceptions import DuplicateError, PersistenceError
from .models import (
    AuctionPlayerRecord,
    AuctionStatus,
    EmergencyContact,
    RegistrationStatus,
    Roster,
    TeamOwnerRecord,
    TeamRegistrationRecord,
    Tournament,
)
from .schema import SchemaManager

logger = logging.getLogger(__name__)

ALERT_SETTING_COLUMNS = frozenset(AlertSettingUpdate.model_fields)


class RegistrationStore(Protocol):
    """Persistence collaborator used by the registration workflows."""

    def get_tournament(self, tournament_id: str) -> Tournament | None: ...

    def list_tournaments(self) -> list[Tournament]: ...

    def find_auction_player(
        self, tournament_id: str, name: str, phone: str, email: str
    ) -> AuctionPlayerRecord | None: ...

    def count_auction_players(self, tournament_id: str) -> int: ...

    def create_auction_player(self, record: AuctionPlayerRecord) -> AuctionPlayerRecord: ...

    def get_auction_player(self, player_id: str) -> AuctionPlayerRecord | None: ...

    def list_auction_players(
        self, tournament_id: str, status: AuctionStatus | None = None
    ) -> list[AuctionPlayerRecord]: ...

    def update_auction_player_status(
        self,
        player_id: str,
        status: AuctionStatus,
        sold_price: int | None = None,
        team_owner_id: str | None = None,
    ) -> AuctionPlayerRecord | None: ...

    def count_team_registrations(
        self, tournament_id: str, status: RegistrationStatus | None = None
    ) -> int: ...

    def create_team_registration(
        self, record: TeamRegistrationRecord
    ) -> TeamRegistrationRecord: ...

    def get_team_registration(self, registration_id: str) -> TeamRegistrationRecord | None: ...

    def update_team_registration_status(
        self,
        registration_id: str,
        status: RegistrationStatus,
        reviewed_by: str | None = None,
        rejection_reason: str | None = None,
    ) -> TeamRegistrationRecord | None: ...

    def count_team_owners(self, tournament_id: str) -> int: ...

    def next_team_index(self, tournament_id: str) -> int: ...

    def create_team_owner(self, record: TeamOwnerRecord) -> TeamOwnerRecord: ...

    def get_team_owner(self, owner_id: str) -> TeamOwnerRecord | None: ...

    def update_team_owner_verification(
        self, owner_id: str, verified: bool, auction_token: str | None
    ) -> TeamOwnerRecord | None: ...

    def list_team_owners(self, tournament_id: str) -> list[TeamOwnerRecord]: ...


def _now() -> str:
    return datetime.now().isoformat()


class RegistrationDatabaseManager:
    """Manages SQLite database operations for registrations and email alerts."""

    def __init__(self, db_path: str = "registrations.db"):
        self.db_path = Path(db_path)
        self.schema_manager = SchemaManager()
        self._init_database()

    def _init_database(self) -> None:
        with self._get_connection() as conn:
            self.schema_manager.initialize_database_schema(conn.cursor())
            conn.commit()
            logger.info(f"Registration database initialized at {self.db_path}")

    @contextmanager
    def _get_connection(self):
        """Get a database connection with proper error handling."""
        conn = None
        try:
            conn = sqlite3.connect(self.db_path)
            conn.row_factory = sqlite3.Row  # Enable column access by name
            yield conn
        except sqlite3.Error as e:
            if conn:
                conn.rollback()
            logger.error(f"Registration database error: {e}")
            raise
        finally:
            if conn:
                conn.close()

    # Tournaments

    def save_tournament(self, tournament: Tournament) -> None:
        """Insert or replace a tournament."""
        data = tournament.model_dump(mode="json")
        data["is_auction_based"] = int(tournament.is_auction_based)
        columns = list(data)
        with self._get_connection() as conn:
            conn.execute(
                f"""
                INSERT OR REPLACE INTO tournaments ({', '.join(columns)})
                VALUES ({', '.join('?' for _ in columns)})
                """,
                [data[column] for column in columns],
            )
            conn.commit()
            logger.info(f"Saved tournament {tournament.id}: {tournament.name}")

    def get_tournament(self, tournament_id: str) -> Tournament | None:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM tournaments WHERE id = ?", (tournament_id,)
            ).fetchone()
            if not row:
                return None
            return Tournament.model_validate(dict(row))

    def list_tournaments(self) -> list[Tournament]:
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM tournaments ORDER BY start_date DESC"
            ).fetchall()
            return [Tournament.model_validate(dict(row)) for row in rows]

    # Auction players

    def find_auction_player(
        self, tournament_id: str, name: str, phone: str, email: str
    ) -> AuctionPlayerRecord | None:
        """Exact match on the identity triple within one tournament."""
        with self._get_connection() as conn:
            row = conn.execute(
                """
                SELECT * FROM auction_players
                WHERE tournament_id = ? AND name = ? AND phone = ? AND email = ?
                """,
                (tournament_id, name, phone, email),
            ).fetchone()
            return AuctionPlayerRecord.model_validate(dict(row)) if row else None

    def count_auction_players(self, tournament_id: str) -> int:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM auction_players WHERE tournament_id = ?",
                (tournament_id,),
            ).fetchone()
            return row[0]

    def create_auction_player(self, record: AuctionPlayerRecord) -> AuctionPlayerRecord:
        """Insert an auction player; the unique triple turns races into duplicates."""
        if record.created_at is None:
            record = record.model_copy(update={"created_at": datetime.now()})
        data = record.model_dump(mode="json")
        columns = list(data)
        try:
            with self._get_connection() as conn:
                conn.execute(
                    f"""
                    INSERT INTO auction_players ({', '.join(columns)})
                    VALUES ({', '.join('?' for _ in columns)})
                    """,
                    [data[column] for column in columns],
                )
                conn.commit()
        except sqlite3.IntegrityError as e:
            raise DuplicateError(
                f"{record.name} is already registered for this tournament with "
                f"the same phone and email",
                matched={"name": record.name, "phone": record.phone, "email": record.email},
            ) from e
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to save player registration: {e}") from e

        logger.info(f"Created auction player {record.id} for tournament {record.tournament_id}")
        return record

    def get_auction_player(self, player_id: str) -> AuctionPlayerRecord | None:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM auction_players WHERE id = ?", (player_id,)
            ).fetchone()
            return AuctionPlayerRecord.model_validate(dict(row)) if row else None

    def list_auction_players(
        self, tournament_id: str, status: AuctionStatus | None = None
    ) -> list[AuctionPlayerRecord]:
        with self._get_connection() as conn:
            if status is not None:
                rows = conn.execute(
                    """
                    SELECT * FROM auction_players
                    WHERE tournament_id = ? AND auction_status = ?
                    ORDER BY created_at
                    """,
                    (tournament_id, status.value),
                ).fetchall()
            else:
                rows = conn.execute(
                    """
                    SELECT * FROM auction_players
                    WHERE tournament_id = ?
                    ORDER BY created_at
                    """,
                    (tournament_id,),
                ).fetchall()
            return [AuctionPlayerRecord.model_validate(dict(row)) for row in rows]

    def update_auction_player_status(
        self,
        player_id: str,
        status: AuctionStatus,
        sold_price: int | None = None,
        team_owner_id: str | None = None,
    ) -> AuctionPlayerRecord | None:
        """Update auction status; sold fields are cleared unless SOLD."""
        if status is not AuctionStatus.SOLD:
            sold_price = None
            team_owner_id = None

        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                UPDATE auction_players
                SET auction_status = ?, sold_price = ?, auction_team_id = ?
                WHERE id = ?
                """,
                (status.value, sold_price, team_owner_id, player_id),
            )
            updated = cursor.rowcount > 0
            conn.commit()

        if not updated:
            return None
        logger.info(f"Updated auction player {player_id} status to {status.value}")
        return self.get_auction_player(player_id)

    # Team registrations

    def count_team_registrations(
        self, tournament_id: str, status: RegistrationStatus | None = None
    ) -> int:
        query = "SELECT COUNT(*) FROM team_registrations WHERE tournament_id = ?"
        params: list[Any] = [tournament_id]
        if status is not None:
            query += " AND status = ?"
            params.append(status.value)
        with self._get_connection() as conn:
            row = conn.execute(query, params).fetchone()
            return row[0]

    def create_team_registration(
        self, record: TeamRegistrationRecord
    ) -> TeamRegistrationRecord:
        if record.registered_at is None:
            record = record.model_copy(update={"registered_at": datetime.now()})
        captain = record.roster.captain
        try:
            with self._get_connection() as conn:
                conn.execute(
                    """
                    INSERT INTO team_registrations (
                        id, tournament_id, team_name, team_city, captain_name,
                        captain_phone, captain_email, roster, emergency_contact,
                        payment_method, payment_amount, special_requests, status,
                        registered_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        record.id,
                        record.tournament_id,
                        record.team_name,
                        record.team_city,
                        captain.name if captain else "",
                        captain.phone if captain else "",
                        captain.email if captain else "",
                        record.roster.model_dump_json(),
                        record.emergency_contact.model_dump_json(),
                        record.payment_method,
                        record.payment_amount,
                        record.special_requests,
                        record.status.value,
                        record.registered_at.isoformat() if record.registered_at else _now(),
                    ),
                )
                conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to save team registration: {e}") from e

        logger.info(f"Created team registration {record.id}: {record.team_name}")
        return record

    def get_team_registration(self, registration_id: str) -> TeamRegistrationRecord | None:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM team_registrations WHERE id = ?", (registration_id,)
            ).fetchone()
            if not row:
                return None
            return TeamRegistrationRecord(
                id=row["id"],
                tournament_id=row["tournament_id"],
                team_name=row["team_name"],
                team_city=row["team_city"] or "",
                roster=Roster.model_validate_json(row["roster"]),
                emergency_contact=EmergencyContact.model_validate_json(
                    row["emergency_contact"]
                ),
                payment_method=row["payment_method"] or "",
                payment_amount=row["payment_amount"],
                special_requests=row["special_requests"] or "",
                status=row["status"],
                registered_at=row["registered_at"],
                reviewed_by=row["reviewed_by"],
                reviewed_at=row["reviewed_at"],
                rejection_reason=row["rejection_reason"],
            )

    def update_team_registration_status(
        self,
        registration_id: str,
        status: RegistrationStatus,
        reviewed_by: str | None = None,
        rejection_reason: str | None = None,
    ) -> TeamRegistrationRecord | None:
        """Record an approval or rejection; the reason is kept only for rejections."""
        if status is not RegistrationStatus.REJECTED:
            rejection_reason = None

        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                UPDATE team_registrations
                SET status = ?, reviewed_by = ?, reviewed_at = ?, rejection_reason = ?
                WHERE id = ?
                """,
                (status.value, reviewed_by, _now(), rejection_reason, registration_id),
            )
            updated = cursor.rowcount > 0
            conn.commit()

        if not updated:
            return None
        logger.info(f"Team registration {registration_id} marked {status.value}")
        return self.get_team_registration(registration_id)

    # Team owners

    def count_team_owners(self, tournament_id: str) -> int:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM team_owners WHERE tournament_id = ?",
                (tournament_id,),
            ).fetchone()
            return row[0]

    def next_team_index(self, tournament_id: str) -> int:
        """One past the highest team index taken in the tournament."""
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT MAX(team_index) FROM team_owners WHERE tournament_id = ?",
                (tournament_id,),
            ).fetchone()
            return (row[0] or 0) + 1

    def create_team_owner(self, record: TeamOwnerRecord) -> TeamOwnerRecord:
        if record.created_at is None:
            record = record.model_copy(update={"created_at": datetime.now()})
        data = record.model_dump(mode="json")
        data["verified"] = int(record.verified)
        data["entry_fee_paid"] = int(record.entry_fee_paid)
        columns = list(data)
        try:
            with self._get_connection() as conn:
                conn.execute(
                    f"""
                    INSERT INTO team_owners ({', '.join(columns)})
                    VALUES ({', '.join('?' for _ in columns)})
                    """,
                    [data[column] for column in columns],
                )
                conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to save team owner registration: {e}") from e

        logger.info(
            f"Created team owner {record.id} ({record.team_name}) "
            f"at index {record.team_index}"
        )
        return record

    def get_team_owner(self, owner_id: str) -> TeamOwnerRecord | None:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM team_owners WHERE id = ?", (owner_id,)
            ).fetchone()
            return TeamOwnerRecord.model_validate(dict(row)) if row else None

    def update_team_owner_verification(
        self, owner_id: str, verified: bool, auction_token: str | None
    ) -> TeamOwnerRecord | None:
        """Verify an owner with an auction token, or reject and revoke it.

        Rejection also clears the entry fee flag.
        """
        with self._get_connection() as conn:
            if verified:
                cursor = conn.execute(
                    "UPDATE team_owners SET verified = 1, auction_token = ? WHERE id = ?",
                    (auction_token, owner_id),
                )
            else:
                cursor = conn.execute(
                    """
                    UPDATE team_owners
                    SET verified = 0, entry_fee_paid = 0, auction_token = NULL
                    WHERE id = ?
                    """,
                    (owner_id,),
                )
            updated = cursor.rowcount > 0
            conn.commit()

        if not updated:
            return None
        logger.info(f"Team owner {owner_id} {'verified' if verified else 'rejected'}")
        return self.get_team_owner(owner_id)

    def list_team_owners(self, tournament_id: str) -> list[TeamOwnerRecord]:
        with self._get_connection() as conn:
            rows = conn.execute(
                """
                SELECT * FROM team_owners
                WHERE tournament_id = ?
                ORDER BY team_index
                """,
                (tournament_id,),
            ).fetchall()
            return [TeamOwnerRecord.model_validate(dict(row)) for row in rows]

    # Email alert settings

    def list_alert_settings(self) -> list[EmailAlertSetting]:
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM email_alert_settings ORDER BY alert_name"
            ).fetchall()
            return [EmailAlertSetting.model_validate(dict(row)) for row in rows]

    def get_alert_setting(self, alert_type: str) -> EmailAlertSetting | None:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM email_alert_settings WHERE alert_type = ?",
                (alert_type,),
            ).fetchone()
            return EmailAlertSetting.model_validate(dict(row)) if row else None

    def save_alert_setting(self, setting: EmailAlertSetting) -> None:
        """Insert or replace one alert setting row."""
        data = setting.model_dump(mode="json")
        if data["updated_at"] is None:
            data["updated_at"] = _now()
        columns = list(data)
        with self._get_connection() as conn:
            conn.execute(
                f"""
                INSERT OR REPLACE INTO email_alert_settings ({', '.join(columns)})
                VALUES ({', '.join('?' for _ in columns)})
                """,
                [data[column] for column in columns],
            )
            conn.commit()

    def update_alert_setting(
        self, alert_type: str, changes: dict[str, Any], modified_by: str | None
    ) -> EmailAlertSetting | None:
        unknown = set(changes) - ALERT_SETTING_COLUMNS
        if unknown:
            raise ValueError(f"Unknown alert setting fields: {sorted(unknown)}")

        # Build dynamic update query
        set_clauses = [f"{column} = ?" for column in changes]
        params: list[Any] = list(changes.values())
        set_clauses += ["last_modified_by = ?", "updated_at = ?"]
        params += [modified_by, _now(), alert_type]

        with self._get_connection() as conn:
            cursor = conn.execute(
                f"""
                UPDATE email_alert_settings
                SET {', '.join(set_clauses)}
                WHERE alert_type = ?
                """,
                params,
            )
            updated = cursor.rowcount > 0
            conn.commit()

        return self.get_alert_setting(alert_type) if updated else None

    def set_alerts_enabled(
        self, alert_types: list[str], enabled: bool, modified_by: str | None
    ) -> int:
        if not alert_types:
            return 0
        with self._get_connection() as conn:
            cursor = conn.execute(
                f"""
                UPDATE email_alert_settings
                SET is_enabled = ?, last_modified_by = ?, updated_at = ?
                WHERE alert_type IN ({', '.join('?' for _ in alert_types)})
                """,
                [int(enabled), modified_by, _now(), *alert_types],
            )
            conn.commit()
            return cursor.rowcount

    def set_testing_mode(self, enabled: bool, modified_by: str | None) -> int:
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                UPDATE email_alert_settings
                SET testing_mode = ?, last_modified_by = ?, updated_at = ?
                """,
                (int(enabled), modified_by, _now()),
            )
            conn.commit()
            return cursor.rowcount

    # Email activity

    def record_email_activity(self, entry: EmailActivity) -> None:
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO email_activity (
                    alert_type, recipient_class, recipients, subject, sent, reason,
                    testing_mode, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.alert_type,
                    entry.recipient_class,
                    json.dumps(entry.recipients),
                    entry.subject,
                    int(entry.sent),
                    entry.reason,
                    int(entry.testing_mode),
                    _now(),
                ),
            )
            conn.commit()

    def list_email_activity(self, limit: int = 100) -> list[dict[str, Any]]:
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM email_activity ORDER BY id DESC LIMIT ?", (limit,)
            ).fetchall()
            return [
                {
                    **dict(row),
                    "recipients": json.loads(row["recipients"]),
                    "sent": bool(row["sent"]),
                    "testing_mode": bool(row["testing_mode"]),
                }
                for row in rows
            ]
