"""Configuration settings and data models."""

import json
import shutil
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, field_validator


class DatabaseConfig(BaseModel):
    """Registration database configuration."""

    path: str = Field(default="registrations.db", description="SQLite database file")


class EmailConfig(BaseModel):
    """SMTP settings for outbound notifications."""

    enabled: bool = Field(default=False, description="Send real email over SMTP")
    smtp_server: str = Field(default="", description="SMTP host")
    smtp_port: int = Field(default=587, description="SMTP port")
    smtp_user: str = Field(default="", description="SMTP login")
    smtp_password: str | None = Field(
        default=None, description="SMTP password (can also be set via SMTP_PASSWORD env var)"
    )
    from_email: str = Field(default="", description="Sender address")
    from_name: str = Field(default="Club Registrations", description="Sender display name")
    use_tls: bool = Field(default=True, description="Issue STARTTLS before login")
    timeout_seconds: float = Field(default=30.0, description="SMTP socket timeout")


class NotificationConfig(BaseModel):
    """Notification gating and delivery configuration."""

    admin_recipients: list[str] = Field(
        default_factory=list, description="Addresses that receive admin alerts"
    )
    alert_cache_ttl_seconds: float = Field(
        default=60.0, description="How long alert settings are cached before reload"
    )
    send_timeout_seconds: float = Field(
        default=30.0, description="Upper bound for one email send"
    )
    max_concurrent_sends: int = Field(
        default=5, description="Sends in flight at once during fan-out"
    )
    send_when_setting_missing: bool = Field(
        default=True, description="Send when an alert type has no settings row"
    )
    send_on_settings_error: bool = Field(
        default=True, description="Send when alert settings cannot be read"
    )
    activity_log: Literal["logging", "database"] = Field(
        default="logging", description="Where email activity entries are written"
    )

    @field_validator("max_concurrent_sends")
    @classmethod
    def validate_concurrency(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_concurrent_sends must be at least 1")
        return v


class RegistrationConfig(BaseModel):
    """Registration workflow limits."""

    max_photo_bytes: int = Field(
        default=5 * 1024 * 1024, description="Largest accepted profile photo"
    )
    allowed_photo_types: list[str] = Field(
        default=["image/jpeg", "image/jpg", "image/png", "image/webp"],
        description="Accepted profile photo content types",
    )
    min_player_age: int = Field(default=16, description="Youngest auction player")
    min_owner_age: int = Field(default=18, description="Youngest team owner")
    photo_dir: str = Field(default="uploads/players", description="Profile photo storage")
    auction_link_base: str = Field(
        default="http://localhost:3000/auction",
        description="Base URL of the personal auction links sent to verified owners",
    )


class SystemConfig(BaseModel):
    """System-wide configuration."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8000, description="Bind port")


class AppConfig(BaseModel):
    """Complete application configuration."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    email: EmailConfig = Field(default_factory=EmailConfig)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)
    registration: RegistrationConfig = Field(default_factory=RegistrationConfig)
    system: SystemConfig = Field(default_factory=SystemConfig)

    @classmethod
    def load_from_file(cls, config_path: Path) -> "AppConfig":
        """Load configuration from JSON file."""
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        required_sections = ["database", "notifications", "system"]
        missing_sections = [
            section for section in required_sections if section not in data
        ]
        if missing_sections:
            raise ValueError(f"Missing required config sections: {missing_sections}")

        return cls(**data)

    def save_to_file(self, config_path: Path) -> None:
        """Save configuration to YAML file."""
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w", encoding="utf-8") as f:
            yaml.dump(
                self.model_dump(exclude_unset=True),
                f,
                default_flow_style=False,
                indent=2,
            )


def get_default_config(config_path: Path = Path("registration_config.json")) -> AppConfig:
    """Load configuration from registration_config.json, creating it if needed."""
    if not config_path.exists():
        example_path = config_path.with_name("registration_config.example.json")
        if example_path.exists():
            shutil.copy2(example_path, config_path)
        else:
            template_config = get_template_config()
            with open(config_path, "w", encoding="utf-8") as f:
                json.dump(template_config.model_dump(mode="json"), f, indent=2)
    return AppConfig.load_from_file(config_path)


def get_template_config() -> AppConfig:
    """Get template configuration for config file generation."""
    return AppConfig(
        database=DatabaseConfig(path="registrations.db"),
        email=EmailConfig(
            enabled=False,
            smtp_server="smtp.gmail.com",
            smtp_port=587,
            smtp_user="",
            smtp_password=None,  # Set here or use SMTP_PASSWORD env var
            from_email="",
            from_name="Club Registrations",
        ),
        notifications=NotificationConfig(
            admin_recipients=[],
            alert_cache_ttl_seconds=60.0,
            send_timeout_seconds=30.0,
            max_concurrent_sends=5,
        ),
        registration=RegistrationConfig(),
        system=SystemConfig(log_level="INFO"),
    )
