from __future__ import annotations

import os
from dataclasses import dataclass


class ConfigError(ValueError):
    pass


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    # Docker
    docker_api_version: str = os.getenv("DOCKER_API_VERSION", "1.39")
    call_timeout_s: int = _env_int("AUTOHEAL_CALL_TIMEOUT", 60)
    label_filter: str | None = os.getenv("AUTOHEAL_LABEL")

    # Remediation loop
    interval_s: int = _env_int("AUTOHEAL_INTERVAL", 5)
    base_backoff_s: int = _env_int("AUTOHEAL_BASE_BACKOFF", 10)
    max_backoff_s: int = _env_int("AUTOHEAL_MAX_BACKOFF", 600)
    reset_window_s: int = _env_int("AUTOHEAL_RESET_WINDOW", 3600)
    max_concurrent_passes: int = _env_int("AUTOHEAL_MAX_PASSES", 4)
    # 0 keeps every record for the life of the process.
    record_ttl_s: int = _env_int("AUTOHEAL_RECORD_TTL", 0)

    # Status API / event log
    db_path: str = os.getenv("AUTOHEAL_DB_PATH", "autoheal.db")
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = _env_int("PORT", 8080)

    # Email alerting (optional)
    enable_email: bool = _env_bool("AUTOHEAL_ENABLE_EMAIL", False)
    smtp_host: str = os.getenv("AUTOHEAL_SMTP_HOST", "smtp.gmail.com")
    smtp_port: int = _env_int("AUTOHEAL_SMTP_PORT", 587)
    smtp_user: str | None = os.getenv("AUTOHEAL_SMTP_USER")
    smtp_password: str | None = os.getenv("AUTOHEAL_SMTP_PASSWORD")
    email_from: str | None = os.getenv("AUTOHEAL_EMAIL_FROM")
    email_to: str | None = os.getenv("AUTOHEAL_EMAIL_TO")

    def validate(self) -> None:
        """Raise ConfigError unless every duration knob is strictly positive."""
        for field_name in ("interval_s", "base_backoff_s", "max_backoff_s", "reset_window_s", "call_timeout_s"):
            value = getattr(self, field_name)
            if value <= 0:
                raise ConfigError(f"{field_name} must be a positive integer, got {value}.")
        if self.max_concurrent_passes < 1:
            raise ConfigError(f"max_concurrent_passes must be at least 1, got {self.max_concurrent_passes}.")
        if self.record_ttl_s < 0:
            raise ConfigError(f"record_ttl_s must not be negative, got {self.record_ttl_s}.")
        if not 1 <= self.port <= 65535:
            raise ConfigError(f"port must be within 1..65535, got {self.port}.")


settings = Settings()
