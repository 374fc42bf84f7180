from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Mapping

from flask import current_app


def _normalize_database_url(url: str) -> str:
    # Render/Heroku sometimes provide postgres:// which SQLAlchemy expects as postgresql://
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


def _is_placeholder(value: str) -> bool:
    return "YOUR" in (value or "")


def usable_secret(value: str | None) -> str:
    """Empty string for unset or placeholder secrets."""
    v = (value or "").strip()
    if not v or _is_placeholder(v):
        return ""
    return v


@dataclass(frozen=True)
class Config:
    env: str = "dev"
    secret_key: str = "dev-secret"
    database_url: str = "sqlite:///:memory:"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    paystack_secret_key: str = ""
    paystack_base_url: str = "https://api.paystack.co"
    paystack_timeout_seconds: float = 20.0

    stripe_secret_key: str = ""
    stripe_webhook_secret: str = ""
    stripe_tolerance_seconds: int = 300

    default_currency: str = "GHS"
    # Academic year runs from the 1st of this month to the last day of the month before it.
    academic_year_start_month: int = 8

    log_level: str = "INFO"

    @property
    def is_production(self) -> bool:
        return self.env in ("prod", "production")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Config":
        environ = os.environ if environ is None else environ
        env = (environ.get("SCHOOLPAY_ENV", "dev") or "dev").strip().lower()
        prod = env in ("prod", "production")

        secret = (environ.get("SECRET_KEY") or "").strip()
        if prod and len(secret) < 16:
            raise RuntimeError("SECRET_KEY must be set and at least 16 chars in production")

        database_url = (environ.get("SQLALCHEMY_DATABASE_URI") or environ.get("DATABASE_URL") or "").strip()
        if not database_url:
            if prod:
                raise RuntimeError("DATABASE_URL (or SQLALCHEMY_DATABASE_URI) must be set in production")
            instance_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "instance"))
            os.makedirs(instance_dir, exist_ok=True)
            database_url = f"sqlite:///{os.path.join(instance_dir, 'schoolpay.db').replace(os.sep, '/')}"

        raw_origins = (environ.get("CORS_ORIGINS") or "").strip()
        origins = [o.strip() for o in raw_origins.split(",") if o.strip()]
        if not origins and not prod:
            origins = ["*"]

        start_month = int(environ.get("ACADEMIC_YEAR_START_MONTH") or 8)
        if not 1 <= start_month <= 12:
            raise RuntimeError("ACADEMIC_YEAR_START_MONTH must be between 1 and 12")

        return cls(
            env=env,
            secret_key=secret or "dev-secret",
            database_url=_normalize_database_url(database_url),
            cors_origins=origins,
            paystack_secret_key=usable_secret(environ.get("PAYSTACK_SECRET_KEY")),
            paystack_base_url=(environ.get("PAYSTACK_BASE_URL") or "https://api.paystack.co").rstrip("/"),
            paystack_timeout_seconds=float(environ.get("PAYSTACK_TIMEOUT_SECONDS") or 20),
            stripe_secret_key=usable_secret(environ.get("STRIPE_SECRET_KEY")),
            stripe_webhook_secret=usable_secret(environ.get("STRIPE_WEBHOOK_SECRET")),
            stripe_tolerance_seconds=int(environ.get("STRIPE_TOLERANCE_SECONDS") or 300),
            default_currency=(environ.get("DEFAULT_CURRENCY") or "GHS").strip().upper(),
            academic_year_start_month=start_month,
            log_level=(environ.get("LOG_LEVEL") or "INFO").strip().upper(),
        )


EXTENSION_KEY = "schoolpay_config"


def current_config() -> Config:
    return current_app.extensions[EXTENSION_KEY]
