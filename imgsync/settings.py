from __future__ import annotations

import os
from dataclasses import dataclass


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


DEFAULT_IMAGE_REPO = "gcr.io/cloud-tagging-10302018/gtm-cloud-image"


@dataclass(frozen=True)
class Settings:
    # Registry
    image_repo: str = os.getenv("IMGSYNC_IMAGE_REPO", DEFAULT_IMAGE_REPO)
    manifest_url: str = os.getenv(
        "IMGSYNC_MANIFEST_URL", "https://gcr.io/v2/cloud-tagging-10302018/gtm-cloud-image/tags/list"
    )
    stable_tag: str = os.getenv("IMGSYNC_STABLE_TAG", "stable")
    http_timeout_s: int = _env_int("IMGSYNC_HTTP_TIMEOUT_S", 10)

    # Convergence
    poll_interval_s: int = _env_int("IMGSYNC_POLL_INTERVAL_S", 10)
    poll_max_attempts: int = _env_int("IMGSYNC_POLL_MAX_ATTEMPTS", 30)
    update_timeout_s: int = _env_int("IMGSYNC_UPDATE_TIMEOUT_S", 600)

    # Event journal
    db_path: str = os.getenv("IMGSYNC_DB_PATH", "imgsync.db")

    # Email alerting (optional)
    enable_email: bool = _env_bool("IMGSYNC_ENABLE_EMAIL", False)
    smtp_host: str = os.getenv("IMGSYNC_SMTP_HOST", "smtp.gmail.com")
    smtp_port: int = _env_int("IMGSYNC_SMTP_PORT", 587)
    smtp_user: str | None = os.getenv("IMGSYNC_SMTP_USER")
    smtp_password: str | None = os.getenv("IMGSYNC_SMTP_PASSWORD")
    email_from: str | None = os.getenv("IMGSYNC_EMAIL_FROM")
    email_to: str | None = os.getenv("IMGSYNC_EMAIL_TO")


settings = Settings()
