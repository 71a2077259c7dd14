import os
from dataclasses import dataclass

# Largest accepted upload is a 50MB video; leave room for the multipart envelope.
_MAX_REQUEST_BYTES = 60 * 1024 * 1024


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str
    log_level: str
    session_hours: int

    # Uploaded files: local disk under upload_root, or an S3-compatible bucket
    storage_backend: str
    upload_root: str
    s3_endpoint: str
    s3_region: str
    s3_bucket: str
    s3_access_key_id: str
    s3_secret_access_key: str

    @property
    def is_production(self) -> bool:
        return self.env in ("prod", "production")


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _getenv_int(name: str, default: int) -> int:
    raw = _getenv(name)
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development").lower(),
        database_url=_getenv("DATABASE_URL", "sqlite:///tourcms.db"),
        log_level=_getenv("LOG_LEVEL", "INFO").upper(),
        session_hours=max(_getenv_int("SESSION_HOURS", 8), 1),
        storage_backend=_getenv("STORAGE_BACKEND", "local").lower(),
        upload_root=_getenv("UPLOAD_ROOT", os.path.join(os.getcwd(), "public")),
        s3_endpoint=_getenv("S3_ENDPOINT"),
        s3_region=_getenv("S3_REGION", "ap-southeast-1"),
        s3_bucket=_getenv("S3_BUCKET"),
        s3_access_key_id=_getenv("S3_ACCESS_KEY_ID"),
        s3_secret_access_key=_getenv("S3_SECRET_ACCESS_KEY"),
    )


def load_config() -> dict:
    s = load_settings()
    config = {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "LOG_LEVEL": s.log_level,
        "SESSION_HOURS": s.session_hours,
        "MAX_CONTENT_LENGTH": _MAX_REQUEST_BYTES,
        # admin session cookie
        "SESSION_COOKIE_HTTPONLY": True,
        "SESSION_COOKIE_SAMESITE": "Lax",
        "SESSION_COOKIE_SECURE": s.is_production,
        "STORAGE_BACKEND": s.storage_backend,
        "UPLOAD_ROOT": s.upload_root,
    }
    config.update(
        {
            f"S3_{name.upper()}": getattr(s, f"s3_{name}")
            for name in ("endpoint", "region", "bucket", "access_key_id", "secret_access_key")
        }
    )
    return config
