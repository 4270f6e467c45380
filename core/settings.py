from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv
from limits import parse as parse_rate

load_dotenv()

SUPPORTED_STORAGE_BACKENDS = {"http", "local", "s3"}
RATE_LIMIT_ENV_VARS = (
    "PUBLIC_TOKEN_LOOKUP_RATE",
    "PUBLIC_UPLOAD_RATE_PER_TOKEN",
    "PUBLIC_UPLOAD_RATE_PER_SOURCE",
)

DEFAULT_PUBLIC_TOKEN_LOOKUP_RATE = "20/minute"
DEFAULT_PUBLIC_UPLOAD_RATE_PER_TOKEN = "30/minute"
DEFAULT_PUBLIC_UPLOAD_RATE_PER_SOURCE = "60/minute"


def _split_csv(value: str | None) -> tuple[str, ...]:
    if not value:
        return tuple()
    return tuple(item.strip() for item in value.split(",") if item.strip())


def _env(name: str) -> str | None:
    raw_value = os.getenv(name)
    if raw_value is None:
        return None
    normalized = raw_value.strip()
    return normalized or None


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes"}


def collect_missing_required_env_vars() -> list[str]:
    missing: list[str] = []

    for var_name in ("AUTH_JWT_SECRET", "MONGO_URL", "DB_NAME"):
        if _env(var_name) is None:
            missing.append(var_name)

    storage_backend = (_env("STORAGE_BACKEND") or "http").lower()
    if storage_backend == "http" and _env("UPLOAD_SERVICE_URL") is None:
        missing.append("UPLOAD_SERVICE_URL")
    if storage_backend == "s3" and _env("S3_BUCKET_NAME") is None:
        missing.append("S3_BUCKET_NAME")

    return sorted(set(missing))


def collect_invalid_env_values() -> list[str]:
    invalid_values: list[str] = []

    storage_backend = (_env("STORAGE_BACKEND") or "http").lower()
    if storage_backend not in SUPPORTED_STORAGE_BACKENDS:
        invalid_values.append("STORAGE_BACKEND must be one of: http, local, s3")

    timeout = _env("UPLOAD_SERVICE_TIMEOUT_SECONDS")
    if timeout is not None:
        try:
            if float(timeout) <= 0:
                raise ValueError("must be positive")
        except ValueError:
            invalid_values.append("UPLOAD_SERVICE_TIMEOUT_SECONDS must be a positive number")

    for var_name in RATE_LIMIT_ENV_VARS:
        rule = _env(var_name)
        if rule is None:
            continue
        try:
            parse_rate(rule)
        except ValueError:
            invalid_values.append(f"{var_name} must be a rate limit string such as '30/minute'")

    return invalid_values


def validate_required_environment() -> None:
    missing_vars = collect_missing_required_env_vars()
    invalid_values = collect_invalid_env_values()
    if not missing_vars and not invalid_values:
        return

    message_lines = ["Application startup blocked by invalid environment configuration."]
    if missing_vars:
        message_lines.append("")
        message_lines.append("Missing required environment variables:")
        message_lines.extend(f"- {name}" for name in missing_vars)
    if invalid_values:
        message_lines.append("")
        message_lines.append("Invalid environment values:")
        message_lines.extend(f"- {message}" for message in invalid_values)
    raise RuntimeError("\n".join(message_lines))


@dataclass(frozen=True)
class Settings:
    env: str
    log_level: str
    public_app_origin: str
    cors_origins: tuple[str, ...]
    debug_include_error_details: bool
    mongo_url: str
    db_name: str
    storage_backend: str
    storage_local_root: str
    s3_bucket_name: str | None
    s3_region: str | None
    s3_endpoint_url: str | None
    upload_service_url: str | None
    upload_service_timeout_seconds: float
    auth_jwt_secret: str
    auth_jwt_algorithm: str
    auth_jwt_audience: str | None
    rate_limit_storage_uri: str
    public_token_lookup_rate: str = DEFAULT_PUBLIC_TOKEN_LOOKUP_RATE
    public_upload_rate_per_token: str = DEFAULT_PUBLIC_UPLOAD_RATE_PER_TOKEN
    public_upload_rate_per_source: str = DEFAULT_PUBLIC_UPLOAD_RATE_PER_SOURCE

    @property
    def is_production(self) -> bool:
        return self.env.lower() == "production"

    @property
    def is_local(self) -> bool:
        return self.env.lower() in {"local", "development"}


def load_settings() -> Settings:
    validate_required_environment()

    return Settings(
        env=os.getenv("ENV", "development"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        public_app_origin=(_env("PUBLIC_APP_ORIGIN") or "http://localhost:5173").rstrip("/"),
        cors_origins=_split_csv(os.getenv("CORS_ORIGINS")),
        debug_include_error_details=_flag("DEBUG_INCLUDE_ERROR_DETAILS"),
        mongo_url=os.getenv("MONGO_URL", ""),
        db_name=os.getenv("DB_NAME", ""),
        storage_backend=(_env("STORAGE_BACKEND") or "http").lower(),
        storage_local_root=os.getenv("STORAGE_LOCAL_ROOT", "uploads"),
        s3_bucket_name=_env("S3_BUCKET_NAME"),
        s3_region=_env("S3_REGION"),
        s3_endpoint_url=_env("S3_ENDPOINT_URL"),
        upload_service_url=_env("UPLOAD_SERVICE_URL"),
        upload_service_timeout_seconds=float(_env("UPLOAD_SERVICE_TIMEOUT_SECONDS") or "60"),
        auth_jwt_secret=os.getenv("AUTH_JWT_SECRET", ""),
        auth_jwt_algorithm=_env("AUTH_JWT_ALGORITHM") or "HS256",
        auth_jwt_audience=_env("AUTH_JWT_AUDIENCE") or "authenticated",
        rate_limit_storage_uri=_env("RATE_LIMIT_STORAGE_URI") or "memory://",
        public_token_lookup_rate=_env("PUBLIC_TOKEN_LOOKUP_RATE") or DEFAULT_PUBLIC_TOKEN_LOOKUP_RATE,
        public_upload_rate_per_token=_env("PUBLIC_UPLOAD_RATE_PER_TOKEN") or DEFAULT_PUBLIC_UPLOAD_RATE_PER_TOKEN,
        public_upload_rate_per_source=_env("PUBLIC_UPLOAD_RATE_PER_SOURCE") or DEFAULT_PUBLIC_UPLOAD_RATE_PER_SOURCE,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
