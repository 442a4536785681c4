from __future__ import annotations

from dataclasses import dataclass
import os

_DEFAULT_CORS_ORIGINS = "https://www.kingsofchaos.com,https://kingsofchaos.com"


def _split_csv(raw: str) -> tuple[str, ...]:
    return tuple(p.strip() for p in raw.split(",") if p.strip())


def _flag(raw: str) -> bool:
    return raw.strip().lower() in ("true", "1", "yes")


@dataclass(frozen=True)
class RuntimeSettings:
    store_backend: str
    postgres_user: str
    postgres_password: str
    postgres_host: str
    postgres_port: int
    postgres_db: str
    database_url_override: str
    auto_migrate: bool
    jwt_secret: str
    token_ttl_hours: int
    allowed_alliance: str
    cors_allowed_origins: tuple[str, ...]
    stale_after_hours: int
    port: int
    log_level: str

    @classmethod
    def from_env(cls) -> "RuntimeSettings":
        return cls(
            store_backend=os.getenv("STORE_BACKEND", "postgres").strip().lower(),
            postgres_user=os.getenv("POSTGRES_USER", "roster"),
            postgres_password=os.getenv("POSTGRES_PASSWORD", "roster"),
            postgres_host=os.getenv("POSTGRES_HOST", "postgres"),
            postgres_port=int(os.getenv("POSTGRES_PORT", "5432")),
            postgres_db=os.getenv("POSTGRES_DB", "roster"),
            database_url_override=os.getenv("DATABASE_URL", "").strip(),
            auto_migrate=_flag(os.getenv("AUTO_MIGRATE", "true")),
            jwt_secret=os.getenv("JWT_SECRET", "").strip(),
            token_ttl_hours=int(os.getenv("TOKEN_TTL_HOURS", "12")),
            allowed_alliance=os.getenv("ALLOWED_ALLIANCE", "Sweet Revenge").strip(),
            cors_allowed_origins=_split_csv(
                os.getenv("CORS_ALLOWED_ORIGINS", _DEFAULT_CORS_ORIGINS)
            ),
            stale_after_hours=int(os.getenv("STALE_AFTER_HOURS", "24")),
            port=int(os.getenv("PORT", "3000")),
            log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
        )

    @property
    def database_url(self) -> str:
        # Hosted Postgres providers hand out a single DATABASE_URL.
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql+psycopg2://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def auth_enabled(self) -> bool:
        return bool(self.jwt_secret)
