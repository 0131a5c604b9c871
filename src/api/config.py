"""Application settings assembled once at process start."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_DATABASE_NAME = 'users_api'
DEFAULT_API_PREFIX = '/api'


@dataclass(frozen=True)
class Settings:
    mongo_url: str | None = None
    database_name: str = DEFAULT_DATABASE_NAME
    api_prefix: str = DEFAULT_API_PREFIX
    cors_origins: tuple[str, ...] = ('*',)
    log_level: str = 'INFO'
    port: int = 8000

    @property
    def cors_allow_all(self) -> bool:
        return self.cors_origins == ('*',)


def _parse_origins(raw: str) -> tuple[str, ...]:
    # "*" stays a wildcard; otherwise strip whitespace from "origin1, origin2"
    if raw.strip() == '*':
        return ('*',)
    return tuple(origin.strip() for origin in raw.split(',') if origin.strip())


def load_settings() -> Settings:
    """Read settings from the environment (and a local .env file, if any)."""
    load_dotenv()
    prefix = os.getenv('API_PREFIX', DEFAULT_API_PREFIX).rstrip('/')
    return Settings(
        mongo_url=os.getenv('MONGO_URL') or None,
        database_name=os.getenv('MONGODB_DATABASE', DEFAULT_DATABASE_NAME),
        api_prefix=prefix,
        cors_origins=_parse_origins(os.getenv('CORS_ORIGINS', '*')),
        log_level=os.getenv('LOG_LEVEL', 'INFO').upper(),
        port=int(os.getenv('PORT', '8000')),
    )
