"""
API configuration settings.
"""

from typing import Dict, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class APIConfig(BaseSettings):
    """API configuration settings."""

    # API Settings
    api_title: str = "Book Management API"
    api_version: str = "1.0.0"
    api_description: str = "API to manage a collection of books"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 3000
    debug: bool = False

    # Database Settings
    database_url: str = "sqlite+aiosqlite:///./books.db"
    database_echo: bool = False

    # Security Settings
    jwt_secret: str = Field(default="change-me-in-production", min_length=1)
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = Field(default=60, ge=1)

    # Optional login credentials, comma-separated "user:password" pairs
    auth_users: str = ""

    # CORS Settings
    cors_origins: List[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: List[str] = ["*"]
    cors_allow_headers: List[str] = ["*"]

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"
    log_file: Optional[str] = None

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore"  # Ignore extra fields from .env
    }

    @field_validator('jwt_algorithm')
    @classmethod
    def validate_algorithm(cls, v):
        """Only HMAC algorithms work with a shared secret."""
        if v.upper() not in ('HS256', 'HS384', 'HS512'):
            raise ValueError('jwt_algorithm must be one of: HS256, HS384, HS512')
        return v.upper()

    @field_validator('auth_users')
    @classmethod
    def validate_auth_users(cls, v):
        """Each credential entry must be "user:password"."""
        for entry in v.split(","):
            if entry.strip() and ":" not in entry:
                raise ValueError(f'Malformed auth_users entry: {entry.strip()!r}')
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'log_level must be one of: {valid_levels}')
        return v.upper()

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v):
        """Ensure log format is valid."""
        valid_formats = ['json', 'console']
        if v.lower() not in valid_formats:
            raise ValueError(f'log_format must be one of: {valid_formats}')
        return v.lower()

    @property
    def access_token_expire_seconds(self) -> int:
        return self.access_token_expire_minutes * 60

    def get_auth_users(self) -> Dict[str, str]:
        """
        Parse the configured login credentials.

        Returns:
            Mapping of username to password, empty when no list is configured
        """
        users = {}
        for entry in self.auth_users.split(","):
            entry = entry.strip()
            if not entry:
                continue
            username, _, password = entry.partition(":")
            users[username.strip()] = password
        return users
