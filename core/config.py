"""
Configuration management for the chat hub.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field, field_validator
from typing import Optional


class ChatSettings(BaseModel):
    # Message Store capacity (bounded FIFO)
    max_messages: int = Field(default=1000, ge=1)
    # Prefix for names synthesized when a peer never declares one
    guest_prefix: str = "User_"


class ClientSettings(BaseModel):
    # Display-name override for the terminal client; random when unset
    name: Optional[str] = None


class DashboardSettings(BaseModel):
    enabled: bool = False
    refresh_interval_s: float = Field(default=1.0, gt=0)
    max_rows: int = Field(default=10, ge=1)


class Settings(BaseSettings):
    """Project settings."""

    PROJECT_NAME: str = Field(default="chathub")
    VERSION: str = Field(default="0.1.0")
    DEBUG: bool = Field(default=False)

    # Listener
    HOST: str = Field(default="127.0.0.1")
    PORT: int = Field(default=12345)

    CORS_ORIGINS: list = Field(default_factory=list)

    chat: ChatSettings = Field(default_factory=ChatSettings)
    client: ClientSettings = Field(default_factory=ClientSettings)
    dashboard: DashboardSettings = Field(default_factory=DashboardSettings)

    # Logging
    LOG_LEVEL: Optional[str] = Field(default=None)
    LOG_JSON: Optional[bool] = Field(default=None)
    LOG_REQUEST_BODY_MAX_BYTES: int = Field(default=2048)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v):
        """Accept a JSON array string or a comma-separated string."""
        if isinstance(v, list):
            return v
        if isinstance(v, str):
            s = v.strip()
            if not s:
                return []
            if s.startswith("[") and s.endswith("]"):
                import json
                try:
                    arr = json.loads(s)
                    if isinstance(arr, list):
                        return arr
                except ValueError:
                    pass
            if "," in s:
                return [item.strip() for item in s.split(",") if item.strip()]
            return [s]
        return v


settings = Settings()
