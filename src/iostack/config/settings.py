"""Client settings loaded from the environment (IOSTACK_* variables) or a .env file."""

from functools import lru_cache
from typing import Any

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PLATFORM_ROOT = "https://platform.iostack.ai"


class ClientSettings(BaseSettings):
    """Settings for one IOStack client.

    Hey future me - explicit constructor args on IOStackClient always win over these!
    Settings are just the defaults, so tests and embedders can build a client without
    touching the environment. Complex fields (use_case_data, metadata_details) are
    parsed as JSON when they come from env vars, e.g.
    IOSTACK_USE_CASE_DATA='{"customer": "acme"}'.
    """

    model_config = SettingsConfigDict(
        env_prefix="IOSTACK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # SecretStr keeps the key out of repr() and accidental log lines
    access_key: SecretStr | None = None
    platform_root: str = DEFAULT_PLATFORM_ROOT
    user_id: str | None = None
    use_case_data: dict[str, Any] | None = None

    # Seconds. The stream deadline covers the whole response drain, not just the headers.
    request_timeout: float = Field(default=30.0, gt=0)
    stream_timeout: float = Field(default=60.0, gt=0)

    # Use-case metadata fetched once per start_session (GET /v1/use_case/meta?details=...)
    metadata_details: list[str] = Field(default_factory=lambda: ["trigger_phrase"])

    log_level: str = "INFO"
    json_logs: bool = False

    def get_access_key(self) -> str | None:
        """Return the raw access key, or None if not configured."""
        if self.access_key is None:
            return None
        return self.access_key.get_secret_value()


@lru_cache
def get_settings() -> ClientSettings:
    """Return process-wide settings (cached after the first call)."""
    return ClientSettings()
