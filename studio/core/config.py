"""
Application configuration.
All settings are loaded from environment variables (or .env).
The gateway never reads these at call time: build a GatewayConfig from them
and pass it to the client.
"""
from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ===========================================
    # GEMINI GATEWAY - TRANSPORT
    # ===========================================
    # BFF endpoint holding the real key (e.g. https://shop.example.com/api/gemini).
    # When set, requests go through the proxy and gemini_api_key is ignored.
    gemini_proxy_url: str = ""
    gemini_api_key: str = ""  # Direct mode - Get from https://aistudio.google.com/apikey
    gemini_api_endpoint: str = "https://generativelanguage.googleapis.com"
    gemini_timeout: float = 120.0

    # ===========================================
    # GEMINI GATEWAY - MODELS
    # ===========================================
    gemini_analysis_model: str = "gemini-3-flash-preview"
    gemini_image_model: str = "gemini-2.5-flash-image"
    gemini_image_model_hd: str = "gemini-3-pro-image-preview"

    # ===========================================
    # GEMINI GATEWAY - RETRY & CLASSIFICATION
    # ===========================================
    # Retries after the first attempt, transport errors only
    gateway_retry_count: int = 2
    gateway_retry_delay_ms: int = 1500
    gateway_retry_backoff: str = "linear"  # linear, fixed
    # Comma-separated free-text markers, used only when status/code fields are inconclusive
    gateway_quota_markers: str = "RESOURCE_EXHAUSTED,limit: 0,quota"
    gateway_network_markers: str = "NETWORK_BLOCKED,Failed to fetch,NetworkError,fetch failed"
    gateway_auth_markers: str = "API_KEY_MISSING,API_KEY_INVALID,API key not valid,API_KEY_NOT_CONFIGURED"

    # ===========================================
    # SESSION
    # ===========================================
    max_source_images: int = 5

    # ===========================================
    # LOGGING
    # ===========================================
    log_level: str = "INFO"
    log_file: str | None = None
    log_max_bytes: int = 10_000_000
    log_backup_count: int = 5

    @field_validator("gateway_retry_backoff")
    @classmethod
    def validate_backoff(cls, v: str) -> str:
        value = v.strip().lower()
        if value not in ("linear", "fixed"):
            raise ValueError("gateway_retry_backoff must be 'linear' or 'fixed'")
        return value

    @field_validator("gateway_retry_count")
    @classmethod
    def validate_retry_count(cls, v: int) -> int:
        if v < 0:
            raise ValueError("gateway_retry_count must be >= 0")
        return v

    @staticmethod
    def _split(value: str) -> frozenset[str]:
        return frozenset(m.strip() for m in value.split(",") if m.strip())

    @property
    def quota_markers_set(self) -> frozenset[str]:
        return self._split(self.gateway_quota_markers)

    @property
    def network_markers_set(self) -> frozenset[str]:
        return self._split(self.gateway_network_markers)

    @property
    def auth_markers_set(self) -> frozenset[str]:
        return self._split(self.gateway_auth_markers)

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


settings = Settings()
