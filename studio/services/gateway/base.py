"""
Base types for the Gemini gateway: config, request value, error taxonomy and
response helpers shared by analyze / generate.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, Field

from studio.schemas.analysis import MarketAnalysis
from studio.schemas.generation import ChatTurn, ErrorReport, SceneParameters
from studio.services.gateway.failure_types import (
    DEFAULT_AUTH_MARKERS,
    DEFAULT_NETWORK_MARKERS,
    DEFAULT_QUOTA_MARKERS,
)
from studio.utils.images import EncodedImage


class GatewayConfig(BaseModel):
    """Everything the client needs; injected at construction, never read from env at call time."""

    proxy_url: str | None = None
    api_key: str | None = None
    api_endpoint: str = "https://generativelanguage.googleapis.com"
    timeout: float = 120.0
    retry_count: int = Field(default=2, ge=0)
    retry_delay_ms: int = Field(default=1500, ge=0)
    retry_backoff: Literal["linear", "fixed"] = "linear"
    quota_markers: frozenset[str] = DEFAULT_QUOTA_MARKERS
    network_markers: frozenset[str] = DEFAULT_NETWORK_MARKERS
    auth_markers: frozenset[str] = DEFAULT_AUTH_MARKERS
    analysis_model: str = "gemini-3-flash-preview"
    image_model: str = "gemini-2.5-flash-image"
    image_model_hd: str = "gemini-3-pro-image-preview"

    model_config = {"frozen": True}

    @classmethod
    def from_settings(cls, settings) -> "GatewayConfig":
        return cls(
            proxy_url=(settings.gemini_proxy_url or "").strip() or None,
            api_key=(settings.gemini_api_key or "").strip() or None,
            api_endpoint=settings.gemini_api_endpoint,
            timeout=settings.gemini_timeout,
            retry_count=settings.gateway_retry_count,
            retry_delay_ms=settings.gateway_retry_delay_ms,
            retry_backoff=settings.gateway_retry_backoff,
            quota_markers=settings.quota_markers_set,
            network_markers=settings.network_markers_set,
            auth_markers=settings.auth_markers_set,
            analysis_model=settings.gemini_analysis_model,
            image_model=settings.gemini_image_model,
            image_model_hd=settings.gemini_image_model_hd,
        )

    @property
    def uses_proxy(self) -> bool:
        return bool(self.proxy_url)

    @property
    def is_configured(self) -> bool:
        return bool(self.proxy_url or self.api_key)


@dataclass
class GenerationRequest:
    """Assembled fresh for each generate call."""
    images: list[EncodedImage]
    scene: SceneParameters
    analysis: MarketAnalysis
    history: list[ChatTurn] = field(default_factory=list)

    @property
    def image_size(self) -> str:
        return "2K" if self.scene.ultra_hd else "1K"


# ---------- Error taxonomy ----------


class GatewayError(Exception):
    """Base for classified gateway failures; detail holds fields for logging."""

    code = "GATEWAY_ERROR"
    title = "Request failed"
    default_message = "The AI service request failed."

    def __init__(self, message: str | None = None, detail: dict[str, Any] | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)
        self.detail = detail or {}

    def to_report(self, title: str | None = None) -> ErrorReport:
        return ErrorReport(title=title or self.title, message=self.message, code=self.code)


class TransportError(GatewayError):
    code = "NETWORK_ERROR"
    title = "Network error"
    default_message = "Network connection failed. Check the proxy route or your network settings."


class UpstreamError(GatewayError):
    code = "UPSTREAM_ERROR"
    title = "AI service error"
    default_message = "The AI service returned an error."

    def __init__(
        self,
        message: str | None = None,
        http_status: int | None = None,
        detail: dict[str, Any] | None = None,
    ):
        super().__init__(message, detail)
        self.http_status = http_status


class QuotaExhaustedError(UpstreamError):
    code = "RESOURCE_EXHAUSTED"
    title = "Quota exhausted"
    default_message = "Too many requests or quota exhausted, please try again later."
    zero_limit_message = (
        "Model quota is restricted (limit: 0). Link a billing account in Google AI Studio "
        "and use a production image model."
    )


class AuthError(GatewayError):
    code = "AUTH_ERROR"
    title = "Not connected"
    default_message = "The API credential is missing or invalid. Reconnect the API key and retry."
    reconnect = True


class ParseError(GatewayError):
    code = "PARSE_ERROR"
    title = "Analysis failed"
    default_message = "The model did not return a valid analysis."


class NoImageReturnedError(GatewayError):
    code = "NO_IMAGE_RETURNED"
    title = "No image returned"
    default_message = (
        "The model responded without image data. The request may have been blocked by safety filters."
    )


# ---------- Response helpers ----------


_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


def strip_code_fence(text: str) -> str:
    return _FENCE_RE.sub("", text or "").strip()


def _first_candidate_parts(result: dict[str, Any]) -> list[dict[str, Any]]:
    candidates = result.get("candidates") or []
    if not candidates:
        return []
    content = candidates[0].get("content") or {}
    return content.get("parts") or []


def extract_text(result: dict[str, Any]) -> str:
    """First text part of the first candidate, falling back to top-level text."""
    for part in _first_candidate_parts(result):
        if isinstance(part.get("text"), str) and part["text"]:
            return part["text"]
    text = result.get("text")
    return text if isinstance(text, str) else ""


def find_image_part(result: dict[str, Any]) -> dict[str, Any] | None:
    for part in _first_candidate_parts(result):
        inline = part.get("inlineData") or part.get("inline_data")
        if inline and isinstance(inline.get("data"), str) and inline["data"]:
            return inline
    return None


def build_error_detail(result: dict[str, Any]) -> dict[str, Any]:
    """
    Safety-related fields from a success response without usable content.
    Normalized keys: block_reason, finish_reason, finish_message, safety_ratings.
    """
    detail: dict[str, Any] = {}
    if not result:
        return detail
    prompt_feedback = result.get("promptFeedback") or {}
    if prompt_feedback.get("blockReason"):
        detail["block_reason"] = prompt_feedback["blockReason"]
    candidates = result.get("candidates") or []
    if candidates:
        c0 = candidates[0]
        if "finishReason" in c0:
            detail["finish_reason"] = c0["finishReason"]
        if "finishMessage" in c0:
            detail["finish_message"] = c0["finishMessage"]
        if "safetyRatings" in c0:
            detail["safety_ratings"] = c0["safetyRatings"]
    return detail


def _sanitize_value(value: Any) -> Any:
    """Recursively replace base64 data with placeholder."""
    if isinstance(value, dict):
        if "data" in value and "mimeType" in value:
            return {"mimeType": value.get("mimeType"), "data": "[REDACTED]"}
        return {k: _sanitize_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_sanitize_value(v) for v in value]
    return value


def sanitize_response_for_log(result: dict[str, Any]) -> dict[str, Any]:
    if not result:
        return {}
    out = _sanitize_value(result)
    return out if isinstance(out, dict) else {}
