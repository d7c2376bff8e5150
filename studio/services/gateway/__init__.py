"""
Gemini gateway: analysis and image generation with retry and failure classification.
"""
from .base import (
    AuthError,
    GatewayConfig,
    GatewayError,
    GenerationRequest,
    NoImageReturnedError,
    ParseError,
    QuotaExhaustedError,
    TransportError,
    UpstreamError,
    sanitize_response_for_log,
)
from .client import GeminiGateway
from .failure_types import FailureType, classify_failure
from .runner import call_with_retry

__all__ = [
    "AuthError",
    "GatewayConfig",
    "GatewayError",
    "GenerationRequest",
    "NoImageReturnedError",
    "ParseError",
    "QuotaExhaustedError",
    "TransportError",
    "UpstreamError",
    "sanitize_response_for_log",
    "GeminiGateway",
    "FailureType",
    "classify_failure",
    "call_with_retry",
]
