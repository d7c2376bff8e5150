"""
Failure normalization for the Gemini gateway.
Classifies opaque upstream / transport failures into a fixed taxonomy:
structured status first, structured code second, free-text markers last.
"""
from enum import Enum
from typing import Any, Iterable


class FailureType(str, Enum):
    TRANSPORT = "transport"  # network unreachable, timeout; retried
    QUOTA_EXHAUSTED = "quota_exhausted"  # 429 / RESOURCE_EXHAUSTED
    AUTH = "auth"  # missing or invalid credential
    UPSTREAM = "upstream"  # any other non-success from the provider


QUOTA_CODES = frozenset({"RESOURCE_EXHAUSTED"})
AUTH_CODES = frozenset({
    "UNAUTHENTICATED",
    "PERMISSION_DENIED",
    "API_KEY_MISSING",
    "API_KEY_INVALID",
    "API_KEY_NOT_CONFIGURED",
})

DEFAULT_QUOTA_MARKERS = frozenset({"RESOURCE_EXHAUSTED", "limit: 0", "quota"})
DEFAULT_NETWORK_MARKERS = frozenset({"NETWORK_BLOCKED", "Failed to fetch", "NetworkError", "fetch failed"})
DEFAULT_AUTH_MARKERS = frozenset({
    "API_KEY_MISSING",
    "API_KEY_INVALID",
    "API key not valid",
    "API_KEY_NOT_CONFIGURED",
})


def extract_error_codes(body: dict[str, Any] | None) -> set[str]:
    """
    Collect structured code fields from an error body.
    Proxy shape: {"error": "RESOURCE_EXHAUSTED", "message": ...}
    Provider shape: {"error": {"code": 429, "status": "RESOURCE_EXHAUSTED", ...}}
    """
    codes: set[str] = set()
    if not body:
        return codes
    err = body.get("error")
    if isinstance(err, str):
        codes.add(err.strip().upper())
    elif isinstance(err, dict):
        status = err.get("status")
        if isinstance(status, str):
            codes.add(status.strip().upper())
        for d in err.get("details") or []:
            reason = d.get("reason") if isinstance(d, dict) else None
            if isinstance(reason, str):
                codes.add(reason.strip().upper())
    status = body.get("status")
    if isinstance(status, str):
        codes.add(status.strip().upper())
    codes.discard("")
    return codes


def extract_error_message(body: dict[str, Any] | None) -> str:
    if not body:
        return ""
    message = body.get("message")
    if isinstance(message, str) and message:
        return message
    err = body.get("error")
    if isinstance(err, dict) and isinstance(err.get("message"), str):
        return err["message"]
    return ""


def _contains_any(text: str, markers: Iterable[str]) -> bool:
    lowered = text.lower()
    return any(m and m.lower() in lowered for m in markers)


def classify_failure(
    http_status: int | None,
    body: dict[str, Any] | None = None,
    message: str = "",
    *,
    quota_markers: Iterable[str] = DEFAULT_QUOTA_MARKERS,
    network_markers: Iterable[str] = DEFAULT_NETWORK_MARKERS,
    auth_markers: Iterable[str] = DEFAULT_AUTH_MARKERS,
) -> FailureType:
    """
    Classify a failed exchange.
    http_status is None when no HTTP response was received at all.
    """
    # 1. Structured status
    if http_status == 429:
        return FailureType.QUOTA_EXHAUSTED
    if http_status in (401, 403):
        return FailureType.AUTH

    # 2. Structured code field
    codes = extract_error_codes(body)
    if codes & QUOTA_CODES:
        return FailureType.QUOTA_EXHAUSTED
    if codes & AUTH_CODES:
        return FailureType.AUTH

    # 3. Free-text markers
    text = " ".join(t for t in (message, extract_error_message(body)) if t)
    if text:
        if _contains_any(text, quota_markers):
            return FailureType.QUOTA_EXHAUSTED
        if _contains_any(text, auth_markers):
            return FailureType.AUTH
        if _contains_any(text, network_markers):
            return FailureType.TRANSPORT

    # 4. Default
    if http_status is None:
        return FailureType.TRANSPORT
    return FailureType.UPSTREAM
