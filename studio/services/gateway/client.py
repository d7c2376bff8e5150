"""
Gemini gateway client (generateContent over httpx).
Two transports: the credential proxy (BFF wire shape) or the provider REST
endpoint with an injected api key. Failures are classified into the
gateway taxonomy; transport failures are retried by the runner.
"""
from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Any, Awaitable, Callable, Sequence

import httpx
from pydantic import ValidationError

from studio.schemas.analysis import MarketAnalysis
from studio.schemas.generation import ChatTurn, SceneParameters
from studio.services.gateway.base import (
    AuthError,
    GatewayConfig,
    GenerationRequest,
    NoImageReturnedError,
    ParseError,
    QuotaExhaustedError,
    TransportError,
    UpstreamError,
    build_error_detail,
    extract_text,
    find_image_part,
    sanitize_response_for_log,
    strip_code_fence,
)
from studio.services.gateway.failure_types import (
    FailureType,
    classify_failure,
    extract_error_codes,
    extract_error_message,
)
from studio.services.gateway.runner import call_with_retry
from studio.services.prompts.builder import (
    ANALYSIS_INSTRUCTION,
    ANALYSIS_RESPONSE_SCHEMA,
    build_generation_prompt,
)
from studio.utils.images import DEFAULT_MIME_TYPE, EncodedImage
from studio.utils.metrics import (
    gateway_failures_total,
    gateway_request_duration_seconds,
    gateway_requests_total,
)

logger = logging.getLogger(__name__)


class GeminiGateway:
    """Stateless request/response client; one instance can serve many sessions."""

    def __init__(
        self,
        config: GatewayConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.config = config
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=config.timeout)
        self._sleep = sleep

    @classmethod
    def create_from_settings(cls, settings, **kwargs: Any) -> "GeminiGateway":
        config = GatewayConfig.from_settings(settings)
        if not config.is_configured:
            logger.warning("Gateway created but neither proxy url nor api key is configured")
        return cls(config, **kwargs)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "GeminiGateway":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ---------- Operations ----------

    async def analyze(self, images: Sequence[EncodedImage]) -> MarketAnalysis:
        """Ask the vision model for a structured description of the product."""
        if not images:
            raise ValueError("analyze() needs at least one image")
        parts = [img.to_part() for img in images]
        parts.append({"text": ANALYSIS_INSTRUCTION})
        config = {
            "responseMimeType": "application/json",
            "responseSchema": ANALYSIS_RESPONSE_SCHEMA,
        }
        result = await self._call("analyze", self.config.analysis_model, parts, config)
        analysis = self._parse_analysis(result)
        logger.info(
            "product_analyzed",
            extra={"operation": "analyze", "image_count": len(images)},
        )
        return analysis

    async def generate(
        self,
        images: Sequence[EncodedImage],
        scene: SceneParameters,
        analysis: MarketAnalysis | None,
        history: Sequence[ChatTurn] | None = None,
    ) -> EncodedImage:
        """
        Re-render the product into the selected scene.
        history is read, never modified; the caller owns appending turns.
        """
        if analysis is None:
            raise ValueError("Market analysis is required before generation; call analyze() first")
        if not images:
            raise ValueError("generate() needs at least one image")

        request = GenerationRequest(
            images=list(images),
            scene=scene,
            analysis=analysis,
            history=list(history or []),
        )
        prompt = build_generation_prompt(request.scene, request.analysis, request.history)
        model = self.config.image_model_hd if scene.ultra_hd else self.config.image_model
        parts = [img.to_part() for img in request.images]
        parts.append({"text": prompt})
        config = {
            "responseModalities": ["TEXT", "IMAGE"],
            "imageConfig": {
                "aspectRatio": scene.aspect_ratio.value,
                "imageSize": request.image_size,
            },
        }

        result = await self._call("generate", model, parts, config)
        inline = find_image_part(result)
        if inline is None:
            detail = build_error_detail(result)
            logger.warning(
                "generate_no_image",
                extra={
                    "operation": "generate",
                    "model": model,
                    "response": sanitize_response_for_log(result),
                },
            )
            gateway_failures_total.labels(operation="generate", failure_type="no_image").inc()
            raise NoImageReturnedError(detail=detail)

        mime = inline.get("mimeType") or inline.get("mime_type") or DEFAULT_MIME_TYPE
        return EncodedImage(data=inline["data"], mime_type=mime)

    # ---------- Transport ----------

    async def _call(
        self,
        operation: str,
        model: str,
        parts: list[dict[str, Any]],
        config: dict[str, Any],
    ) -> dict[str, Any]:
        async def attempt() -> dict[str, Any]:
            return await self._exchange(operation, model, parts, config)

        return await call_with_retry(attempt, self.config, operation=operation, sleep=self._sleep)

    def _build_http_request(
        self,
        model: str,
        parts: list[dict[str, Any]],
        config: dict[str, Any],
    ) -> tuple[str, dict[str, str], dict[str, Any]]:
        if self.config.uses_proxy:
            payload = {"model": model, "contents": {"parts": parts}, "config": config}
            return self.config.proxy_url, {}, payload

        url = f"{self.config.api_endpoint.rstrip('/')}/v1beta/models/{model}:generateContent"
        payload = {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": dict(config),
        }
        return url, {"key": self.config.api_key or ""}, payload

    async def _exchange(
        self,
        operation: str,
        model: str,
        parts: list[dict[str, Any]],
        config: dict[str, Any],
    ) -> dict[str, Any]:
        """One HTTP round trip; returns the decoded success body or raises a GatewayError."""
        if not self.config.is_configured:
            gateway_failures_total.labels(operation=operation, failure_type=FailureType.AUTH.value).inc()
            raise AuthError(detail={"reason": "API_KEY_NOT_CONFIGURED"})

        url, params, payload = self._build_http_request(model, parts, config)
        started = time.monotonic()
        try:
            resp = await self._client.post(url, params=params or None, json=payload)
        except httpx.TransportError as e:
            gateway_requests_total.labels(operation=operation, status="error").inc()
            gateway_failures_total.labels(operation=operation, failure_type=FailureType.TRANSPORT.value).inc()
            logger.warning(
                "gateway_transport_error",
                extra={"operation": operation, "model": model, "error": type(e).__name__},
            )
            raise TransportError(detail={"error": type(e).__name__, "error_message": str(e)}) from e
        finally:
            gateway_request_duration_seconds.labels(operation=operation).observe(time.monotonic() - started)

        try:
            body = resp.json()
        except ValueError:
            body = {"error": "RESPONSE_NOT_JSON"}

        if not resp.is_success:
            gateway_requests_total.labels(operation=operation, status="error").inc()
            self._raise_classified(operation, model, resp, body if isinstance(body, dict) else {})

        if not isinstance(body, dict) or body.get("error") == "RESPONSE_NOT_JSON":
            gateway_requests_total.labels(operation=operation, status="error").inc()
            raise UpstreamError("The AI service returned an unreadable response", http_status=resp.status_code)

        gateway_requests_total.labels(operation=operation, status="ok").inc()
        logger.debug(
            "gateway_response",
            extra={
                "operation": operation,
                "model": model,
                "status_code": resp.status_code,
                "latency_ms": int((time.monotonic() - started) * 1000),
            },
        )
        return body

    def _raise_classified(
        self,
        operation: str,
        model: str,
        resp: httpx.Response,
        body: dict[str, Any],
    ) -> None:
        status = resp.status_code
        message = extract_error_message(body)
        failure_type = classify_failure(
            status,
            body,
            message,
            quota_markers=self.config.quota_markers,
            network_markers=self.config.network_markers,
            auth_markers=self.config.auth_markers,
        )
        detail: dict[str, Any] = {
            "http_status": status,
            "codes": sorted(extract_error_codes(body)),
            "provider_message": message,
            "failure_type": failure_type.value,
        }
        retry_after = resp.headers.get("Retry-After")
        if retry_after is not None:
            detail["retry_after"] = retry_after

        gateway_failures_total.labels(operation=operation, failure_type=failure_type.value).inc()
        logger.warning(
            "gateway_upstream_error",
            extra={
                "operation": operation,
                "model": model,
                "status_code": status,
                "failure_type": failure_type.value,
                "error": message,
            },
        )

        if failure_type == FailureType.QUOTA_EXHAUSTED:
            text = QuotaExhaustedError.zero_limit_message if "limit: 0" in message else None
            raise QuotaExhaustedError(text, http_status=status, detail=detail)
        if failure_type == FailureType.AUTH:
            raise AuthError(detail=detail)
        if failure_type == FailureType.TRANSPORT:
            raise TransportError(detail=detail)
        raise UpstreamError(message or f"API request failed: {status}", http_status=status, detail=detail)

    # ---------- Parsing ----------

    @staticmethod
    def _parse_analysis(result: dict[str, Any]) -> MarketAnalysis:
        raw = extract_text(result)
        if not raw.strip():
            raise ParseError("The model returned no analysis text", detail=build_error_detail(result))
        cleaned = strip_code_fence(raw)
        try:
            data = json.loads(cleaned)
        except json.JSONDecodeError as e:
            raise ParseError(detail={"raw": cleaned[:500], "error": str(e)}) from e
        if not isinstance(data, dict):
            raise ParseError(detail={"raw": cleaned[:500], "error": "not a JSON object"})
        try:
            return MarketAnalysis.model_validate(data)
        except ValidationError as e:
            fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
            raise ParseError(
                f"The analysis is missing or has invalid fields: {', '.join(fields)}",
                detail={"invalid_fields": fields},
            ) from e
