"""
Shared test doubles: scripted httpx transport and canned Gemini responses.
"""
import json
from typing import Any, Callable

import httpx

from studio.schemas.analysis import MarketAnalysis
from studio.services.gateway import GatewayConfig, GeminiGateway
from studio.utils.images import EncodedImage

PROXY_URL = "https://shop.test/api/gemini"

SOURCE_IMAGE = EncodedImage(data="c291cmNl", mime_type="image/png")

ANALYSIS_JSON: dict[str, Any] = {
    "productType": "sneaker",
    "targetAudience": "urban runners",
    "sellingPoints": ["breathable", "lightweight"],
    "suggestedPrompt": "clean studio shot of a running shoe",
    "recommendedCategories": ["WHITEBG", "billboard"],
    "marketingCopy": {"title": "Air Runner", "shortDesc": "Light as air", "tags": ["run", "mesh"]},
    "isApparel": False,
}


def make_analysis(**overrides: Any) -> MarketAnalysis:
    return MarketAnalysis.model_validate({**ANALYSIS_JSON, **overrides})


def text_response(text: str) -> dict[str, Any]:
    return {"candidates": [{"content": {"parts": [{"text": text}]}, "finishReason": "STOP"}]}


def image_response(data: str = "Z2VuZXJhdGVk", mime: str = "image/png") -> dict[str, Any]:
    return {
        "candidates": [{
            "content": {"parts": [
                {"text": "Here is the scene."},
                {"inlineData": {"data": data, "mimeType": mime}},
            ]},
            "finishReason": "STOP",
        }],
    }


def no_image_response() -> dict[str, Any]:
    return {
        "candidates": [{
            "content": {"parts": [{"text": "I can't render that."}]},
            "finishReason": "SAFETY",
        }],
    }


class Scripted:
    """
    MockTransport handler returning outcomes in order (the last one repeats).
    An outcome is a dict (200 JSON), an httpx.Response, an exception instance,
    or a callable(request) -> any of those.
    """

    def __init__(self, *outcomes: Any) -> None:
        self.outcomes = list(outcomes)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests) - 1, len(self.outcomes) - 1)
        outcome = self.outcomes[index]
        if callable(outcome) and not isinstance(outcome, (dict, httpx.Response)):
            outcome = outcome(request)
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, httpx.Response):
            return outcome
        return httpx.Response(200, json=outcome)

    def bodies(self) -> list[dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests]


def make_gateway(
    handler: Callable[[httpx.Request], httpx.Response],
    **config: Any,
) -> tuple[GeminiGateway, list[float]]:
    """Gateway wired to a mock transport; returns it with the list of recorded sleeps."""
    sleeps: list[float] = []

    async def fake_sleep(delay: float) -> None:
        sleeps.append(delay)

    cfg = GatewayConfig(**{"proxy_url": PROXY_URL, **config})
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GeminiGateway(cfg, http_client=client, sleep=fake_sleep), sleeps


def prompt_of(request: httpx.Request) -> str:
    """Instruction text of a proxy-shaped request."""
    body = json.loads(request.content)
    return body["contents"]["parts"][-1]["text"]
