"""
Studio session: the upload -> analyze -> configure -> generate -> refine flow.
Owns all session state; the gateway stays stateless. Gateway failures are
turned into an ErrorReport and the step reverts to the last stable one.
No retries at this layer.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Sequence

from studio.core.config import settings
from studio.schemas.analysis import MarketAnalysis
from studio.schemas.generation import (
    ChatTurn,
    ErrorReport,
    GeneratedImage,
    GeneratedSuite,
    SceneParameters,
)
from studio.services.gateway import GatewayError, GeminiGateway
from studio.services.prompts.catalog import ASSISTANT_REFINE_ACK, SCENARIO_ASPECT_RATIOS
from studio.services.suite.service import generate_suite
from studio.utils.images import EncodedImage

logger = logging.getLogger(__name__)


class Step(str, Enum):
    UPLOAD = "upload"
    ANALYZING = "analyzing"
    CONFIGURING = "configuring"
    GENERATING = "generating"
    REFINING = "refining"
    RESULT = "result"


# Steps the user can sit in between actions
STABLE_STEPS = frozenset({Step.UPLOAD, Step.CONFIGURING, Step.RESULT})


class SessionStateError(ValueError):
    """Action not allowed in the current step."""


class StudioSession:
    def __init__(self, gateway: GeminiGateway, max_images: int | None = None) -> None:
        self.gateway = gateway
        self.max_images = max_images or settings.max_source_images
        self.step = Step.UPLOAD
        self.images: list[EncodedImage] = []
        self.analysis: MarketAnalysis | None = None
        self.scene = SceneParameters()
        self.results: list[GeneratedImage] = []
        self.suite: GeneratedSuite | None = None
        self.history: list[ChatTurn] = []
        self.error: ErrorReport | None = None
        # Bumped on upload; results of calls started under an older epoch are dropped
        self._epoch = 0

    # ---------- helpers ----------

    @property
    def is_busy(self) -> bool:
        return self.step not in STABLE_STEPS

    @property
    def result(self) -> GeneratedImage | None:
        return self.results[-1] if self.results else None

    def _move(self, new_step: Step) -> None:
        if new_step != self.step:
            logger.info("session_step", extra={"old_step": self.step.value, "new_step": new_step.value})
        self.step = new_step

    def _require(self, *allowed: Step) -> None:
        if self.step not in allowed:
            raise SessionStateError(
                f"Action not allowed in step '{self.step.value}' "
                f"(allowed: {', '.join(s.value for s in allowed)})"
            )

    def _fail(self, error: GatewayError, title: str, revert_to: Step) -> None:
        self.error = error.to_report(title=title)
        logger.warning(
            "session_action_failed",
            extra={"step": self.step.value, "failure_type": error.code, "error": error.message},
        )
        self._move(revert_to)

    # ---------- actions ----------

    def upload(self, images: Sequence[EncodedImage]) -> None:
        """Replace the source images; everything derived from the old ones is dropped."""
        if not images:
            raise ValueError("upload() needs at least one image")
        self._epoch += 1
        self.images = list(images)[: self.max_images]
        self.analysis = None
        self.results = []
        self.suite = None
        self.history = []
        self.error = None
        self._move(Step.UPLOAD)

    def dismiss_error(self) -> None:
        self.error = None

    async def analyze(self) -> MarketAnalysis | None:
        self._require(Step.UPLOAD, Step.CONFIGURING)
        if not self.images:
            raise SessionStateError("Upload at least one product image first")
        self.error = None
        prior = self.step
        epoch = self._epoch
        self._move(Step.ANALYZING)
        try:
            analysis = await self.gateway.analyze(self.images)
        except GatewayError as e:
            if epoch == self._epoch:
                self._fail(e, "Analysis failed", prior)
            return None
        if epoch != self._epoch:
            logger.info("session_stale_result_dropped", extra={"operation": "analyze"})
            return None

        self.analysis = analysis
        if analysis.recommended_categories:
            self.scene = self.scene.model_copy(update={"category": analysis.recommended_categories[0]})
        self._move(Step.CONFIGURING)
        return analysis

    def configure(self, **changes: Any) -> SceneParameters:
        """
        Update scene parameters; values are validated against the enumerations.
        Picking a scenario also picks its ratio unless aspect_ratio is given too.
        """
        self._require(Step.CONFIGURING, Step.RESULT)
        self.error = None
        scene = SceneParameters.model_validate({**self.scene.model_dump(), **changes})
        if changes.get("scenario") is not None and "aspect_ratio" not in changes:
            scene = scene.model_copy(update={"aspect_ratio": SCENARIO_ASPECT_RATIOS[scene.scenario]})
        self.scene = scene
        return self.scene

    async def generate(self) -> GeneratedImage | None:
        self._require(Step.CONFIGURING, Step.RESULT)
        if self.analysis is None:
            raise SessionStateError("Analyze the product before generating")
        return await self._render(Step.GENERATING, refinement=None)

    async def refine(self, text: str) -> GeneratedImage | None:
        """Append a user turn and re-render with the whole conversation as context."""
        self._require(Step.RESULT)
        text = (text or "").strip()
        if not text:
            raise ValueError("Refinement text is empty")
        self.history.append(ChatTurn(role="user", text=text))
        return await self._render(Step.REFINING, refinement=text)

    async def generate_suite(self) -> GeneratedSuite | None:
        self._require(Step.CONFIGURING, Step.RESULT)
        if self.analysis is None:
            raise SessionStateError("Analyze the product before generating")
        self.error = None
        prior = self.step
        epoch = self._epoch
        self._move(Step.GENERATING)
        try:
            suite = await generate_suite(self.gateway, self.images, self.scene, self.analysis)
        except GatewayError as e:
            if epoch == self._epoch:
                self._fail(e, "Suite generation failed", prior)
            return None
        if epoch != self._epoch:
            logger.info("session_stale_result_dropped", extra={"operation": "suite"})
            return None

        self.suite = suite
        self.results = list(suite.items)
        self._move(Step.RESULT)
        return suite

    async def _render(self, busy_step: Step, refinement: str | None) -> GeneratedImage | None:
        self.error = None
        prior = self.step
        epoch = self._epoch
        scene = self.scene
        self._move(busy_step)
        try:
            image = await self.gateway.generate(self.images, scene, self.analysis, self.history)
        except GatewayError as e:
            if epoch == self._epoch:
                self._fail(e, "Generation failed", prior)
            return None
        if epoch != self._epoch:
            logger.info("session_stale_result_dropped", extra={"operation": "generate"})
            return None

        item = GeneratedImage(
            url=image.to_data_uri(),
            category=scene.category,
            platform_name="",
            description=refinement or (self.analysis.suggested_prompt if self.analysis else ""),
            aspect_ratio=scene.aspect_ratio,
            scenario=scene.scenario,
        )
        self.results.append(item)
        if refinement is not None:
            self.history.append(ChatTurn(role="assistant", text=ASSISTANT_REFINE_ACK))
        self._move(Step.RESULT)
        return item
