"""
StudioSession step flow: upload -> analyze -> configure -> generate -> refine.
"""
import json
import unittest
from unittest.mock import AsyncMock

from pydantic import ValidationError

from fakes import (
    ANALYSIS_JSON,
    SOURCE_IMAGE,
    Scripted,
    image_response,
    make_analysis,
    make_gateway,
    no_image_response,
    prompt_of,
    text_response,
)
from studio.schemas.generation import AspectRatio, ImageCategory, ImageStyle, Scenario
from studio.services.gateway import NoImageReturnedError, ParseError, TransportError
from studio.services.session.controller import SessionStateError, Step, StudioSession
from studio.utils.images import EncodedImage


class TestSessionFlow(unittest.IsolatedAsyncioTestCase):
    async def test_upload_analyze_generate_reaches_result(self):
        analysis = {"productType": "sneaker", "sellingPoints": ["breathable"],
                    "targetAudience": "runners", "suggestedPrompt": "studio shot",
                    "recommendedCategories": ["DETAIL"]}
        handler = Scripted(text_response(json.dumps(analysis)), image_response(data="cmVzdWx0"))
        gateway, _ = make_gateway(handler)
        session = StudioSession(gateway)

        session.upload([SOURCE_IMAGE])
        self.assertEqual(session.step, Step.UPLOAD)

        await session.analyze()
        self.assertEqual(session.step, Step.CONFIGURING)
        self.assertEqual(session.analysis.product_type, "sneaker")
        # First recommended category is preselected
        self.assertEqual(session.scene.category, ImageCategory.DETAIL)

        session.configure(style="studio", aspect_ratio="1:1")
        result = await session.generate()

        self.assertEqual(session.step, Step.RESULT)
        self.assertIsNone(session.error)
        self.assertEqual(len(session.results), 1)
        self.assertEqual(result.url, "data:image/png;base64,cmVzdWx0")
        self.assertEqual(result.aspect_ratio, AspectRatio.SQUARE)
        self.assertEqual(session.scene.style, ImageStyle.STUDIO)
        self.assertEqual(handler.bodies()[1]["config"]["imageConfig"]["aspectRatio"], "1:1")

    async def test_scenario_sets_its_ratio_and_reaches_the_prompt(self):
        handler = Scripted(text_response(json.dumps(ANALYSIS_JSON)), image_response())
        gateway, _ = make_gateway(handler)
        session = StudioSession(gateway)
        session.upload([SOURCE_IMAGE])
        await session.analyze()

        scene = session.configure(scenario="MOMENTS_POSTER")
        self.assertEqual(scene.aspect_ratio, AspectRatio.VERTICAL)
        result = await session.generate()

        self.assertEqual(result.scenario, Scenario.MOMENTS_POSTER)
        self.assertEqual(result.aspect_ratio, AspectRatio.VERTICAL)
        self.assertEqual(handler.bodies()[1]["config"]["imageConfig"]["aspectRatio"], "9:16")
        self.assertIn("TARGET SCENARIO: MOMENTS_POSTER", prompt_of(handler.requests[1]))

    async def test_analysis_failure_reverts_to_upload(self):
        gateway, _ = make_gateway(Scripted({"text": "not json"}))
        session = StudioSession(gateway)
        session.upload([SOURCE_IMAGE])

        result = await session.analyze()

        self.assertIsNone(result)
        self.assertEqual(session.step, Step.UPLOAD)
        self.assertIsNone(session.analysis)
        self.assertEqual(session.error.title, "Analysis failed")
        self.assertEqual(session.error.code, ParseError.code)

    async def test_generation_failure_reverts_to_configuring(self):
        handler = Scripted(text_response(json.dumps(ANALYSIS_JSON)), no_image_response())
        gateway, _ = make_gateway(handler)
        session = StudioSession(gateway)
        session.upload([SOURCE_IMAGE])
        await session.analyze()

        result = await session.generate()

        self.assertIsNone(result)
        self.assertEqual(session.step, Step.CONFIGURING)
        self.assertEqual(session.error.title, "Generation failed")
        self.assertEqual(session.error.code, NoImageReturnedError.code)
        self.assertEqual(session.results, [])

    async def test_next_action_clears_error(self):
        handler = Scripted(text_response(json.dumps(ANALYSIS_JSON)), no_image_response(), image_response())
        gateway, _ = make_gateway(handler)
        session = StudioSession(gateway)
        session.upload([SOURCE_IMAGE])
        await session.analyze()
        await session.generate()
        self.assertIsNotNone(session.error)

        await session.generate()
        self.assertIsNone(session.error)
        self.assertEqual(session.step, Step.RESULT)

    async def test_refine_appends_turns_and_sends_history(self):
        handler = Scripted(text_response(json.dumps(ANALYSIS_JSON)), image_response(), image_response())
        gateway, _ = make_gateway(handler)
        session = StudioSession(gateway)
        session.upload([SOURCE_IMAGE])
        await session.analyze()
        await session.generate()

        await session.refine("make the shadows softer")

        self.assertEqual(session.step, Step.RESULT)
        self.assertEqual([t.role for t in session.history], ["user", "assistant"])
        self.assertEqual(session.history[0].text, "make the shadows softer")
        self.assertIn("USER: make the shadows softer", prompt_of(handler.requests[2]))
        self.assertEqual(len(session.results), 2)

    async def test_refine_failure_keeps_user_turn(self):
        handler = Scripted(
            text_response(json.dumps(ANALYSIS_JSON)),
            image_response(),
            no_image_response(),
        )
        gateway, _ = make_gateway(handler)
        session = StudioSession(gateway)
        session.upload([SOURCE_IMAGE])
        await session.analyze()
        await session.generate()

        await session.refine("put it on a beach")

        self.assertEqual(session.step, Step.RESULT)
        self.assertEqual([t.role for t in session.history], ["user"])
        self.assertEqual(session.error.code, NoImageReturnedError.code)

    async def test_generate_suite_reaches_result(self):
        handler = Scripted(text_response(json.dumps(ANALYSIS_JSON)), image_response())
        gateway, _ = make_gateway(handler)
        session = StudioSession(gateway)
        session.upload([SOURCE_IMAGE])
        await session.analyze()

        suite = await session.generate_suite()

        self.assertEqual(session.step, Step.RESULT)
        self.assertEqual(len(suite.items), 4)
        self.assertEqual(session.results, suite.items)


class TestSessionGuards(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.gateway = AsyncMock()
        self.session = StudioSession(self.gateway, max_images=2)

    async def test_generate_before_analysis_is_rejected(self):
        self.session.upload([SOURCE_IMAGE])
        with self.assertRaises(SessionStateError):
            await self.session.generate()
        self.gateway.generate.assert_not_called()

    async def test_analyze_without_images_is_rejected(self):
        with self.assertRaises(SessionStateError):
            await self.session.analyze()

    async def test_refine_requires_result(self):
        self.session.upload([SOURCE_IMAGE])
        with self.assertRaises(SessionStateError):
            await self.session.refine("brighter")

    async def test_upload_keeps_at_most_max_images(self):
        self.session.upload([SOURCE_IMAGE] * 4)
        self.assertEqual(len(self.session.images), 2)

    async def test_configure_validates_enumerations(self):
        self.gateway.analyze.return_value = make_analysis()
        self.session.upload([SOURCE_IMAGE])
        await self.session.analyze()
        with self.assertRaises(ValidationError):
            self.session.configure(style="watercolor")
        scene = self.session.configure(fine_tunes=["water", "blur"], lighting="rim", ultra_hd=True)
        self.assertTrue(scene.ultra_hd)
        self.assertEqual([t.value for t in scene.fine_tunes], ["water", "blur"])

    async def test_explicit_ratio_wins_over_scenario_default(self):
        self.gateway.analyze.return_value = make_analysis()
        self.session.upload([SOURCE_IMAGE])
        await self.session.analyze()

        scene = self.session.configure(scenario="LIVE_OVERLAY", aspect_ratio="1:1")
        self.assertEqual(scene.aspect_ratio, AspectRatio.SQUARE)
        scene = self.session.configure(style="luxury")
        self.assertEqual(scene.scenario, Scenario.LIVE_OVERLAY)
        self.assertEqual(scene.aspect_ratio, AspectRatio.SQUARE)
        scene = self.session.configure(scenario=None)
        self.assertIsNone(scene.scenario)

    async def test_upload_during_analysis_drops_late_result(self):
        new_image = EncodedImage(data="bmV3")

        async def analyze_while_user_reuploads(images):
            self.session.upload([new_image])
            return make_analysis()

        self.gateway.analyze.side_effect = analyze_while_user_reuploads
        self.session.upload([SOURCE_IMAGE])

        result = await self.session.analyze()

        self.assertIsNone(result)
        self.assertIsNone(self.session.analysis)
        self.assertEqual(self.session.step, Step.UPLOAD)
        self.assertEqual(self.session.images, [new_image])

    async def test_late_failure_after_upload_is_not_reported(self):
        async def fail_after_reupload(images):
            self.session.upload([SOURCE_IMAGE])
            raise TransportError()

        self.gateway.analyze.side_effect = fail_after_reupload
        self.session.upload([SOURCE_IMAGE])

        await self.session.analyze()

        self.assertIsNone(self.session.error)
        self.assertEqual(self.session.step, Step.UPLOAD)

    async def test_dismiss_error(self):
        self.gateway.analyze.side_effect = TransportError()
        self.session.upload([SOURCE_IMAGE])
        await self.session.analyze()
        self.assertEqual(self.session.error.code, "NETWORK_ERROR")
        self.session.dismiss_error()
        self.assertIsNone(self.session.error)
