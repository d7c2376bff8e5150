#!/usr/bin/env python3
"""
Analyze product photos and render one scene (or the full marketing suite).
Run from the project root: python -m scripts.render_product shoe.jpg --style studio --ratio 1:1
Gateway settings come from .env (GEMINI_PROXY_URL or GEMINI_API_KEY).
"""
import argparse
import asyncio
import os
import sys
from pathlib import Path

# project root on PYTHONPATH
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from studio.core.config import settings
from studio.core.logging import configure_logging
from studio.schemas.generation import AspectRatio, ImageCategory, ImageStyle, Scenario
from studio.services.gateway import GeminiGateway
from studio.services.session.controller import StudioSession
from studio.utils.images import EncodedImage

_EXTENSIONS = {"image/png": "png", "image/jpeg": "jpg", "image/webp": "webp", "image/gif": "gif"}


def _save(data_uri: str, out_dir: Path, name: str) -> Path:
    image = EncodedImage.from_data_uri(data_uri)
    path = out_dir / f"{name}.{_EXTENSIONS.get(image.mime_type, 'png')}"
    path.write_bytes(image.to_bytes())
    return path


async def run(args: argparse.Namespace) -> int:
    images = [EncodedImage.from_path(p) for p in args.images]
    out_dir = Path(args.out)
    out_dir.mkdir(parents=True, exist_ok=True)

    async with GeminiGateway.create_from_settings(settings) as gateway:
        session = StudioSession(gateway)
        session.upload(images)
        analysis = await session.analyze()
        if analysis is None:
            print(f"{session.error.title}: {session.error.message}")
            return 1
        print(f"Product: {analysis.product_type} | selling points: {', '.join(analysis.selling_points)}")

        changes = {"style": args.style, "ultra_hd": args.hd}
        if args.ratio:
            changes["aspect_ratio"] = args.ratio
        if args.category:
            changes["category"] = args.category
        if args.scenario:
            changes["scenario"] = args.scenario
        session.configure(**changes)

        if args.suite:
            suite = await session.generate_suite()
            if suite is None:
                print(f"{session.error.title}: {session.error.message}")
                return 1
            for item in suite.items:
                if item.ok:
                    print(f"  {item.platform_name}: {_save(item.url, out_dir, item.platform_name.lower())}")
                else:
                    print(f"  {item.platform_name}: failed ({item.error.message})")
            return 0

        result = await session.generate()
        for text in args.refine or []:
            if result is None:
                break
            result = await session.refine(text)
        if result is None:
            print(f"{session.error.title}: {session.error.message}")
            return 1
        print(f"Saved: {_save(result.url, out_dir, 'result')}")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("images", nargs="+", help="product photo(s)")
    parser.add_argument("--style", default=ImageStyle.STUDIO.value, choices=[s.value for s in ImageStyle])
    parser.add_argument("--ratio", choices=[r.value for r in AspectRatio], help="defaults to 1:1 or the scenario ratio")
    parser.add_argument("--scenario", choices=[s.value for s in Scenario])
    parser.add_argument("--category", choices=[c.value for c in ImageCategory])
    parser.add_argument("--hd", action="store_true", help="use the ultra-HD model")
    parser.add_argument("--refine", action="append", help="refinement request (repeatable)")
    parser.add_argument("--suite", action="store_true", help="render the marketing suite")
    parser.add_argument("--out", default="output")
    args = parser.parse_args()

    configure_logging()
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
