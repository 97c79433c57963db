"""
Quick smoke test. Run with: python analyze_url.py <url> [--image-url URL] [--mode single|multi]
Runs one analysis through an AnalysisSession and prints progress plus the result.
Needs GEMINI_API_KEY in the environment.
"""

import argparse
import asyncio
import json
import logging
import sys

from extraction import AnalysisSession, ExtractionMode
from extraction.core import analyze

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

DEFAULT_URL = "https://example.com/vitamin-c"


def print_summary(data: dict) -> None:
    entity = data.get("coreEntity") or {}
    print(f"\nPage type: {data.get('pageType')}")
    print(f"Entity:    {entity.get('name')} ({entity.get('brand') or 'unknown brand'})")
    details = data.get("productDetails")
    if details:
        price = details.get("price") or {}
        print(f"Price:     {price.get('currency') or ''}{price.get('amount') or 'n/a'}")
        print(f"Nutrients: {len(details.get('nutritionalInformation', []))} row(s)")
    print("-" * 80)
    print(json.dumps(data, indent=2))


async def main(url: str, image_url: str = None, mode: ExtractionMode = None) -> int:
    async def analyzer(target, image=None):
        return await analyze(target, image, mode=mode)

    session = AnalysisSession(analyzer=analyzer, on_log=lambda message: print(f"  .. {message}"))
    print(f"\n>>> Analyzing: {url}\n")
    await session.analyze(url, image_url)

    snapshot = session.snapshot()
    if snapshot["status"] == "error":
        print(f"\nAnalysis failed: {snapshot['error']}")
        return 1
    print_summary(snapshot["data"])
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("url", nargs="?", default=DEFAULT_URL)
    parser.add_argument("--image-url", default=None)
    parser.add_argument("--mode", choices=[m.value for m in ExtractionMode], default=None)
    args = parser.parse_args()

    mode = ExtractionMode(args.mode) if args.mode else None
    sys.exit(asyncio.run(main(args.url, args.image_url, mode)))
