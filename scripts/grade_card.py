#!/usr/bin/env python3
"""
Grade a trading card photo from the terminal.

Usage:
    python scripts/grade_card.py --file path/to/card.jpg
    python scripts/grade_card.py --camera [--camera-index 0] [--warmup 10]
    python scripts/grade_card.py --file card.png --relay-url http://127.0.0.1:8001/v1/grade

Direct mode needs XIMILAR_API_KEY in the environment; relayed mode does not.
"""

import argparse
import asyncio
import json
import logging
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from domain.types import CameraActive, Failed, Success
from services.config import load_config
from services.grading_client import GradingClient
from services.renderer import format_display, render_state
from services.workflow import GradingWorkflow


async def run(args: argparse.Namespace) -> int:
    config = load_config().with_overrides(
        relay_url=args.relay_url,
        endpoint=args.endpoint,
        timeout_s=args.timeout,
    )
    workflow = GradingWorkflow(GradingClient(config), camera_device=args.camera_index)

    def on_state(state):
        view = render_state(state)
        print(f"[{view.state}] {view.submit_label if view.busy else ''}".rstrip())

    workflow.subscribe(on_state)
    try:
        if args.camera:
            await workflow.open_camera()
            if isinstance(workflow.state, CameraActive):
                # Let auto-exposure settle before the still.
                for _ in range(max(args.warmup, 0)):
                    workflow.preview_frame()
                await workflow.capture_frame()
        else:
            workflow.select_file(args.file, args.media_type)

        await workflow.submit()
        state = workflow.state
    finally:
        workflow.close()

    if isinstance(state, Success):
        if args.json:
            print(json.dumps(state.response.to_dict(), indent=2))
        else:
            print("\n".join(format_display(render_state(state).display)))
        return 0

    if isinstance(state, Failed):
        print(f"ERROR: {state.message}", file=sys.stderr)
    return 1


def main() -> None:
    parser = argparse.ArgumentParser(description="Submit a card photo for grading")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--file", help="Path to the card image")
    source.add_argument("--camera", action="store_true", help="Capture a still from the camera")
    parser.add_argument("--media-type", default=None, help="Override the guessed image MIME type")
    parser.add_argument("--camera-index", default=0, type=int, help="Video device index (default: 0)")
    parser.add_argument("--warmup", default=10, type=int, help="Preview frames to drop before capture")
    parser.add_argument("--relay-url", default=None, help="Send through this relay instead of directly")
    parser.add_argument("--endpoint", default=None, help="Override the grading endpoint")
    parser.add_argument("--timeout", default=None, type=float, help="Network timeout in seconds")
    parser.add_argument("--json", action="store_true", help="Print the normalised response as JSON")
    parser.add_argument("--log-level", default="WARNING")
    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    raise SystemExit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
