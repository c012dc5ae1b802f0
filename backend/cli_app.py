#!/usr/bin/env python3
"""
Activity Image Generator CLI.

Runs the pipeline over an activity JSON file:
  signals   print the extracted signals
  prompt    print the signals and the composed prompt
  generate  generate the image and write it to --output
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Optional, Sequence

from config import PipelineOptions, get_settings
from services.activity_image_pipeline import ActivityImagePipeline
from services.errors import ImagePipelineError
from services.image_validation import parse_data_url
from services.providers import get_provider


class Colors:
    """ANSI colors for terminal"""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    CYAN = "\033[96m"


def info(msg):
    print(f"{Colors.BLUE}[INFO]{Colors.RESET} {msg}", file=sys.stderr)


def success(msg):
    print(f"{Colors.GREEN}[OK]{Colors.RESET} {msg}", file=sys.stderr)


def warn(msg):
    print(f"{Colors.YELLOW}[WARN]{Colors.RESET} {msg}", file=sys.stderr)


def error(msg):
    print(f"{Colors.RED}[ERROR]{Colors.RESET} {msg}", file=sys.stderr)


class ActivityImageCLI:
    """Command-line front end for the activity image pipeline"""

    def __init__(self, pipeline: Optional[ActivityImagePipeline] = None):
        self._pipeline = pipeline

    def build_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="activity-image",
            description="Generate safe illustrations for fitness activities",
        )
        parser.add_argument(
            "--provider",
            help="Image provider (pollinations, dial, gemini); defaults to IMAGE_PROVIDER",
        )
        subparsers = parser.add_subparsers(dest="command", required=True)

        for command, help_text in (
            ("signals", "Print the signals extracted from an activity"),
            ("prompt", "Print the signals and the composed prompt"),
            ("generate", "Generate an image for an activity"),
        ):
            sub = subparsers.add_parser(command, help=help_text)
            sub.add_argument("activity", type=Path, help="Path to an activity JSON file")
            if command == "generate":
                sub.add_argument(
                    "-o", "--output", type=Path, help="Where to write the image file"
                )
        return parser

    def get_pipeline(self, provider_name: Optional[str]) -> ActivityImagePipeline:
        if self._pipeline is None:
            settings = get_settings()
            self._pipeline = ActivityImagePipeline(
                provider=get_provider(provider_name, settings),
                options=PipelineOptions.from_settings(settings),
            )
        return self._pipeline

    @staticmethod
    def load_activity(path: Path) -> dict:
        with path.open(encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{path} must contain a JSON object")
        return data

    @staticmethod
    def write_image(image_data: str, output: Path) -> int:
        _, content = parse_data_url(image_data)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(content)
        return len(content)

    def _print_json(self, payload: dict) -> None:
        print(json.dumps(payload, indent=2, ensure_ascii=False))

    def cmd_signals(self, pipeline: ActivityImagePipeline, activity: dict) -> None:
        signals = pipeline.extract_signals(activity)
        self._print_json(signals.model_dump(mode="json"))

    def cmd_prompt(self, pipeline: ActivityImagePipeline, activity: dict) -> None:
        signals, prompt = pipeline.build_prompt(activity)
        self._print_json(
            {
                "signals": signals.model_dump(mode="json"),
                "prompt": prompt.model_dump(mode="json"),
            }
        )

    def cmd_generate(
        self, pipeline: ActivityImagePipeline, activity: dict, output: Optional[Path]
    ) -> None:
        info(f"Generating image via {pipeline.provider_name}...")
        outcome = asyncio.run(pipeline.generate(activity))
        if outcome.image.fallback:
            warn("Primary prompts failed; image was generated from the fallback prompt")

        summary = {
            "prompt": outcome.prompt.text,
            "fallback": outcome.image.fallback,
            "attempts": outcome.image.attempts,
        }
        if output is not None:
            size = self.write_image(outcome.image.image_data, output)
            summary["output"] = str(output)
            success(f"Wrote {size} bytes to {output}")
        else:
            summary["image_data"] = outcome.image.image_data
        self._print_json(summary)

    def run(self, argv: Optional[Sequence[str]] = None) -> int:
        """Main entry point; returns the process exit code"""
        args = self.build_parser().parse_args(argv)

        try:
            activity = self.load_activity(args.activity)
        except (OSError, ValueError) as e:
            error(f"Could not read activity: {e}")
            return 1

        try:
            pipeline = self.get_pipeline(args.provider)
            if args.command == "signals":
                self.cmd_signals(pipeline, activity)
            elif args.command == "prompt":
                self.cmd_prompt(pipeline, activity)
            else:
                self.cmd_generate(pipeline, activity, args.output)
        except (ImagePipelineError, ValueError) as e:
            # ValueError covers unknown provider names
            error(str(e))
            return 1
        return 0


if __name__ == "__main__":
    sys.exit(ActivityImageCLI().run())
