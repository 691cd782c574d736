"""Command line entry point for the journey map animator."""
from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional

from .config import build_legs, load_config, render_settings
from .exporter import export_video, preview
from .logging import configure_logging, get_logger

logger = get_logger(__name__)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Animate a journey on a map and export it as a video.")
    parser.add_argument(
        "config",
        type=Path,
        help="Path to the JSON or YAML journey file (start, stops, animation settings).",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--preview", action="store_true", help="Play the animation in a window instead of exporting.")
    mode.add_argument("--export", action="store_true", help="Render frames and encode a video (default).")
    parser.add_argument("--output", type=Path, help="Video file to write; overrides the journey file.")
    parser.add_argument("--frames-dir", type=Path, help="Directory for intermediate PNG frames.")
    parser.add_argument("--resume", action="store_true", help="Keep frames already in the frames directory.")
    parser.add_argument("--keep-frames", action="store_true", help="Do not delete the frames after encoding.")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO).")
    parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON lines.")
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)
    configure_logging(level=args.log_level, format_json=args.json_logs)

    journey = load_config(args.config)
    legs = build_legs(journey)
    settings = render_settings(journey, legs)
    logger.info("Journey ready", title=journey.title, legs=len(legs), points=len(settings.all_coordinates))

    if args.preview:
        preview(journey, legs, settings)
        return

    output_path = export_video(
        journey,
        legs,
        settings,
        output_path=args.output,
        frames_dir=args.frames_dir,
        resume=args.resume,
        keep_frames=args.keep_frames,
    )
    print(f"Saved animation to {output_path}")


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    main()
