"""CLI entry point for the calibration service."""

import argparse
import json
import sys
from pathlib import Path

import uvicorn
from pydantic import ValidationError

from box_calibration.core.settings import get_settings
from box_calibration.core.utils import decode_image, describe_image, image_key, setup_logging
from box_calibration.enums import ModeOverride, ScaleOverride
from box_calibration.models import ImageDescriptor
from box_calibration.services import CalibrationService, ResultParseError, parse_analysis_result


def main() -> int:
    """
    Main CLI entry point.

    Returns:
        int: Exit code (0 for success).
    """
    parser = argparse.ArgumentParser(
        description="Bounding-box calibration service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    server_parser = subparsers.add_parser("server", help="Start the API server")
    server_parser.add_argument("--host", default=None, help="Server host")
    server_parser.add_argument("--port", type=int, default=None, help="Server port")
    server_parser.add_argument("--reload", action="store_true", help="Enable auto-reload")

    calibrate_parser = subparsers.add_parser(
        "calibrate", help="Calibrate a saved model result offline"
    )
    calibrate_parser.add_argument("result", type=Path, help="File with the raw model output")
    calibrate_parser.add_argument("--image", type=Path, default=None, help="Source image file")
    calibrate_parser.add_argument("--width", type=int, default=None, help="Natural image width")
    calibrate_parser.add_argument("--height", type=int, default=None, help="Natural image height")
    calibrate_parser.add_argument(
        "--scale",
        choices=[s.value for s in ScaleOverride],
        default=None,
        help="One-shot scale override",
    )
    calibrate_parser.add_argument(
        "--mode",
        choices=[m.value for m in ModeOverride],
        default=None,
        help="One-shot mode override",
    )
    calibrate_parser.add_argument(
        "--snapshot", type=Path, default=None, help="Write the diagnostic snapshot to this file"
    )

    args = parser.parse_args()

    if args.command == "calibrate" and (args.width is None) != (args.height is None):
        calibrate_parser.error("--width and --height must be given together")

    if args.command == "server":
        return run_server(args)
    if args.command == "calibrate":
        return run_calibrate(args)
    parser.print_help()
    return 0


def run_server(args: argparse.Namespace) -> int:
    """
    Run the API server.

    Args:
        args (argparse.Namespace): Parsed command line arguments.

    Returns:
        int: Exit code (0 for success).
    """
    settings = get_settings()

    host = args.host or settings.api_server.host
    port = args.port or settings.api_server.port

    uvicorn.run(
        app="box_calibration.api.server:app",
        host=host,
        port=port,
        reload=args.reload,
        workers=settings.api_server.workers,
    )
    return 0


def _load_image(args: argparse.Namespace) -> tuple[ImageDescriptor | None, str | None]:
    if args.image is not None:
        data = args.image.read_bytes()
        decoded = decode_image(data)
        if decoded is None:
            raise ValueError(f"Not a decodable image: {args.image}")
        return describe_image(decoded), image_key(data)
    if args.width is not None and args.height is not None:
        return ImageDescriptor(width=args.width, height=args.height), None
    return None, None


def run_calibrate(args: argparse.Namespace) -> int:
    """
    Calibrate a saved model result and print the outcome as JSON.

    Args:
        args (argparse.Namespace): Parsed command line arguments.

    Returns:
        int: Exit code (0 for success, 1 on invalid input).
    """
    settings = get_settings()
    setup_logging(settings=settings.logging)

    try:
        analysis = parse_analysis_result(args.result.read_text(encoding="utf-8"))
        image, image_id = _load_image(args)
    except (OSError, ValueError, ResultParseError, ValidationError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    service = CalibrationService(settings)
    response = service.calibrate(
        problems=analysis.problems,
        image=image,
        image_id=image_id,
        scale=ScaleOverride(args.scale) if args.scale else None,
        mode=ModeOverride(args.mode) if args.mode else None,
    )
    print(json.dumps(response.model_dump(mode="json"), indent=2))

    if args.snapshot is not None:
        status = service.export_snapshot(response.image_id, args.snapshot)
        print(status.message, file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
