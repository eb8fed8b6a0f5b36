"""Entry point — wires Config → VisionClient → front end (console or Telegram)."""
import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

from rich.logging import RichHandler

from src.cli import run_console
from src.config import Config
from src.constants import APP_NAME, MSG_BACKEND, MSG_STARTING
from src.telegram.client import TelegramClient
from src.vision.claude import ClaudeVisionClient
from src.vision.client import VisionClient
from src.vision.openai import OpenAIVisionClient


def _setup_logging(level: str) -> None:
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    list(map(root.removeHandler, root.handlers[:]))
    root.addHandler(RichHandler(rich_tracebacks=True))


def build_vision_client(config: Config) -> VisionClient:
    match (config.anthropic_api_key, config.openai_api_key):
        case (str() as k, _) if k:
            return ClaudeVisionClient(k)
        case (_, str() as k) if k:
            return OpenAIVisionClient(k)
        case _:
            raise ValueError("ANTHROPIC_API_KEY or OPENAI_API_KEY must be set in .env")


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="xray-blue", description=APP_NAME)
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("bot", help="serve scans over Telegram")

    upload = commands.add_parser("upload", help="analyze an image file")
    upload.add_argument("path", type=Path)
    upload.add_argument("--export", type=Path, help="write the Markdown report here")

    camera = commands.add_parser("camera", help="capture a scan with the local camera")
    camera.add_argument("--export", type=Path, help="write the Markdown report here")

    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    config = Config.from_env()
    _setup_logging(config.log_level)

    logger = logging.getLogger(__name__)
    logger.info(MSG_STARTING, args.command)

    vision = build_vision_client(config)
    logger.info(MSG_BACKEND, vision.name)

    match args.command:
        case "bot":
            TelegramClient(config, vision).run()
        case command:
            raise SystemExit(
                run_console(
                    command,
                    config,
                    vision,
                    upload=getattr(args, "path", None),
                    export=args.export,
                )
            )


if __name__ == "__main__":
    main()
