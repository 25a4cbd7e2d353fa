"""Command line entry point: list models, probe a model, translate text."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from aihub import secrets
from aihub.llm import (
    AiProvider,
    Assistant,
    ConfigurationError,
    Model,
    ProviderError,
    provider_from_settings,
)
from aihub.logging_config import setup_logging
from aihub.settings import load_settings

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="aihub")
    parser.add_argument(
        "--provider", default="aihubmix", help="Provider id from config/settings.yaml"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log backend routing to stderr"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("models", help="List models available from the provider")

    check = sub.add_parser("check", help="Probe a model with a tiny request")
    check.add_argument("model")
    check.add_argument("--stream", action="store_true")

    translate = sub.add_parser("translate", help="Translate text with a model")
    translate.add_argument("text")
    translate.add_argument("--model", default=None)
    translate.add_argument(
        "--to", default="English", help="Target language (default: English)"
    )
    return parser


async def _run(args: argparse.Namespace, provider: AiProvider) -> int:
    if args.command == "models":
        for model in await provider.models():
            print(model.id)
        return 0

    if args.command == "check":
        result = await provider.check(Model(id=args.model), stream=args.stream)
        if result.valid:
            print(f"{args.model}: ok")
            return 0
        print(f"{args.model}: {result.error}", file=sys.stderr)
        return 1

    assistant = Assistant(
        id="translate",
        prompt=f"Translate the user's text into {args.to}. Reply with the translation only.",
        model=Model(id=args.model) if args.model else None,
    )

    def on_partial(text: str, is_complete: bool) -> None:
        if is_complete:
            print(text)

    await provider.translate(args.text, assistant, on_partial)
    return 0


def main(argv: list[str] | None = None) -> int:
    project_root = Path.cwd()
    load_dotenv(project_root / ".env")
    args = _build_parser().parse_args(argv)
    settings = load_settings(project_root / "config")
    setup_logging(project_root, settings, verbose=args.verbose)
    try:
        provider = provider_from_settings(args.provider, settings, secrets.get_secret)
        return asyncio.run(_run(args, provider))
    except (ProviderError, ConfigurationError) as e:
        logger.error("%s failed: %s", args.command, e)
        print(f"error: {e}", file=sys.stderr)
        return 1
