from __future__ import annotations

import argparse
import asyncio
import logging
import mimetypes
from pathlib import Path

from pydantic import SecretStr
from rich.console import Console

from watermark_relay import Dispatcher, DispatchRequest, ImagePayload, build_default_registry
from watermark_relay.codec import filename_for
from watermark_relay.config import load_provider_config, load_settings
from watermark_relay.log import configure_logging


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Remove the watermark from an image via a remote provider.")
    parser.add_argument("image", type=Path, help="Path to the input image.")
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Output path (defaults to <image stem>_clean with the result's extension).",
    )
    parser.add_argument("--provider", type=str, default=None, help="Override WATERMARK_PROVIDER.")
    parser.add_argument("--api-key", type=str, default=None, help="Override WATERMARK_API_KEY.")
    parser.add_argument("--model", type=str, default=None, help="Override WATERMARK_MODEL.")
    parser.add_argument(
        "--dotenv",
        type=Path,
        default=None,
        help="Optional path to a .env file containing provider credentials.",
    )
    parser.add_argument("--verbose", action="store_true", help="Log every status check.")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    console = Console()
    configure_logging(logging.DEBUG if args.verbose else logging.INFO, console=console)

    if not args.image.exists():
        console.print(f"[red]Image not found:[/red] {args.image}")
        raise SystemExit(1)

    content_type = mimetypes.guess_type(args.image.name)[0] or "image/png"
    if not content_type.startswith("image/"):
        console.print(f"[red]Not an image file:[/red] {args.image}")
        raise SystemExit(1)

    config = load_provider_config(args.dotenv)
    overrides: dict[str, object] = {}
    if args.provider:
        overrides["provider"] = args.provider.lower()
    if args.api_key:
        overrides["credential"] = SecretStr(args.api_key)
    if args.model:
        overrides["model"] = args.model
    config = config.model_copy(update=overrides)

    dispatcher = Dispatcher(build_default_registry(load_settings(args.dotenv)))
    request = DispatchRequest(payload=ImagePayload(args.image.read_bytes(), content_type), config=config)

    with console.status(f"Removing watermark with [bold]{config.provider}[/bold]..."):
        result = asyncio.run(dispatcher.try_dispatch(request))

    if result.error is not None:
        console.print(f"[red]{result.error.kind.value}[/red] {result.error.detail}")
        raise SystemExit(1)

    suffix = Path(filename_for(result.payload.content_type)).suffix
    output = args.output or args.image.with_name(f"{args.image.stem}_clean{suffix}")
    output.write_bytes(result.payload.data)
    console.print(f"[green]Saved[/green] {output}")


if __name__ == "__main__":
    main()
