from __future__ import annotations

import logging

from pydantic import SecretStr
from rich.console import Console
from rich.logging import RichHandler


def redact(credential: str | SecretStr | None) -> str:
    """Shorten a credential to its first and last four characters for log output."""
    if isinstance(credential, SecretStr):
        credential = credential.get_secret_value()
    if not credential:
        return "<unset>"
    if len(credential) <= 8:
        return "****"
    return f"{credential[:4]}...{credential[-4:]}"


def configure_logging(level: int = logging.INFO, console: Console | None = None) -> None:
    """Route the package loggers through rich."""
    handler = RichHandler(console=console, show_path=False, rich_tracebacks=True)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger = logging.getLogger("watermark_relay")
    logger.handlers[:] = [handler]
    logger.setLevel(level)
    logger.propagate = False
