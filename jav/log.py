"""Logging setup and run-scoped credential redaction."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from rich.console import Console
from rich.logging import RichHandler

REDACTED = "[REDACTED]"


class RedactingFilter(logging.Filter):
    """Replace known secret values in a record before any handler writes it.

    Never drops records.
    """

    def __init__(self, secrets: list[str] | tuple[str, ...] = ()) -> None:
        super().__init__()
        # Longest first so a secret containing another is replaced whole
        self._secrets = sorted({s for s in secrets if s}, key=len, reverse=True)

    def redact(self, text: str) -> str:
        for secret in self._secrets:
            text = text.replace(secret, REDACTED)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        if not self._secrets:
            return True
        record.msg = self.redact(record.getMessage())
        record.args = ()
        if record.exc_info and not record.exc_text:
            record.exc_text = logging.Formatter().formatException(record.exc_info)
        if record.exc_text:
            record.exc_text = self.redact(record.exc_text)
            # Handlers re-render exc_info when present; keep only the redacted text
            record.exc_info = None
        return True


@contextmanager
def redacted_logging(*secrets: str) -> Iterator[RedactingFilter]:
    """Install a RedactingFilter on every root handler for the duration of the block."""
    redactor = RedactingFilter(secrets)
    root = logging.getLogger()
    targets: list[logging.Handler] = list(root.handlers)
    if not targets and logging.lastResort is not None:
        targets = [logging.lastResort]
    for handler in targets:
        handler.addFilter(redactor)
    try:
        yield redactor
    finally:
        for handler in targets:
            handler.removeFilter(redactor)


def configure_logging(verbose: bool = False) -> None:
    # stderr keeps stdout clean for --json
    handler = RichHandler(console=Console(stderr=True), show_path=False, markup=False, rich_tracebacks=False)
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    root = logging.getLogger()
    for existing in list(root.handlers):
        if isinstance(existing, RichHandler):
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    # httpx logs every request at INFO
    noisy_level = logging.DEBUG if verbose else logging.WARNING
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(noisy_level)
