"""Tests for jav.log: redaction filter and logging setup."""

import logging
import sys
from collections.abc import Iterator

import pytest
from rich.logging import RichHandler

from jav.log import REDACTED, RedactingFilter, configure_logging, redacted_logging

logger = logging.getLogger("jav.tests")


def _record(msg: str, *args: object, exc_info=None) -> logging.LogRecord:
    return logging.LogRecord(
        name="test", level=logging.INFO, pathname="", lineno=0, msg=msg, args=args, exc_info=exc_info
    )


class TestRedactingFilter:
    def test_redacts_message_and_args(self) -> None:
        record = _record("auth %s with %s", "user@example.com", "s3cr3t")
        assert RedactingFilter(("s3cr3t", "user@example.com")).filter(record) is True
        assert record.getMessage() == f"auth {REDACTED} with {REDACTED}"
        assert record.args == ()

    def test_longer_secret_replaced_whole(self) -> None:
        record = _record("token abc123xyz")
        RedactingFilter(("abc", "abc123xyz")).filter(record)
        assert record.getMessage() == f"token {REDACTED}"

    def test_redacts_exception_text(self) -> None:
        try:
            raise RuntimeError("bad token s3cr3t")
        except RuntimeError:
            record = _record("request failed", exc_info=sys.exc_info())
        RedactingFilter(("s3cr3t",)).filter(record)
        assert record.exc_text is not None
        assert "s3cr3t" not in record.exc_text
        assert REDACTED in record.exc_text
        assert record.exc_info is None

    def test_no_secrets_leaves_record_untouched(self) -> None:
        record = _record("hello %s", "world")
        assert RedactingFilter(("",)).filter(record) is True
        assert record.args == ("world",)


class TestRedactedLogging:
    def test_scoped_to_block(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.INFO)
        with redacted_logging("s3cr3t-token"):
            logger.info("using %s", "s3cr3t-token")
        assert caplog.records[-1].getMessage() == f"using {REDACTED}"

        logger.info("after %s", "s3cr3t-token")
        assert caplog.records[-1].getMessage() == "after s3cr3t-token"

    def test_filter_removed_on_error(self) -> None:
        root = logging.getLogger()
        handler = logging.NullHandler()
        root.addHandler(handler)
        try:
            with pytest.raises(ValueError):
                with redacted_logging("s3cr3t"):
                    assert len(handler.filters) == 1
                    raise ValueError("boom")
            assert handler.filters == []
        finally:
            root.removeHandler(handler)


class TestConfigureLogging:
    @pytest.fixture(autouse=True)
    def restore_root(self) -> Iterator[None]:
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        for handler in list(root.handlers):
            if handler not in handlers:
                root.removeHandler(handler)
        root.setLevel(level)

    def _rich_handlers(self) -> list[logging.Handler]:
        return [h for h in logging.getLogger().handlers if isinstance(h, RichHandler)]

    def test_installs_single_rich_handler(self) -> None:
        configure_logging()
        configure_logging()
        assert len(self._rich_handlers()) == 1
        assert logging.getLogger().level == logging.INFO
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_verbose_enables_debug(self) -> None:
        configure_logging(verbose=True)
        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.DEBUG
