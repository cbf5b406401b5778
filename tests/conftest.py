"""Shared test fixtures."""

from collections.abc import Callable

import pytest

from jav.models import FailedIssue, RunConfig, RunReport, VersionField


class SleepRecorder:
    """Stand-in for asyncio.sleep: records requested delays, never waits."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def no_sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def make_config() -> Callable[..., RunConfig]:
    def _make(**overrides: object) -> RunConfig:
        values: dict = {
            "base_url": "https://example.atlassian.net",
            "user": "jane@example.com",
            "token": "tok-secret-123",
            "issues": ("ABC-1",),
            "version": "v1.0.0",
            "version_is_id": False,
            "field": VersionField.FIX_VERSIONS,
            "dry_run": False,
        }
        values.update(overrides)
        return RunConfig(**values)

    return _make


@pytest.fixture
def mixed_report() -> RunReport:
    return RunReport(
        updated=["ABC-1"],
        skipped=["ABC-2"],
        failed=[FailedIssue(issue="ABC-3", error="HTTP 404: not found")],
    )
