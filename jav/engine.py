"""Concurrent update engine: add one version to many issues, one outcome per issue."""

import asyncio
import json
import logging

import httpx

from jav.jira import USER_AGENT, JiraIssues, add_version_payload
from jav.log import redacted_logging
from jav.models import IssueVersions, RunConfig, RunReport
from jav.report import ReportAggregator
from jav.retry import RetryPolicy, Sleep

logger = logging.getLogger(__name__)


def _http_error(response: httpx.Response) -> str:
    return f"HTTP {response.status_code}: {response.text}"


async def _process_issue(
    issue: str,
    config: RunConfig,
    jira: JiraIssues,
    report: ReportAggregator,
    gate: asyncio.Semaphore,
) -> None:
    field = config.field
    ref = config.version_ref

    # The slot is held until the outcome is recorded, on every exit path
    async with gate:
        try:
            if config.dry_run:
                logger.info(
                    "[DRY RUN] Would update %s with %s: %s",
                    issue,
                    field.value,
                    json.dumps(add_version_payload(field, ref)),
                )
                report.record_updated(issue)
                return

            get_res = await jira.get_versions(issue, field)
            if not get_res.is_success:
                logger.warning("Failed to read %s: HTTP %d", issue, get_res.status_code)
                logger.debug(get_res.text)
                report.record_failed(issue, _http_error(get_res))
                return

            if IssueVersions.from_body(get_res.text, field).contains(ref):
                logger.info("Skipping %s: already has %s %s", issue, field.value, ref.describe())
                report.record_skipped(issue)
                return

            put_res = await jira.add_version(issue, field, ref)
            if put_res.is_success:
                logger.info("Updated issue %s", issue)
                report.record_updated(issue)
            else:
                logger.warning("Failed to update %s: HTTP %d", issue, put_res.status_code)
                logger.debug(put_res.text)
                report.record_failed(issue, _http_error(put_res))
        except Exception as exc:
            message = str(exc) or type(exc).__name__
            logger.warning("Error updating %s: %s", issue, message)
            report.record_failed(issue, message)


async def assign_version_to_issues(
    config: RunConfig,
    client: httpx.AsyncClient | None = None,
    *,
    sleep: Sleep = asyncio.sleep,
) -> RunReport:
    """Add config.version to every issue in config.issues.

    Every input issue lands in exactly one of updated / skipped / failed. A
    failure on one issue never affects another. A client passed in by the
    caller is left open.
    """
    owns_client = client is None
    http = client or httpx.AsyncClient(timeout=config.timeout, headers={"User-Agent": USER_AGENT})
    gate = asyncio.Semaphore(config.concurrency)
    jira = JiraIssues(config, http, RetryPolicy(max_retries=config.max_retries, sleep=sleep))

    secrets = (
        config.user.get_secret_value(),
        config.token.get_secret_value(),
        config.auth_header.removeprefix("Basic "),
    )
    try:
        with redacted_logging(*secrets) as redactor:
            report = ReportAggregator(redact=redactor.redact)
            await asyncio.gather(*(_process_issue(issue, config, jira, report, gate) for issue in config.issues))
    finally:
        if owns_client:
            await http.aclose()

    return report.build()


def run_assignment(
    config: RunConfig,
    client: httpx.AsyncClient | None = None,
    *,
    sleep: Sleep = asyncio.sleep,
) -> RunReport:
    """Synchronous entry point for the CLI."""
    return asyncio.run(assign_version_to_issues(config, client, sleep=sleep))
