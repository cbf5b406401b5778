"""Jira Cloud REST v3 endpoints used by the engine: read one version field, add one version."""

import httpx

from jav.models import RunConfig, VersionField, VersionRef
from jav.retry import RetryPolicy

API_PATH = "/rest/api/3"
USER_AGENT = "jira-assign-version"


class JiraIssues:
    def __init__(self, config: RunConfig, client: httpx.AsyncClient, retry: RetryPolicy) -> None:
        self._base = f"{config.base_url}{API_PATH}"
        self._client = client
        self._retry = retry
        self._headers = {
            "Authorization": config.auth_header,
            "Accept": "application/json",
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
        }

    def issue_url(self, issue: str) -> str:
        return f"{self._base}/issue/{issue}"

    async def get_versions(self, issue: str, field: VersionField) -> httpx.Response:
        """GET the issue restricted to the one field we compare against."""
        return await self._retry.send(
            self._client,
            "GET",
            f"{self.issue_url(issue)}?fields={field.value}",
            headers=self._headers,
        )

    async def add_version(self, issue: str, field: VersionField, ref: VersionRef) -> httpx.Response:
        return await self._retry.send(
            self._client,
            "PUT",
            self.issue_url(issue),
            json=add_version_payload(field, ref),
            headers=self._headers,
        )


def add_version_payload(field: VersionField, ref: VersionRef) -> dict:
    return {"update": {field.value: [{"add": ref.as_payload()}]}}
