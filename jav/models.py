"""Shared pydantic models: the contract between the engine, the Jira endpoints and main.py."""

import base64
import json
import logging
from enum import Enum, IntEnum

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator

logger = logging.getLogger(__name__)


class Mode(str, Enum):
    """CLI-facing selector for which version field to update."""

    FIX = "fix"
    AFFECTED = "affected"


class VersionField(str, Enum):
    FIX_VERSIONS = "fixVersions"
    AFFECTED_VERSIONS = "affectedVersions"

    @classmethod
    def from_mode(cls, mode: "Mode | str") -> "VersionField":
        # Anything other than "affected" means fixVersions
        value = mode.value if isinstance(mode, Mode) else mode
        return cls.AFFECTED_VERSIONS if value == Mode.AFFECTED.value else cls.FIX_VERSIONS


class JiraVersion(BaseModel):
    """One entry of a fixVersions / affectedVersions array. Only id and name are consumed."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str | None = None
    name: str | None = None

    @field_validator("id", "name", mode="before")
    @classmethod
    def _numbers_to_str(cls, value: object) -> object:
        if isinstance(value, int | float) and not isinstance(value, bool):
            return str(value)
        return value


class VersionRef(BaseModel):
    """Target version, compared by id or by name, never both."""

    model_config = ConfigDict(frozen=True)

    value: str
    is_id: bool = False

    def matches(self, version: JiraVersion) -> bool:
        candidate = version.id if self.is_id else version.name
        return candidate == self.value

    def as_payload(self) -> dict[str, str]:
        return {"id": self.value} if self.is_id else {"name": self.value}

    def describe(self) -> str:
        return f"(id:{self.value})" if self.is_id else f"(name:{self.value})"


class IssueVersions(BaseModel):
    """Current value of an issue's version field as returned by GET /issue/{key}?fields=..."""

    model_config = ConfigDict(frozen=True)

    versions: tuple[JiraVersion, ...] = ()

    @classmethod
    def from_body(cls, body: str | None, field: VersionField) -> "IssueVersions":
        """Parse a GET body defensively.

        Anything that isn't ``{"fields": {field: [...]}}`` yields an empty collection so
        the caller proceeds to the update instead of erroring out.
        """
        if not body:
            return cls()
        try:
            data = json.loads(body)
        except (ValueError, RecursionError) as exc:
            logger.debug("Could not parse issue body as JSON: %s", exc)
            return cls()

        fields = data.get("fields") if isinstance(data, dict) else None
        raw = fields.get(field.value) if isinstance(fields, dict) else None
        if not isinstance(raw, list):
            return cls()

        versions: list[JiraVersion] = []
        for entry in raw:
            try:
                versions.append(JiraVersion.model_validate(entry))
            except ValidationError:
                logger.debug("Ignoring malformed %s entry: %r", field.value, entry)
        return cls(versions=tuple(versions))

    def contains(self, ref: VersionRef) -> bool:
        return any(ref.matches(v) for v in self.versions)


class RunConfig(BaseModel):
    """Immutable input to the update engine, shared read-only by every worker."""

    model_config = ConfigDict(frozen=True)

    base_url: str = Field(min_length=1)
    user: SecretStr
    token: SecretStr
    issues: tuple[str, ...] = ()
    version: str = Field(min_length=1)
    version_is_id: bool = False
    field: VersionField = VersionField.FIX_VERSIONS
    dry_run: bool = False
    concurrency: int = Field(default=4, ge=1)
    max_retries: int = Field(default=4, ge=0)
    timeout: float = Field(default=30.0, gt=0)

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        stripped = value.strip().rstrip("/")
        if not stripped:
            raise ValueError("base_url must not be blank")
        return stripped

    @property
    def version_ref(self) -> VersionRef:
        return VersionRef(value=self.version, is_id=self.version_is_id)

    @property
    def auth_header(self) -> str:
        raw = f"{self.user.get_secret_value()}:{self.token.get_secret_value()}"
        return f"Basic {base64.b64encode(raw.encode()).decode()}"


class ExitCode(IntEnum):
    SUCCESS = 0
    FAILURE = 1  # every issue failed
    CONFIG_ERROR = 2  # same code click uses for usage errors
    PARTIAL = 3


class RunOutcome(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILURE = "failure"

    @property
    def exit_code(self) -> ExitCode:
        return {
            RunOutcome.SUCCESS: ExitCode.SUCCESS,
            RunOutcome.PARTIAL: ExitCode.PARTIAL,
            RunOutcome.FAILURE: ExitCode.FAILURE,
        }[self]


class FailedIssue(BaseModel):
    model_config = ConfigDict(frozen=True)

    issue: str
    error: str


class RunReport(BaseModel):
    """Final result of a run. Order within each bucket is completion order, not input order."""

    model_config = ConfigDict(frozen=True)

    updated: list[str] = []
    skipped: list[str] = []
    failed: list[FailedIssue] = []

    @property
    def total(self) -> int:
        return len(self.updated) + len(self.skipped) + len(self.failed)

    @property
    def outcome(self) -> RunOutcome:
        if not self.failed:
            return RunOutcome.SUCCESS
        if len(self.failed) == self.total:
            return RunOutcome.FAILURE
        return RunOutcome.PARTIAL
