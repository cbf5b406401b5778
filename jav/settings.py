"""Settings resolution with a 4-step profile precedence chain."""

import os
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path

import tomlkit
import typer
from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from jav.models import ExitCode

CONFIG_PATH = Path.home() / ".config" / "jav" / "config.toml"


class JavSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="JAV_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_profile: str | None = None

    # Jira Cloud site, e.g. https://example.atlassian.net
    jira_base_url: str | None = None
    jira_user: SecretStr | None = None
    jira_token: SecretStr | None = None

    # Engine tuning
    concurrency: int = 4
    max_retries: int = 4
    timeout: float = 30.0

    @classmethod
    def settings_customise_sources(
        cls, settings_cls, init_settings, env_settings, dotenv_settings, file_secret_settings
    ):
        # Profile values arrive as init kwargs and rank below the environment
        return env_settings, dotenv_settings, init_settings, file_secret_settings


@lru_cache(maxsize=1)
def _load_toml() -> tomlkit.TOMLDocument:
    """Load ~/.config/jav/config.toml, returning empty document if missing."""
    if not CONFIG_PATH.exists():
        return tomlkit.document()
    return tomlkit.load(CONFIG_PATH.open())


def _list_profiles(config: Mapping) -> list[str]:
    # tomlkit Table implements MutableMapping but not dict, so check Mapping
    return [k for k, v in config.items() if isinstance(v, Mapping)]


def get_settings(profile: str | None = None) -> JavSettings:
    """Resolve the active profile and return a fully populated JavSettings.

    Precedence for the profile name (highest to lowest):
    1. profile argument (--profile CLI flag)
    2. JAV_DEFAULT_PROFILE env var
    3. default_profile key in ~/.config/jav/config.toml
    4. First profile defined in ~/.config/jav/config.toml

    Values inside the profile are defaults; JAV_* env vars and .env override them.
    """
    toml_config = _load_toml()

    active = (
        profile
        or os.environ.get("JAV_DEFAULT_PROFILE")
        or toml_config.get("default_profile")
        or ((_profiles := _list_profiles(toml_config)) and _profiles[0] or None)
    )

    profile_defaults: dict = {}
    if active:
        if active in toml_config and isinstance(toml_config[active], Mapping):
            profile_defaults = dict(toml_config[active])
        elif active not in toml_config:
            profiles = _list_profiles(toml_config)
            typer.echo(f"Profile '{active}' not found in {CONFIG_PATH}. Available: {profiles or '(none)'}")
            raise typer.Exit(ExitCode.CONFIG_ERROR)

    settings = JavSettings(**profile_defaults)

    missing = [
        name
        for name in ("jira_base_url", "jira_user", "jira_token")
        if not getattr(settings, name)
    ]
    if missing:
        env_names = ", ".join(f"JAV_{name.upper()}" for name in missing)
        typer.echo(
            f"Missing Jira configuration: {', '.join(missing)}. Set {env_names} or add them to the "
            f"[{active or 'profile'}] section of {CONFIG_PATH} (run 'jav init')."
        )
        raise typer.Exit(ExitCode.CONFIG_ERROR)

    return settings
