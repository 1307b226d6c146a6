"""Configuration models and loading logic."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated, Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator
from pydantic_settings import (
    BaseSettings,
    NoDecode,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

DEFAULT_SETTINGS_FILE = Path("configs/settings.yaml")
SETTINGS_FILE_ENV = "USERLIST_SYNC_SETTINGS_FILE"
DEFAULT_EXCLUDE: tuple[str, ...] = ("postgres", "replicator", "monitor")


def split_csv(value: Any) -> Any:
    """Accept a comma-separated string wherever a list of names is expected."""

    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip() != ""]
    return value


class DatabaseConfig(BaseModel):
    """Credential store connection settings."""

    model_config = ConfigDict(frozen=True)

    dsn: SecretStr = SecretStr("")
    timeout_seconds: float = Field(default=60.0, gt=0.0)
    application_name: str = "userlist-sync"


class PathsConfig(BaseModel):
    """Filesystem locations owned by a sync run."""

    model_config = ConfigDict(frozen=True)

    userlist_path: Path = Path("/etc/pgbouncer/userlist.txt")
    reload_trigger_file: Path = Path("/tmp/pgbouncer-userlist-generator.trigger")
    log_file: Path | None = None


class ReloadConfig(BaseModel):
    """External reload action settings."""

    model_config = ConfigDict(frozen=True)

    command: str = Field(default="systemctl reload pgbouncer", min_length=1)
    shell: Path = Path("/bin/bash")
    argv: list[str] | None = None
    timeout_seconds: float = Field(default=60.0, gt=0.0)
    consume_marker: bool = True
    check_on_unchanged: bool = True

    @field_validator("argv")
    @classmethod
    def _argv_not_empty(cls, value: list[str] | None) -> list[str] | None:
        if value is not None and not value:
            raise ValueError("reload argv must name a program when set")
        return value


class FingerprintConfig(BaseModel):
    """Content fingerprint settings for change detection."""

    model_config = ConfigDict(frozen=True)

    algorithm: Literal["md5", "sha1", "sha256"] = "md5"


class AppSettings(BaseSettings):
    """Top-level application settings."""

    _yaml_file_override: ClassVar[Path | None] = None

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    exclude: Annotated[list[str], NoDecode] = Field(default_factory=lambda: list(DEFAULT_EXCLUDE))
    reload: ReloadConfig = Field(default_factory=ReloadConfig)
    fingerprint: FingerprintConfig = Field(default_factory=FingerprintConfig)

    model_config = SettingsConfigDict(
        env_prefix="USERLIST_SYNC_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    @field_validator("exclude", mode="before")
    @classmethod
    def _split_exclude(cls, value: Any) -> Any:
        return split_csv(value)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Use YAML defaults while allowing env vars to override values."""

        yaml_file = resolve_settings_file(cls._yaml_file_override)
        yaml_settings = YamlConfigSettingsSource(settings_cls, yaml_file=yaml_file)
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            yaml_settings,
            file_secret_settings,
        )

    def as_dict(self) -> dict[str, object]:
        """Return settings as a standard nested dictionary with secrets masked."""

        return self.model_dump(mode="json")

    def with_overrides(
        self,
        *,
        dsn: str | None = None,
        userlist_path: Path | None = None,
        exclude: str | list[str] | None = None,
        reload_trigger_file: Path | None = None,
        reload_command: str | None = None,
    ) -> "AppSettings":
        """Return a copy with command-line overrides applied."""

        updates: dict[str, object] = {}
        if dsn is not None:
            updates["database"] = self.database.model_copy(update={"dsn": SecretStr(dsn)})

        path_updates: dict[str, Path] = {}
        if userlist_path is not None:
            path_updates["userlist_path"] = userlist_path
        if reload_trigger_file is not None:
            path_updates["reload_trigger_file"] = reload_trigger_file
        if path_updates:
            updates["paths"] = self.paths.model_copy(update=path_updates)

        if exclude is not None:
            updates["exclude"] = list(split_csv(exclude))
        if reload_command is not None:
            if reload_command.strip() == "":
                raise ValueError("reload command must not be empty")
            updates["reload"] = self.reload.model_copy(update={"command": reload_command})
        if not updates:
            return self
        return self.model_copy(update=updates)


def find_project_root(start: Path | None = None) -> Path:
    """Locate the project root by traversing upward for config markers."""

    current = (start or Path.cwd()).resolve()
    for candidate in (current, *current.parents):
        if (candidate / DEFAULT_SETTINGS_FILE).exists():
            return candidate
    return current


def resolve_settings_file(override: Path | None = None) -> Path:
    """Resolve settings file from explicit override, env var, or default."""

    chosen = override
    if chosen is None:
        env_value = os.getenv(SETTINGS_FILE_ENV)
        if env_value:
            chosen = Path(env_value)
    if chosen is None:
        chosen = DEFAULT_SETTINGS_FILE

    if not chosen.is_absolute():
        chosen = (find_project_root() / chosen).resolve()
    return chosen


def load_settings(config_file: Path | None = None) -> AppSettings:
    """Load settings with YAML defaults and environment variable overrides.

    A missing YAML file is not an error; the built-in defaults apply.
    """

    settings_file = resolve_settings_file(config_file)
    AppSettings._yaml_file_override = settings_file
    try:
        return AppSettings()
    finally:
        AppSettings._yaml_file_override = None
