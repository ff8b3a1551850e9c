"""Configuration management using Pydantic settings."""

from __future__ import annotations

from contextvars import ContextVar
from enum import Enum
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from ghsecrets.core.exceptions import ConfigurationError
from ghsecrets.core.types import BackupTarget

DEFAULT_CONFIG_FILE = "ghsecrets.yaml"

# Values read from the YAML config file while Settings.load() runs
_file_values: ContextVar[dict[str, Any]] = ContextVar("ghsecrets_file_values", default={})


class LogLevel(str, Enum):
    """Log level options."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class GitHubSettings(BaseModel):
    """Destination repository settings."""

    owner: str | None = Field(default=None, description="Repository owner")
    repo: str | None = Field(default=None, description="Repository name")
    token: SecretStr | None = Field(default=None, description="API token")
    api_url: str = Field(default="https://api.github.com")
    timeout: float = Field(default=30.0, gt=0)

    @property
    def repository(self) -> str | None:
        """owner/repo, when both are known."""
        if self.owner and self.repo:
            return f"{self.owner}/{self.repo}"
        return None


class AWSSettings(BaseModel):
    """AWS Secrets Manager settings."""

    region: str = Field(default="us-east-1")
    profile: str | None = Field(default=None)
    secret_name: str | None = Field(
        default=None,
        description="Secret holding the JSON collection",
    )


class GCPSettings(BaseModel):
    """GCP Secret Manager settings."""

    project: str | None = Field(default=None)
    credentials_path: str | None = Field(default=None)
    secret_name: str | None = Field(default=None)


class VaultSettings(BaseModel):
    """HashiCorp Vault KV v2 settings."""

    url: str | None = Field(default=None)
    token: SecretStr | None = Field(default=None)
    mount_point: str = Field(default="secret")
    namespace: str | None = Field(default=None)
    secret_path: str | None = Field(default=None)


class ObservabilitySettings(BaseModel):
    """Logging settings."""

    log_level: LogLevel = Field(default=LogLevel.WARNING)
    log_format: Literal["json", "console"] = Field(default="console")


class _YamlFileSource(PydanticBaseSettingsSource):
    """Settings source backed by the values of the loaded config file."""

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return _file_values.get().get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        return {k: v for k, v in _file_values.get().items() if v is not None}


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="GHSECRETS_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    github: GitHubSettings = Field(default_factory=GitHubSettings)
    aws: AWSSettings = Field(default_factory=AWSSettings)
    gcp: GCPSettings = Field(default_factory=GCPSettings)
    vault: VaultSettings = Field(default_factory=VaultSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    config_file: str | None = Field(
        default=None,
        description="Config file the settings were loaded from",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Explicit values beat the environment, which beats the config file
        return (init_settings, env_settings, _YamlFileSource(settings_cls))

    @classmethod
    def load(
        cls,
        config_file: str | Path | None = None,
        **overrides: Any,
    ) -> Settings:
        """
        Load settings from a YAML file, the environment and explicit overrides.

        Args:
            config_file: Path to a YAML config file. When omitted,
                ``ghsecrets.yaml`` in the working directory is used if present.
            **overrides: Section dicts (``github={"owner": ...}``) that take
                priority over every other source. ``None`` values are ignored.

        Raises:
            ConfigurationError: If an explicit config file is missing or invalid.
        """
        path: Path | None = None
        if config_file is not None:
            path = Path(config_file).expanduser()
            if not path.is_file():
                raise ConfigurationError(
                    f"Config file '{path}' does not exist",
                    {"config_file": str(path)},
                )
        elif Path(DEFAULT_CONFIG_FILE).is_file():
            path = Path(DEFAULT_CONFIG_FILE)

        file_values = _read_yaml(path) if path else {}
        token = _file_values.set(file_values)
        try:
            return cls(
                config_file=str(path) if path else None,
                **_prune(overrides),
            )
        finally:
            _file_values.reset(token)

    def backend(self, target: BackupTarget) -> AWSSettings | GCPSettings | VaultSettings:
        """Settings section for a backup target."""
        sections: dict[BackupTarget, AWSSettings | GCPSettings | VaultSettings] = {
            BackupTarget.AWS: self.aws,
            BackupTarget.GCP: self.gcp,
            BackupTarget.VAULT: self.vault,
        }
        if target not in sections:
            raise ConfigurationError(f"'{target.value}' is not a backup store")
        return sections[target]

    def collection_name(self, target: BackupTarget) -> str | None:
        """
        Name of the backend slot holding the secret collection for a target.

        Falls back to ``github-secrets-{owner}-{repo}`` when no name is
        configured and the destination repository is known.
        """
        section = self.backend(target)
        configured = (
            section.secret_path if isinstance(section, VaultSettings) else section.secret_name
        )
        if configured:
            return configured
        if self.github.owner and self.github.repo:
            return f"github-secrets-{self.github.owner}-{self.github.repo}"
        return None

    def missing_backend_fields(self, target: BackupTarget) -> list[str]:
        """Config keys a backup target cannot work without."""
        if target is BackupTarget.NONE:
            return []

        missing: list[str] = []
        if target is BackupTarget.GCP and not self.gcp.project:
            missing.append("gcp.project")
        if target is BackupTarget.VAULT and not self.vault.url:
            missing.append("vault.url")
        if self.collection_name(target) is None:
            field = "vault.secret_path" if target is BackupTarget.VAULT else f"{target.value}.secret_name"
            missing.append(field)
        return missing

    def missing_github_fields(self) -> list[str]:
        """Config keys the primary store cannot work without."""
        missing = []
        if not self.github.owner:
            missing.append("github.owner")
        if not self.github.repo:
            missing.append("github.repo")
        if self.github.token is None or not self.github.token.get_secret_value():
            missing.append("github.token")
        return missing


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Config file '{path}' is not valid YAML",
            {"config_file": str(path), "error": str(e)},
        ) from e

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Config file '{path}' must contain a mapping",
            {"config_file": str(path)},
        )
    return data


def _prune(overrides: dict[str, Any]) -> dict[str, Any]:
    """Drop unset override values so they do not mask other sources."""
    result: dict[str, Any] = {}
    for key, value in overrides.items():
        if isinstance(value, dict):
            nested = _prune(value)
            if nested:
                result[key] = nested
        elif value is not None:
            result[key] = value
    return result
