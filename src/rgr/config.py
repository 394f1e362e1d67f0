"""Configuration model and YAML/JSON persistence for the orchestrator."""

from __future__ import annotations

import copy
import json
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Literal, Mapping, Optional

import yaml
from pydantic import ValidationError
from pydantic.type_adapter import TypeAdapter

from .prompts import DEFAULT_IMPLEMENTOR_PROMPT, DEFAULT_REFACTORER_PROMPT, DEFAULT_TESTER_PROMPT

ProviderKind = Literal["openai", "gemini", "mock"]

DEFAULT_CONFIG_NAME = "red-green-refactor.yaml"
DEFAULT_TEST_CMD = "cargo test --color never"
DEFAULT_MAX_CONTEXT_BYTES = 200_000
DEFAULT_IMPLEMENTOR_MAX_ATTEMPTS = 3

ROLE_NAMES: tuple[str, ...] = ("tester", "implementor", "refactorer")

_KIND_ALIASES = {
    "open_ai": "openai",
    "openai_compatible": "openai",
    "gemini_compatible": "gemini",
}


class ConfigError(RuntimeError):
    """Raised when configuration is missing or malformed."""


@dataclass(slots=True)
class ProviderConfig:
    """Backend selection for a single role."""

    kind: ProviderKind
    model: str
    base_url: Optional[str] = None
    api_key_env: Optional[str] = None
    organization: Optional[str] = None
    api_key_header: Optional[str] = None
    api_key_prefix: Optional[str] = None


@dataclass(slots=True)
class RoleConfig:
    """Provider plus an optional role-specific system prompt."""

    provider: ProviderConfig
    system_prompt: Optional[str] = None


@dataclass(slots=True)
class OrchestratorConfig:
    """Parameters of the red-green-refactor cycle."""

    tester: RoleConfig
    implementor: RoleConfig
    refactorer: RoleConfig
    test_cmd: str = DEFAULT_TEST_CMD
    max_context_bytes: int = DEFAULT_MAX_CONTEXT_BYTES
    implementor_max_attempts: int = DEFAULT_IMPLEMENTOR_MAX_ATTEMPTS
    strict_red: bool = False
    confine_edits: bool = True

    def __post_init__(self) -> None:
        if self.implementor_max_attempts < 1:
            raise ValueError("implementor_max_attempts must be at least 1")
        if self.max_context_bytes < 0:
            raise ValueError("max_context_bytes must not be negative")
        if not self.test_cmd.strip():
            raise ValueError("test_cmd must not be empty")

    def role(self, name: str) -> RoleConfig:
        """Return the configuration for role ``name``."""
        if name not in ROLE_NAMES:
            raise KeyError(name)
        return getattr(self, name)


def _mock_role(system_prompt: str) -> RoleConfig:
    return RoleConfig(provider=ProviderConfig(kind="mock", model="mock"), system_prompt=system_prompt)


def example_config() -> OrchestratorConfig:
    """Return the template configuration with offline mock backends."""
    return OrchestratorConfig(
        tester=_mock_role(DEFAULT_TESTER_PROMPT),
        implementor=_mock_role(DEFAULT_IMPLEMENTOR_PROMPT),
        refactorer=_mock_role(DEFAULT_REFACTORER_PROMPT),
    )


def _normalise_kinds(data: Dict[str, Any]) -> Dict[str, Any]:
    for role in ROLE_NAMES:
        role_cfg = data.get(role)
        if not isinstance(role_cfg, dict):
            continue
        provider = role_cfg.get("provider")
        if not isinstance(provider, dict):
            continue
        kind = provider.get("kind")
        if isinstance(kind, str):
            lowered = kind.strip().lower()
            provider["kind"] = _KIND_ALIASES.get(lowered, lowered)
    return data


def config_from_mapping(data: Mapping[str, Any]) -> OrchestratorConfig:
    """Validate a decoded configuration mapping."""
    if not isinstance(data, Mapping):
        raise ConfigError("Configuration must be a mapping at the top level.")
    payload = _normalise_kinds(copy.deepcopy(dict(data)))
    try:
        return TypeAdapter(OrchestratorConfig).validate_python(payload)
    except (ValidationError, ValueError) as error:
        raise ConfigError(f"Invalid configuration: {error}") from error


def load_config(config_path: Path | str | None) -> OrchestratorConfig:
    """Load configuration from ``config_path``; ``None`` yields the example.

    ``.json`` files are parsed as JSON, everything else as YAML.
    """
    if config_path is None:
        return example_config()
    path = Path(config_path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as error:
        raise ConfigError(f"Failed to read config {path}: {error}") from error

    try:
        if path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text) or {}
    except (json.JSONDecodeError, yaml.YAMLError) as error:
        raise ConfigError(f"Failed to parse config {path}: {error}") from error
    return config_from_mapping(data)


def config_to_dict(config: OrchestratorConfig) -> Dict[str, Any]:
    return asdict(config)


def write_config(config_path: Path, config: OrchestratorConfig) -> None:
    """Persist configuration data to disk with stable formatting."""
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with config_path.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(config_to_dict(config), handle, sort_keys=False)


__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_NAME",
    "DEFAULT_IMPLEMENTOR_MAX_ATTEMPTS",
    "DEFAULT_MAX_CONTEXT_BYTES",
    "DEFAULT_TEST_CMD",
    "OrchestratorConfig",
    "ProviderConfig",
    "ProviderKind",
    "ROLE_NAMES",
    "RoleConfig",
    "config_from_mapping",
    "config_to_dict",
    "example_config",
    "load_config",
    "write_config",
]
