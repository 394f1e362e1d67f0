from __future__ import annotations

import json
import textwrap
from pathlib import Path

import pytest
import yaml

from rgr.config import (
    DEFAULT_TEST_CMD,
    ConfigError,
    config_to_dict,
    example_config,
    load_config,
    write_config,
)
from rgr.prompts import DEFAULT_TESTER_PROMPT


def test_load_config_without_path_returns_example() -> None:
    config = load_config(None)

    assert config.tester.provider.kind == "mock"
    assert config.tester.system_prompt == DEFAULT_TESTER_PROMPT
    assert config.test_cmd == DEFAULT_TEST_CMD
    assert config.max_context_bytes == 200_000
    assert config.implementor_max_attempts == 3
    assert config.strict_red is False
    assert config.confine_edits is True


def test_write_then_load_yaml(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "rgr.yaml"

    write_config(path, example_config())

    assert load_config(path) == example_config()
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    assert list(data)[:3] == ["tester", "implementor", "refactorer"]


def test_load_yaml_with_defaults_and_aliases(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text(
        textwrap.dedent(
            """
            tester:
              provider: {kind: open_ai, model: gpt-4o-mini, base_url: "https://api.groq.com/openai/v1"}
            implementor:
              provider: {kind: Gemini, model: gemini-1.5-pro, api_key_env: MY_GEMINI}
              system_prompt: Be terse.
            refactorer:
              provider: {kind: mock, model: mock}
            test_cmd: pytest -q
            """
        ),
        encoding="utf-8",
    )

    config = load_config(path)

    assert config.tester.provider.kind == "openai"
    assert config.tester.provider.base_url == "https://api.groq.com/openai/v1"
    assert config.tester.system_prompt is None
    assert config.implementor.provider.kind == "gemini"
    assert config.implementor.system_prompt == "Be terse."
    assert config.test_cmd == "pytest -q"
    assert config.implementor_max_attempts == 3


def test_load_json_config(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    data = config_to_dict(example_config())
    data["implementor_max_attempts"] = 5
    path.write_text(json.dumps(data), encoding="utf-8")

    assert load_config(path).implementor_max_attempts == 5


def test_missing_config_file_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "absent.yaml")


def test_unparseable_config_is_an_error(tmp_path: Path) -> None:
    path = tmp_path / "broken.yaml"
    path.write_text("tester: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(path)


def test_invalid_values_are_rejected(tmp_path: Path) -> None:
    data = config_to_dict(example_config())
    data["implementor_max_attempts"] = 0
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(path)


def test_unknown_provider_kind_is_rejected(tmp_path: Path) -> None:
    data = config_to_dict(example_config())
    data["tester"]["provider"]["kind"] = "carrier-pigeon"
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(path)


def test_top_level_must_be_mapping(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="mapping"):
        load_config(path)
