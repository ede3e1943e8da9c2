"""Tests for config file discovery."""

from __future__ import annotations

from pathlib import Path

import pytest

from fieldctl.config.discovery import (
    CONFIG_ENV_VAR,
    CONFIG_FILENAME,
    find_config,
    find_definition,
    forms_root,
)


@pytest.fixture(autouse=True)
def _no_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)


class TestFindConfig:
    def test_finds_in_current_dir(self, tmp_path: Path) -> None:
        config_file = tmp_path / CONFIG_FILENAME
        config_file.write_text("[money]\nmax_digits = 14\n")
        assert find_config(tmp_path) == config_file

    def test_walks_up(self, tmp_path: Path) -> None:
        config_file = tmp_path / CONFIG_FILENAME
        config_file.write_text("")
        child = tmp_path / "a" / "b" / "c"
        child.mkdir(parents=True)
        assert find_config(child) == config_file

    def test_returns_none_when_not_found(self, tmp_path: Path) -> None:
        child = tmp_path / "empty"
        child.mkdir()
        assert find_config(child) is None

    def test_env_var_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("")
        custom = tmp_path / "custom.toml"
        custom.write_text("")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(custom))
        assert find_config(tmp_path) == custom

    def test_env_var_missing_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "gone.toml"))
        assert find_config(tmp_path) is None


class TestFormsRoot:
    def test_next_to_config(self, tmp_path: Path) -> None:
        config = tmp_path / CONFIG_FILENAME
        assert forms_root(config, "forms") == tmp_path / "forms"

    def test_without_config_uses_start(self, tmp_path: Path) -> None:
        assert forms_root(None, "screens", start=tmp_path) == tmp_path / "screens"

    def test_absolute_directory(self, tmp_path: Path) -> None:
        assert forms_root(tmp_path / CONFIG_FILENAME, str(tmp_path / "abs")) == tmp_path / "abs"


class TestFindDefinition:
    def test_existing_path(self, tmp_path: Path) -> None:
        path = tmp_path / "anywhere.yaml"
        path.write_text("")
        assert find_definition(str(path), tmp_path / "forms") == path

    def test_form_name(self, tmp_path: Path) -> None:
        root = tmp_path / "forms"
        root.mkdir()
        (root / "card-update.toml").write_text("")
        (root / "account-update.yml").write_text("")
        (root / "account-update.yaml").write_text("")
        assert find_definition("account-update", root) == root / "account-update.yaml"
        assert find_definition("card-update", root) == root / "card-update.toml"

    def test_missing(self, tmp_path: Path) -> None:
        assert find_definition("nope", tmp_path) is None

    def test_paths_are_not_names(self, tmp_path: Path) -> None:
        root = tmp_path / "forms"
        root.mkdir()
        (root / "a.yaml").write_text("")
        assert find_definition("a.yaml", root) is None
        assert find_definition("sub/a", root) is None
