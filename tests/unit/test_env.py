from __future__ import annotations

import os
from pathlib import Path

import pytest

from hashnav.env import load_env_chain, router_overrides
from hashnav.errors import ConfigError


def test_cwd_env_file_wins_over_repo_root_for_empty_variable(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    repo = tmp_path / "repo"
    repo.mkdir()
    (repo / ".env").write_text(
        "HASHNAV_BASE_URL=http://repo.test/\nHASHNAV_USER_AGENT=repo-agent\n", encoding="utf-8"
    )
    cwd = tmp_path / "cwd"
    cwd.mkdir()
    (cwd / ".env").write_text("HASHNAV_BASE_URL=http://cwd.test/\n", encoding="utf-8")

    monkeypatch.chdir(cwd)
    monkeypatch.setenv("HASHNAV_BASE_URL", "")
    monkeypatch.delenv("HASHNAV_USER_AGENT", raising=False)

    values = load_env_chain(repo)

    assert values["HASHNAV_BASE_URL"] == "http://cwd.test/"
    assert values["HASHNAV_USER_AGENT"] == "repo-agent"


def test_existing_setting_is_kept_and_unrelated_keys_are_ignored(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    (tmp_path / ".env").write_text(
        "HASHNAV_LOG_LEVEL=debug\nOTHER_TOOL_TOKEN=secret\n", encoding="utf-8"
    )
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HASHNAV_LOG_LEVEL", "warning")
    monkeypatch.delenv("OTHER_TOOL_TOKEN", raising=False)

    values = load_env_chain(tmp_path)

    assert values["HASHNAV_LOG_LEVEL"] == "warning"
    assert "OTHER_TOOL_TOKEN" not in os.environ
    assert all(key.startswith("HASHNAV_") for key in values)


def test_router_overrides_maps_settings_onto_config_fields() -> None:
    overrides = router_overrides(
        {
            "HASHNAV_BASE_URL": "http://docs.test/",
            "HASHNAV_TIMEOUT_SECONDS": "2.5",
            "HASHNAV_UNKNOWN": "x",
        }
    )
    assert overrides == {"base_url": "http://docs.test/", "timeout_seconds": 2.5}


def test_router_overrides_rejects_non_numeric_timeout() -> None:
    with pytest.raises(ConfigError):
        router_overrides({"HASHNAV_TIMEOUT_SECONDS": "soon"})
