from __future__ import annotations

from pathlib import Path

import pytest

from igarecon.config import (
    CONFIG_ENV_VAR,
    OUTPUT_DIR_ENV_VAR,
    ConfigurationError,
    load_settings,
)

MINIMAL = """\
[identity_source]
path = "roster.csv"

[[target_systems]]
unique_id = "AD"
users_path = "users.json"
groups_path = "/data/groups.json"
"""


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "settings.toml"
    path.write_text(text, encoding="utf-8")
    return path


def test_load_settings_resolves_relative_paths(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.delenv(OUTPUT_DIR_ENV_VAR, raising=False)
    path = _write(tmp_path, MINIMAL)

    settings = load_settings(path)

    base = path.resolve().parent
    (target_system,) = settings.target_systems
    assert settings.identity_source.path == base / "roster.csv"
    assert target_system.users_path == base / "users.json"
    assert target_system.groups_path == Path("/data/groups.json")
    assert settings.output_dir == base / "reports"
    assert settings.sync is None
    assert target_system.users.unique_id == "SamAccountName"
    assert settings.identity_source.enabled_codes == ("3",)


def test_full_settings_file(settings_file: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(OUTPUT_DIR_ENV_VAR, raising=False)

    settings = load_settings(settings_file)

    ad, aad = settings.target_systems
    assert settings.sync is not None
    assert (settings.sync.from_system, settings.sync.to_system) == ("AD", "AAD")
    assert ad.account_matching is not None
    assert ad.account_matching.identity_field == "employee_no"
    assert ad.counterpart is not None
    assert ad.counterpart.attribute == "cloudId"
    assert ad.users.other_attributes == ("employeeID", "cloudId", "kind")
    assert aad.account_matching is None


def test_path_comes_from_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = _write(tmp_path, MINIMAL)
    monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

    assert load_settings().target_systems[0].unique_id == "AD"


def test_output_dir_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = _write(tmp_path, MINIMAL)
    monkeypatch.setenv(OUTPUT_DIR_ENV_VAR, str(tmp_path / "from-env"))

    assert load_settings(path).output_dir == tmp_path / "from-env"
    assert load_settings(path, output_dir=tmp_path / "cli").output_dir == tmp_path / "cli"


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="Failed to read settings file"):
        load_settings(tmp_path / "absent.toml")


def test_invalid_toml(tmp_path: Path) -> None:
    path = _write(tmp_path, "[identity_source\npath = 1")

    with pytest.raises(ConfigurationError, match="Invalid TOML"):
        load_settings(path)


@pytest.mark.parametrize(
    ("extra", "message"),
    [
        (
            '\n[sync]\nfrom_system = "AD"\nto_system = "AD"\n',
            "must differ",
        ),
        (
            '\n[[target_systems]]\nunique_id = "AD"\nusers_path = "u"\ngroups_path = "g"\n',
            "Duplicate target system id: AD",
        ),
        (
            '\n[target_systems.account_matching]\nattribute = "employeeID"\n',
            "is not listed in other_attributes",
        ),
        (
            '\n[target_systems.users]\nunique_idd = "x"\n',
            "Extra inputs are not permitted",
        ),
    ],
)
def test_invalid_settings(tmp_path: Path, extra: str, message: str) -> None:
    path = _write(tmp_path, MINIMAL + extra)

    with pytest.raises(ConfigurationError, match=message):
        load_settings(path)


def test_requires_a_target_system(tmp_path: Path) -> None:
    path = _write(tmp_path, '[identity_source]\npath = "roster.csv"\n')

    with pytest.raises(ConfigurationError, match="Invalid settings"):
        load_settings(path)
