from pathlib import Path

import pytest

from carrier.config import CarrierSettings


def test_settings_defaults_expand_to_home_paths(tmp_path: Path, monkeypatch) -> None:
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))

    settings = CarrierSettings()

    assert settings.storage_dir == (home / ".carrier").resolve()
    assert settings.limit == 0
    assert settings.based_on_second is False
    assert settings.encoding == "utf-8"


def test_settings_read_carrier_env_vars(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("CARRIER_STORAGE_DIR", str(tmp_path / "blobs"))
    monkeypatch.setenv("CARRIER_LIMIT", "5")
    monkeypatch.setenv("CARRIER_BASED_ON_SECOND", "true")

    settings = CarrierSettings()

    assert settings.storage_dir == (tmp_path / "blobs").resolve()
    assert settings.limit == 5
    assert settings.based_on_second is True


def test_relative_storage_dir_resolves_from_cwd(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)

    settings = CarrierSettings(storage_dir=Path("state"))

    assert settings.storage_dir == (tmp_path / "state").resolve()


def test_settings_reject_negative_limit() -> None:
    with pytest.raises(ValueError, match="limit must be >= 0"):
        CarrierSettings(limit=-1)
