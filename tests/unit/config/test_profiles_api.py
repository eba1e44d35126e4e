from pathlib import Path
from typing import Any

import pytest
import yaml

from cloudstore.config.client_options import ClientOptions
from cloudstore.config.config import ConfigManager
from cloudstore.config.profiles import (
    ProfileAlreadyExist,
    ProfileManager,
    ProfileNotFound,
)


@pytest.fixture
def temporary_home(tmp_path: Path) -> Path:
    """Provide an isolated home directory for profile tests."""
    home_directory = tmp_path / "home"
    home_directory.mkdir()
    return home_directory


@pytest.fixture
def profile_manager(temporary_home: Path) -> ProfileManager:
    """Provide a ProfileManager rooted at the temporary home directory."""
    return ProfileManager(home_path=temporary_home)


@pytest.fixture
def profiles_directory(temporary_home: Path) -> Path:
    """Return the profiles directory under the temporary home."""
    return temporary_home / ".cloudstore" / "profiles"


def _write_profile(profiles_directory: Path, name: str, content: dict) -> None:
    profiles_directory.mkdir(parents=True, exist_ok=True)
    with (profiles_directory / f"{name}.yaml").open("w") as profile_file:
        yaml.safe_dump(content, profile_file)


def test_create_profile_creates_yaml_with_default_options(
    profile_manager: ProfileManager,
    profiles_directory: Path,
) -> None:
    """create_profile should create a YAML file with default ClientOptions."""
    profile_manager.create_profile("uploads")

    profile_path = profiles_directory / "uploads.yaml"
    assert profile_path.is_file()

    with profile_path.open("r") as profile_file:
        stored_data = yaml.safe_load(profile_file)

    assert stored_data == ClientOptions().model_dump()


def test_create_profile_with_values(profile_manager: ProfileManager) -> None:
    """create_profile should store the provided values."""
    options = profile_manager.create_profile(
        "fast", {"upload_buffer_size": "16mb", "maximum_retry_count": 5}
    )

    assert options.upload_buffer_size == 16 * 1024**2
    assert profile_manager.get_profile("fast").maximum_retry_count == 5


def test_create_profile_raises_when_profile_exists(
    profile_manager: ProfileManager,
) -> None:
    """create_profile should raise when the profile already exists."""
    profile_manager.create_profile("existing")

    with pytest.raises(ProfileAlreadyExist):
        profile_manager.create_profile("existing")


def test_get_profile_parses_unit_suffixed_byte_fields(
    profile_manager: ProfileManager,
    profiles_directory: Path,
) -> None:
    """get_profile should parse unit-suffixed byte values from YAML."""
    _write_profile(
        profiles_directory,
        "units",
        {"upload_buffer_size": "4mb", "download_buffer_size": "512k"},
    )

    loaded_options = profile_manager.get_profile("units")

    assert loaded_options.upload_buffer_size == 4 * 1024**2
    assert loaded_options.download_buffer_size == 512 * 1024


def test_get_profile_without_name_returns_defaults(
    profile_manager: ProfileManager,
) -> None:
    assert profile_manager.get_profile(None) == ClientOptions()


def test_get_profile_raises_when_missing(profile_manager: ProfileManager) -> None:
    """get_profile should raise when the profile YAML file does not exist."""
    with pytest.raises(ProfileNotFound):
        profile_manager.get_profile("does_not_exist")


def test_list_profiles_returns_sorted_names(
    profile_manager: ProfileManager,
    profiles_directory: Path,
) -> None:
    """list_profiles should return sorted profile names without extensions."""
    profiles_directory.mkdir(parents=True, exist_ok=True)
    for profile_name in ["beta", "alpha", "gamma"]:
        (profiles_directory / f"{profile_name}.yaml").write_text("{}", encoding="utf-8")
    (profiles_directory / "notes.txt").write_text("ignored", encoding="utf-8")

    assert profile_manager.list_profiles() == ["alpha", "beta", "gamma"]


def test_list_profiles_without_directory(profile_manager: ProfileManager) -> None:
    assert profile_manager.list_profiles() == []


def test_update_profile_updates_only_specified_fields(
    profile_manager: ProfileManager,
) -> None:
    """update_profile should modify only the provided fields and keep others."""
    profile_manager.create_profile("uploads")
    profile_manager.update_profile(
        "uploads", {"maximum_retry_count": 3, "backoff_scaling": 3.0}
    )

    updated_options = profile_manager.update_profile(
        "uploads", {"maximum_retry_count": 7, "backoff_scaling": None}
    )

    assert updated_options.maximum_retry_count == 7
    assert updated_options.backoff_scaling == 3.0


def test_update_profile_raises_when_profile_missing(
    profile_manager: ProfileManager,
) -> None:
    """update_profile should raise when the profile does not exist."""
    with pytest.raises(ProfileNotFound):
        profile_manager.update_profile("missing", {"maximum_retry_count": 1})


def test_delete_profile(profile_manager: ProfileManager) -> None:
    profile_manager.create_profile("temporary")

    profile_manager.delete_profile("temporary")

    assert profile_manager.list_profiles() == []
    with pytest.raises(ProfileNotFound):
        profile_manager.delete_profile("temporary")


def test_resolve_effective_config_env_overrides_profile(
    profile_manager: ProfileManager,
    profiles_directory: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Environment variables should override values from the profile YAML."""
    base_content: dict[str, Any] = {
        "upload_buffer_size": 1024,
        "download_buffer_size": 2048,
        "enable_tracing": False,
    }
    _write_profile(profiles_directory, "uploads", base_content)

    monkeypatch.setenv("CLOUDSTORE_UPLOAD_BUFFER_SIZE", "2mb")
    monkeypatch.setenv("CLOUDSTORE_ENABLE_TRACING", "YeS")
    monkeypatch.setenv("CLOUDSTORE_MAXIMUM_RETRY_COUNT", "4")
    monkeypatch.setenv("CLOUDSTORE_INITIAL_BACKOFF_DELAY", "0.5")

    config_manager = ConfigManager(profile_manager=profile_manager, profile="uploads")
    effective_options = config_manager.resolve_effective_config(cli_config={})

    assert effective_options.upload_buffer_size == 2 * 1024**2
    assert effective_options.download_buffer_size == 2048
    assert effective_options.enable_tracing is True
    assert effective_options.maximum_retry_count == 4
    assert effective_options.initial_backoff_delay == 0.5


def test_resolve_effective_config_cli_overrides_env_and_profile(
    profile_manager: ProfileManager,
    profiles_directory: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """CLI overrides should take precedence over both env and profile values."""
    _write_profile(
        profiles_directory,
        "uploads",
        {"maximum_retry_period": 60.0, "maximum_backoff_delay": 10.0},
    )
    monkeypatch.setenv("CLOUDSTORE_MAXIMUM_RETRY_PERIOD", "120")

    config_manager = ConfigManager(profile_manager=profile_manager, profile="uploads")
    effective_options = config_manager.resolve_effective_config(
        cli_config={"maximum_retry_period": 30.0, "maximum_backoff_delay": None}
    )

    assert effective_options.maximum_retry_period == 30.0
    assert effective_options.maximum_backoff_delay == 10.0


def test_resolve_effective_config_ignores_invalid_env_values(
    profile_manager: ProfileManager,
    profiles_directory: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Invalid numeric or unit values in environment variables are ignored."""
    _write_profile(
        profiles_directory,
        "uploads",
        {"upload_buffer_size": 4096, "maximum_retry_period": 60.0},
    )
    monkeypatch.setenv("CLOUDSTORE_UPLOAD_BUFFER_SIZE", "lots")
    monkeypatch.setenv("CLOUDSTORE_MAXIMUM_RETRY_PERIOD", "forever")
    monkeypatch.setenv("CLOUDSTORE_MAXIMUM_RETRY_COUNT", "many")

    config_manager = ConfigManager(profile_manager=profile_manager, profile="uploads")
    effective_options = config_manager.resolve_effective_config()

    assert effective_options.upload_buffer_size == 4096
    assert effective_options.maximum_retry_period == 60.0
    assert effective_options.maximum_retry_count is None
