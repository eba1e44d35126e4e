"""API for handling client profile information."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from cloudstore.config.client_options import ClientOptions
from cloudstore.const import CONFIG_DIR_NAME


class ProfileNotFound(Exception):
    """Raised when a requested profile cannot be found on disk."""


class ProfileAlreadyExist(Exception):
    """Raised when attempting to create a profile that already exists."""


class ProfileManager:
    """Manage client profiles stored as YAML files on disk."""

    def __init__(self, home_path: Path | None = None) -> None:
        """Initialise ProfileManager.

        Args:
            home_path: Directory holding the configuration folder. Defaults to
                the user's home directory.
        """
        self._home_path = home_path or Path.home()

    @property
    def home_path(self) -> Path:
        return self._home_path

    def _profiles_dir(self) -> Path:
        return self._home_path / CONFIG_DIR_NAME / "profiles"

    def _get_profile_path(self, profile: str) -> Path:
        profiles_dir = self._profiles_dir()
        profiles_dir.mkdir(parents=True, exist_ok=True)
        return profiles_dir / f"{profile}.yaml"

    def list_profiles(self) -> list[str]:
        """List available profile names.

        Returns:
            Sorted profile names without the ``.yaml`` suffix.
        """
        profiles_dir = self._profiles_dir()
        if not profiles_dir.exists():
            return []
        return sorted(
            path.stem
            for path in profiles_dir.iterdir()
            if path.is_file() and path.suffix == ".yaml"
        )

    def get_profile(self, profile: str | None = None) -> ClientOptions:
        """Load a profile from disk.

        Args:
            profile: Name of the profile to load. None returns the defaults.

        Returns:
            The client options stored in the profile.

        Raises:
            ProfileNotFound: If the profile YAML file does not exist.
        """
        if profile is None:
            return ClientOptions()

        profile_path = self._get_profile_path(profile)
        try:
            with profile_path.open("r") as profile_file:
                profile_data = yaml.safe_load(profile_file) or {}
        except FileNotFoundError as exc:
            raise ProfileNotFound(f"Profile {profile!r} not found.") from exc

        return ClientOptions(**profile_data)

    def create_profile(
        self, profile: str, values: dict[str, Any] | None = None
    ) -> ClientOptions:
        """Create a new profile, starting from the default options.

        Args:
            profile: Name of the profile to create.
            values: Optional field values overriding the defaults.

        Returns:
            The options stored in the new profile.

        Raises:
            ProfileAlreadyExist: If a profile with the same name already exists.
        """
        profile_path = self._get_profile_path(profile)
        options = ClientOptions(**(values or {}))

        try:
            with profile_path.open("x") as profile_file:
                yaml.safe_dump(options.model_dump(), profile_file)
        except FileExistsError as exc:
            raise ProfileAlreadyExist(f"Profile {profile!r} already exists.") from exc
        return options

    def update_profile(self, profile: str, updates: dict[str, Any]) -> ClientOptions:
        """Update an existing profile with the provided field values.

        Args:
            profile: Name of the profile to update.
            updates: Mapping of field names to new values. Fields with a value of
                ``None`` are ignored and do not overwrite existing values.

        Returns:
            The updated options.

        Raises:
            ProfileNotFound: If the profile YAML file does not exist.
        """
        current = self.get_profile(profile)
        filtered_updates = {
            name: value for name, value in updates.items() if value is not None
        }
        new_options = ClientOptions(**{**current.model_dump(), **filtered_updates})

        with self._get_profile_path(profile).open("w") as profile_file:
            yaml.safe_dump(new_options.model_dump(), profile_file)
        return new_options

    def delete_profile(self, profile: str) -> None:
        """Remove a profile from disk.

        Raises:
            ProfileNotFound: If the profile YAML file does not exist.
        """
        try:
            self._get_profile_path(profile).unlink()
        except FileNotFoundError as exc:
            raise ProfileNotFound(f"Profile {profile!r} not found.") from exc
