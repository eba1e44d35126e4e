"""Resolve client options from profile, environment, and CLI overrides."""

from __future__ import annotations

import os
from typing import Any

from cloudstore.config.client_options import ClientOptions
from cloudstore.config.helpers import parse_bytes
from cloudstore.config.profiles import ProfileManager

_ENV_MAP: dict[str, str] = {
    "upload_buffer_size": "CLOUDSTORE_UPLOAD_BUFFER_SIZE",
    "download_buffer_size": "CLOUDSTORE_DOWNLOAD_BUFFER_SIZE",
    "maximum_simple_upload_size": "CLOUDSTORE_MAXIMUM_SIMPLE_UPLOAD_SIZE",
    "download_stall_timeout": "CLOUDSTORE_DOWNLOAD_STALL_TIMEOUT",
    "maximum_retry_period": "CLOUDSTORE_MAXIMUM_RETRY_PERIOD",
    "maximum_retry_count": "CLOUDSTORE_MAXIMUM_RETRY_COUNT",
    "initial_backoff_delay": "CLOUDSTORE_INITIAL_BACKOFF_DELAY",
    "maximum_backoff_delay": "CLOUDSTORE_MAXIMUM_BACKOFF_DELAY",
    "backoff_scaling": "CLOUDSTORE_BACKOFF_SCALING",
    "enable_tracing": "CLOUDSTORE_ENABLE_TRACING",
    "access_token": "CLOUDSTORE_ACCESS_TOKEN",
}

_SIZE_FIELDS = {
    "upload_buffer_size",
    "download_buffer_size",
    "maximum_simple_upload_size",
}
_FLOAT_FIELDS = {
    "download_stall_timeout",
    "maximum_retry_period",
    "initial_backoff_delay",
    "maximum_backoff_delay",
    "backoff_scaling",
}

YES_CONFIRMATION = {"1", "true", "yes", "y"}


class ConfigManager:
    """Build effective client options from profile, env, and CLI overrides."""

    def __init__(
        self, profile_manager: ProfileManager, profile: str | None = None
    ) -> None:
        """Initialise ConfigManager.

        Args:
            profile_manager: ProfileManager instance
            profile: Name of the profile to load as the base configuration.
        """
        self.profile_manager = profile_manager
        self.profile = profile

    def _read_env_overrides(self) -> dict[str, Any]:
        """Read option overrides from environment variables.

        Values that cannot be parsed are ignored.

        Returns:
            A dictionary of option names to override values.
        """
        overrides: dict[str, Any] = {}

        for field_name, env_var_name in _ENV_MAP.items():
            env_value = os.getenv(env_var_name)
            if env_value is None:
                continue

            if field_name in _SIZE_FIELDS:
                try:
                    overrides[field_name] = parse_bytes(env_value)
                except ValueError:
                    continue
            elif field_name in _FLOAT_FIELDS:
                try:
                    overrides[field_name] = float(env_value)
                except ValueError:
                    continue
            elif field_name == "maximum_retry_count":
                try:
                    overrides[field_name] = int(env_value)
                except ValueError:
                    continue
            elif field_name == "enable_tracing":
                overrides[field_name] = env_value.lower() in YES_CONFIRMATION
            else:
                overrides[field_name] = env_value

        return overrides

    def resolve_effective_config(
        self, cli_config: dict[str, Any] | None = None
    ) -> ClientOptions:
        """Resolve the effective client options for this run.

        Args:
            cli_config: Optional CLI-provided overrides. ``None`` values are
                ignored.

        Returns:
            The resolved ``ClientOptions``.
        """
        base_options = self.profile_manager.get_profile(self.profile)
        merged = {**base_options.model_dump(), **self._read_env_overrides()}
        if cli_config is not None:
            merged.update({
                name: value for name, value in cli_config.items() if value is not None
            })
        return ClientOptions(**merged)
