"""Client options, profiles and configuration resolution."""

from cloudstore.config.client_options import ClientOptions
from cloudstore.config.config import ConfigManager
from cloudstore.config.profiles import ProfileManager

__all__ = ["ClientOptions", "ConfigManager", "ProfileManager"]
