"""Per-user directory lookup."""

from .paths import default_config_file, home, user_config_dir

__all__ = ["default_config_file", "home", "user_config_dir"]
