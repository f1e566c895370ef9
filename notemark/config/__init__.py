"""Worker configuration.

Key classes:
    WorkerConfig: Retry, timeout, batch and output settings
    ConfigLoader: Loads WorkerConfig from YAML files and NOTEMARK_* variables
"""

from .config_loader import ConfigLoader
from .errors import ConfigError, ConfigFilesystemError
from .models import WorkerConfig

__all__ = [
    "ConfigLoader",
    "WorkerConfig",
    "ConfigError",
    "ConfigFilesystemError",
]
