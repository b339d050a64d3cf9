from .config import (
    CONFIG_FILE_NAME,
    Config,
    EnvConfig,
    create_registry,
    load_config,
)

__all__ = ["CONFIG_FILE_NAME", "Config", "EnvConfig", "create_registry", "load_config"]
