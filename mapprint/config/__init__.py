from mapprint.config.config import (
    Options,
    ConfigurationError,
    load_base_config,
    load_default_config,
)

__all__ = ['Options', 'ConfigurationError', 'load_base_config', 'load_default_config']
