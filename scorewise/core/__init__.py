from .config import FAQSettings, OpenAISettings, RuntimeConfig, load_runtime_config
from .logging import configure_logging

__all__ = [
    "FAQSettings",
    "OpenAISettings",
    "RuntimeConfig",
    "load_runtime_config",
    "configure_logging",
]
