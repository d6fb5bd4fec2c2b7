"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import DEFAULT_BASE_URL, EndpointConfig, GlobalConfig, PipelineConfig

__all__ = [
    "ConfigLocator",
    "ConfigRepository",
    "DEFAULT_BASE_URL",
    "EndpointConfig",
    "GlobalConfig",
    "PipelineConfig",
]
