"""Application configuration and settings."""

from .api_config import (
    API_CONFIG,
    LOGGING_CONFIG
)

from .simulation_config import (
    SIMULATION_CONFIG,
    HISTORY_CONFIG,
    LAYOUT_CONFIG,
    VALIDATION_CONFIG,
    METRICS_CONFIG
)

__all__ = [
    'API_CONFIG',
    'LOGGING_CONFIG',
    'SIMULATION_CONFIG',
    'HISTORY_CONFIG',
    'LAYOUT_CONFIG',
    'VALIDATION_CONFIG',
    'METRICS_CONFIG'
]
