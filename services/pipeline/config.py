"""
Pipeline configuration definition.

Loads process-wide defaults from environment variables and provides a Pydantic model.
Uses pydantic-settings for type safety and defaults.
"""

import sys
from typing import Optional

from pydantic import Field
from services.common.core.config import BaseAppConfig


class PipelineConfig(BaseAppConfig):
    """
    Configuration management for route pipelines.
    """

    LOG_CONFIG_PATH: str = Field(
        default="config/pipeline_log.yaml", description="Logging dictConfig YAML path"
    )

    # Response policy
    DEFAULT_MAX_RESPONSE_SIZE: int = Field(
        default=6 * 1024 * 1024, gt=0, description="Default max response body size (bytes)"
    )

    # Chain time budget used when a route does not set timeout_ms
    DEFAULT_TIMEOUT_MS: Optional[int] = Field(
        default=None, gt=0, description="Default chain timeout (milliseconds)"
    )


# Load config as a singleton.
# pydantic-settings reads environment variables during instantiation.
try:
    config = PipelineConfig()
except Exception as e:
    sys.stderr.write(f"Failed to load configuration: {e}\n")
    raise
