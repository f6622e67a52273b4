"""
Pipeline configuration.

Defaults suit a single-site deployment with caching on and no expiry.
from_env() reads REST_BLOCKS_* variables (and a .env file when present):

  REST_BLOCKS_CACHE               cache_enabled       (true/false)
  REST_BLOCKS_MULTISITE           multisite           (true/false)
  REST_BLOCKS_MULTISITE_CACHE     multisite_cache     (true/false)
  REST_BLOCKS_CACHE_EXPIRATION    cache_expiration    (seconds, 0 = never)
  REST_BLOCKS_CACHE_KEY_PREFIX    cache_key_prefix
  REST_BLOCKS_MAX_QUERY_DEPTH     max_query_depth
  REST_BLOCKS_HTML_PARSER         html_parser         (html5lib, lxml, html.parser)
"""

import os
from typing import Callable, Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

ENV_PREFIX = "REST_BLOCKS_"

ENV_FIELDS = {
    "CACHE": "cache_enabled",
    "MULTISITE": "multisite",
    "MULTISITE_CACHE": "multisite_cache",
    "CACHE_EXPIRATION": "cache_expiration",
    "CACHE_KEY_PREFIX": "cache_key_prefix",
    "MAX_QUERY_DEPTH": "max_query_depth",
    "HTML_PARSER": "html_parser",
}


class PipelineConfig(BaseModel):
    """Toggles the BlockPipeline reads at construction and on every call."""
    cache_enabled: bool = True
    multisite: bool = False                 # Deployment serves several sites
    multisite_cache: bool = True            # Share cache entries network-wide when multisite
    cache_expiration: int = Field(default=0, ge=0)
    cache_key_prefix: str = "rest_api_blocks_"
    max_query_depth: int = Field(default=8, ge=1)
    html_parser: Literal["html5lib", "lxml", "html.parser"] = "html5lib"
    # Registered on the "output" hook; signature matches that hook
    output_transform: Optional[Callable] = Field(default=None, exclude=True)

    @classmethod
    def from_env(cls, env_file: Optional[str] = None, **overrides) -> "PipelineConfig":
        """
        Build a config from REST_BLOCKS_* environment variables.

        Args:
            env_file: Optional .env path (default: search from the cwd)
            **overrides: Field values that take precedence over the environment
        """
        load_dotenv(env_file)
        values = {}
        for suffix, field in ENV_FIELDS.items():
            raw = os.getenv(ENV_PREFIX + suffix)
            if raw is not None and raw != "":
                values[field] = raw
        values.update(overrides)
        return cls(**values)
