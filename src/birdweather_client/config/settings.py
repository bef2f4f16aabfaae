"""
Configuration Management for the BirdWeather Client
===================================================
Connection settings with environment variable and file support.
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import yaml

from ..core.errors import InvalidArgumentError


API_ENDPOINT = "https://app.birdweather.com/graphql"

# Hard upstream limit on items per request
MAX_PAGE_SIZE = 250

DEFAULT_USER_AGENT = "birdweather-client/0.1.0 (Research Client)"


@dataclass
class ClientConfig:
    """BirdWeather GraphQL connection configuration."""
    endpoint: str = API_ENDPOINT
    timeout: float = 60.0
    page_size: int = MAX_PAGE_SIZE
    user_agent: str = DEFAULT_USER_AGENT
    log_level: str = "INFO"

    def __post_init__(self):
        if isinstance(self.page_size, bool) or not isinstance(self.page_size, int):
            raise InvalidArgumentError(f"page_size must be an integer, got {self.page_size!r}")
        if not 1 <= self.page_size <= MAX_PAGE_SIZE:
            raise InvalidArgumentError(
                f"page_size must be between 1 and {MAX_PAGE_SIZE}, got {self.page_size}"
            )
        if self.timeout is None or self.timeout <= 0:
            raise InvalidArgumentError(f"timeout must be positive, got {self.timeout!r}")

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Load configuration from environment variables."""
        return cls(
            endpoint=os.environ.get("BIRDWEATHER_ENDPOINT", API_ENDPOINT),
            timeout=float(os.environ.get("BIRDWEATHER_TIMEOUT", "60")),
            page_size=int(os.environ.get("BIRDWEATHER_PAGE_SIZE", str(MAX_PAGE_SIZE))),
            user_agent=os.environ.get("BIRDWEATHER_USER_AGENT", DEFAULT_USER_AGENT),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),
        )

    @classmethod
    def from_file(cls, config_path: Path) -> "ClientConfig":
        """Load configuration from YAML or JSON file."""
        config_path = Path(config_path)
        with open(config_path, 'r') as f:
            if config_path.suffix in ['.yaml', '.yml']:
                data = yaml.safe_load(f) or {}
            else:
                data = json.load(f)

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "ClientConfig":
        """Build configuration from dictionary."""
        bw_data = data.get("birdweather", {}) or {}
        return cls(
            endpoint=bw_data.get("endpoint", API_ENDPOINT),
            timeout=float(bw_data.get("timeout", 60)),
            page_size=int(bw_data.get("page_size", MAX_PAGE_SIZE)),
            user_agent=bw_data.get("user_agent", DEFAULT_USER_AGENT),
            log_level=data.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Export configuration to dictionary."""
        return {
            "birdweather": {
                "endpoint": self.endpoint,
                "timeout": self.timeout,
                "page_size": self.page_size,
                "user_agent": self.user_agent,
            },
            "log_level": self.log_level,
        }

    def save(self, config_path: Path):
        """Save configuration to file."""
        config_path = Path(config_path)
        data = self.to_dict()

        with open(config_path, 'w') as f:
            if config_path.suffix in ['.yaml', '.yml']:
                yaml.dump(data, f, default_flow_style=False)
            else:
                json.dump(data, f, indent=2)


# Default configuration template
DEFAULT_CONFIG_YAML = """
# BirdWeather Client Configuration
# ================================

birdweather:
  endpoint: https://app.birdweather.com/graphql
  timeout: 60        # seconds, passed to the HTTP transport
  page_size: 250     # items per request, 250 is the server maximum
  user_agent: birdweather-client/0.1.0 (Research Client)

log_level: INFO
"""


def create_default_config(config_path: Path) -> Path:
    """Create default configuration file."""
    config_path = Path(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, 'w') as f:
        f.write(DEFAULT_CONFIG_YAML)

    return config_path
