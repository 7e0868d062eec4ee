"""Configuration management for Rick and Morty MCP Server."""

import json
import os
from dataclasses import dataclass, field
from typing import Dict, Optional

from .rickmorty_client import DEFAULT_BASE_URL, DEFAULT_USER_AGENT, RickMortyConfig

PORT_ENV_VAR = "PORT"


@dataclass
class ServerConfig:
    """MCP server configuration."""
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"
    heartbeat_interval: float = 30.0


@dataclass
class UpstreamConfig:
    """Rick and Morty API configuration."""
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 30
    user_agent: str = DEFAULT_USER_AGENT

    def to_client_config(self) -> RickMortyConfig:
        return RickMortyConfig(
            base_url=self.base_url,
            timeout=self.timeout,
            user_agent=self.user_agent
        )


@dataclass
class Config:
    """Main configuration."""
    server: ServerConfig = field(default_factory=ServerConfig)
    upstream: UpstreamConfig = field(default_factory=UpstreamConfig)
    log_file: Optional[str] = "logs/rickmorty_mcp_server.log"
    api_log_file: Optional[str] = "logs/rickmorty_api.log"

    def to_dict(self) -> Dict:
        """Convert configuration to dictionary for logging setup."""
        return {
            "log_level": self.server.log_level,
            "host": self.server.host,
            "port": self.server.port,
            "log_file": self.log_file,
            "api_log_file": self.api_log_file
        }


def load_config(config_path: Optional[str] = None, environ: Optional[Dict[str, str]] = None) -> Config:
    """Load configuration from file, then apply environment overrides."""
    if environ is None:
        environ = os.environ

    if config_path is None:
        for path in ["config.json", "../config.json"]:
            if os.path.exists(path):
                config_path = path
                break

    if config_path is None:
        config = Config()
    else:
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = json.load(f)

            logging_data = data.get("logging", {})
            config = Config(
                server=ServerConfig(**data.get("server", {})),
                upstream=UpstreamConfig(**data.get("upstream", {})),
                log_file=logging_data.get("log_file", Config.log_file),
                api_log_file=logging_data.get("api_log_file", Config.api_log_file)
            )
        except (OSError, json.JSONDecodeError, TypeError, AttributeError) as e:
            raise ValueError(f"Failed to load config from {config_path}: {e}")

    port = environ.get(PORT_ENV_VAR)
    if port:
        try:
            config.server.port = int(port)
        except ValueError:
            raise ValueError(f"Invalid {PORT_ENV_VAR} value: {port!r}") from None

    return config
