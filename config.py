"""
Locus - Configuration

Centralized configuration for logging and registry diagnostics.
Uses environment variables with sensible defaults.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, Optional
from enum import Enum

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Environment(Enum):
    """Deployment environments."""
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


@dataclass
class LoggingConfig:
    """Configuration for structured logging."""
    service_name: str = field(default_factory=lambda: os.getenv("LOCUS_SERVICE_NAME", "locus"))
    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    json_format: bool = field(default_factory=lambda: os.getenv("LOG_FORMAT", "json").lower() == "json")
    enable_trace_context: bool = field(default_factory=lambda: os.getenv("LOG_TRACE_CONTEXT", "true").lower() == "true")
    log_to_console: bool = field(default_factory=lambda: os.getenv("LOG_TO_CONSOLE", "true").lower() == "true")
    log_to_file: bool = field(default_factory=lambda: os.getenv("LOG_TO_FILE", "false").lower() == "true")
    log_file_path: Path = field(default_factory=lambda: Path(os.getenv("LOG_FILE", "./logs/locus.log")))
    max_file_size: int = field(default_factory=lambda: int(os.getenv("LOG_MAX_SIZE", "10485760")))  # 10MB
    backup_count: int = field(default_factory=lambda: int(os.getenv("LOG_BACKUP_COUNT", "5")))
    include_timestamp: bool = True
    include_caller_info: bool = True
    environment: str = field(default_factory=lambda: os.getenv("ENVIRONMENT", "development"))


@dataclass
class RegistryConfig:
    """Registry diagnostics."""
    # Log every successful resolution at debug level
    trace_resolution: bool = field(
        default_factory=lambda: os.getenv("LOCUS_TRACE_RESOLUTION", "false").lower() == "true"
    )


@dataclass
class Config:
    """Main configuration class combining all sub-configs."""
    env: Environment = field(default_factory=lambda: Environment(os.getenv("ENVIRONMENT", "development")))
    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")

    logging: LoggingConfig = field(default_factory=LoggingConfig)
    registry: RegistryConfig = field(default_factory=RegistryConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "env": self.env.value,
            "debug": self.debug,
            "logging": {
                "service_name": self.logging.service_name,
                "level": self.logging.level,
                "json_format": self.logging.json_format,
                "log_to_file": self.logging.log_to_file,
            },
            "registry": {
                "trace_resolution": self.registry.trace_resolution,
            },
        }


# Singleton configuration instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create configuration singleton."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reload_config() -> Config:
    """Reload configuration from environment."""
    global _config
    load_dotenv(override=True)
    _config = Config()
    return _config
