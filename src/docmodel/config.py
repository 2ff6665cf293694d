"""
Configuration Management for docmodel

🔧 Unified Configuration System:
Connection settings, mapping behavior, and logging for applications using
docmodel, with presets per environment and loaders for dicts, files, and
environment variables.
"""

import json
import logging
import logging.handlers
import os
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Union

class Environment(Enum):
    """Application environments"""
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"

@dataclass
class MongoConfig:
    """Document store connection configuration"""
    uri: str = "mongodb://localhost:27017"
    database: str = "docmodel"
    server_selection_timeout_ms: int = 30000
    app_name: Optional[str] = None

@dataclass
class MappingConfig:
    """Entity mapping behavior"""
    strict_fields: bool = False  # reject filter fields the entity does not declare
    require_identifier: bool = True  # refuse to write entities without an identifier value

@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_path: Optional[str] = None
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5

@dataclass
class DocModelConfig:
    """Complete docmodel configuration"""
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = False

    mongo: MongoConfig = field(default_factory=MongoConfig)
    mapping: MappingConfig = field(default_factory=MappingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def for_environment(cls, environment: Environment) -> 'DocModelConfig':
        """Create configuration for specific environment"""
        config = cls(environment=environment)

        if environment == Environment.DEVELOPMENT:
            config.debug = True
            config.logging.level = "DEBUG"

        elif environment == Environment.TESTING:
            config.mongo.database = "docmodel_test"
            config.mapping.strict_fields = True
            config.logging.level = "WARNING"

        elif environment == Environment.PRODUCTION:
            config.debug = False
            config.logging.level = "INFO"

        return config

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'DocModelConfig':
        """Create configuration from dictionary"""
        environment = Environment(config_dict.get("environment", Environment.DEVELOPMENT.value))
        config = cls.for_environment(environment)

        if "debug" in config_dict:
            config.debug = bool(config_dict["debug"])

        for section in ("mongo", "mapping", "logging"):
            target = getattr(config, section)
            for key, value in (config_dict.get(section) or {}).items():
                if not hasattr(target, key):
                    raise ValueError(f"Unknown {section} configuration key: {key}")
                setattr(target, key, value)

        return config

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> 'DocModelConfig':
        """Load configuration from a JSON or YAML file"""
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        if config_path.suffix == '.json':
            with open(config_path) as f:
                config_dict = json.load(f)
        elif config_path.suffix in ('.yml', '.yaml'):
            try:
                import yaml
            except ImportError as e:
                raise ImportError("PyYAML is required for YAML configuration files (pip install docmodel[yaml])") from e
            with open(config_path) as f:
                config_dict = yaml.safe_load(f) or {}
        else:
            raise ValueError(f"Unsupported configuration file format: {config_path.suffix}")

        return cls.from_dict(config_dict)

    @classmethod
    def from_environment(cls) -> 'DocModelConfig':
        """Create configuration from environment variables"""
        env_name = os.getenv('DOCMODEL_ENV', 'development')
        config = cls.for_environment(Environment(env_name))

        if os.getenv('DOCMODEL_DEBUG'):
            config.debug = _as_bool(os.getenv('DOCMODEL_DEBUG'))

        if os.getenv('DOCMODEL_MONGO_URI'):
            config.mongo.uri = os.getenv('DOCMODEL_MONGO_URI')

        if os.getenv('DOCMODEL_DATABASE'):
            config.mongo.database = os.getenv('DOCMODEL_DATABASE')

        if os.getenv('DOCMODEL_STRICT_FIELDS'):
            config.mapping.strict_fields = _as_bool(os.getenv('DOCMODEL_STRICT_FIELDS'))

        if os.getenv('DOCMODEL_REQUIRE_ID'):
            config.mapping.require_identifier = _as_bool(os.getenv('DOCMODEL_REQUIRE_ID'))

        if os.getenv('DOCMODEL_LOG_LEVEL'):
            config.logging.level = os.getenv('DOCMODEL_LOG_LEVEL').upper()

        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary"""
        return {
            "environment": self.environment.value,
            "debug": self.debug,
            "mongo": asdict(self.mongo),
            "mapping": asdict(self.mapping),
            "logging": asdict(self.logging),
        }

def _as_bool(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")

def configure_logging(config: Optional[LoggingConfig] = None) -> logging.Logger:
    """Attach a handler to the ``docmodel`` logger according to ``config``"""
    config = config or get_config().logging
    package_logger = logging.getLogger("docmodel")
    package_logger.setLevel(config.level.upper())

    if config.file_path:
        handler: logging.Handler = logging.handlers.RotatingFileHandler(
            config.file_path,
            maxBytes=config.max_file_size,
            backupCount=config.backup_count,
        )
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(config.format))

    for existing in list(package_logger.handlers):
        package_logger.removeHandler(existing)
        existing.close()
    package_logger.addHandler(handler)
    return package_logger

# Global configuration management
_current_config: Optional[DocModelConfig] = None

def set_config(config: Optional[DocModelConfig]):
    """Set the global configuration (None resets to environment defaults)"""
    global _current_config
    _current_config = config

def get_config() -> DocModelConfig:
    """Get the current global configuration"""
    global _current_config

    if _current_config is None:
        # Auto-create from environment if not set
        _current_config = DocModelConfig.from_environment()

    return _current_config

def configure_from_file(config_path: Union[str, Path]) -> DocModelConfig:
    """Configure docmodel from file"""
    config = DocModelConfig.from_file(config_path)
    set_config(config)
    return config

def configure_from_dict(config_dict: Dict[str, Any]) -> DocModelConfig:
    """Configure docmodel from dictionary"""
    config = DocModelConfig.from_dict(config_dict)
    set_config(config)
    return config

# Export main components
__all__ = [
    "DocModelConfig", "Environment", "MongoConfig", "MappingConfig", "LoggingConfig",
    "configure_logging", "set_config", "get_config", "configure_from_file", "configure_from_dict",
]
