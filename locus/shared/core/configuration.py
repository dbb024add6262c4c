"""
Configuration Management System for Locus

This module provides a centralized configuration system that supports a 4-tier
precedence hierarchy: environment → project → user → system defaults.
"""

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)


class ValidationLevel(Enum):
    """Configuration validation strictness levels"""
    STRICT = "strict"      # Fail fast on validation errors
    LENIENT = "lenient"    # Log warnings, use defaults


class LocationConfig(BaseModel):
    """Location update configuration"""
    model_config = ConfigDict(extra='forbid')

    update_interval_sec: float = Field(default=5.0, ge=0.05, le=3600.0, description="Seconds between provider fixes")


class GeocodingConfig(BaseModel):
    """Reverse geocoding configuration"""
    model_config = ConfigDict(extra='forbid')

    provider: str = Field(default="nominatim", description="Reverse geocoder: nominatim or none")
    base_url: str = Field(default="https://nominatim.openstreetmap.org", description="Nominatim base URL")
    user_agent: str = Field(default="locus/0.3", description="User-Agent sent to the geocoding service")
    timeout: float = Field(default=10.0, ge=0.5, le=120.0, description="Request timeout (seconds)")
    language: str = Field(default="en", description="Preferred address language")
    cache_size: int = Field(default=128, ge=0, le=10000, description="Resolved addresses kept in memory")


class SimulationConfig(BaseModel):
    """Simulated platform (location provider and permission dialog)"""
    model_config = ConfigDict(extra='forbid')

    start_latitude: float = Field(default=37.4220, ge=-90.0, le=90.0)
    start_longitude: float = Field(default=-122.0841, ge=-180.0, le=180.0)
    step_degrees: float = Field(default=0.0001, ge=0.0, le=1.0, description="Drift applied per simulated fix")
    provider_enabled: bool = Field(default=True, description="Device-wide location services enabled")
    initially_granted: bool = Field(default=False, description="Permissions granted before the first request")
    grant_on_request: bool = Field(default=True, description="Answer permission dialogs with a grant")
    rationale_on_denial: bool = Field(default=True, description="OS still allows a rationale after denial")


class DisplayConfig(BaseModel):
    """Console display configuration"""
    model_config = ConfigDict(extra='forbid')

    duration_sec: float = Field(default=30.0, ge=0.0, le=86400.0, description="How long the demo runs")
    show_address: bool = Field(default=True, description="Show reverse geocoded address")


class LoggingConfig(BaseModel):
    """Logging configuration"""
    model_config = ConfigDict(extra='forbid')

    level: str = Field(default="DEBUG", description="File log level")
    console_level: str = Field(default="WARNING", description="Console log level")
    log_dir: str = Field(default="data/logs", description="Directory for rotating log files")


class SystemConfig(BaseModel):
    """Complete system configuration"""
    model_config = ConfigDict(extra='forbid')

    location: LocationConfig = Field(default_factory=LocationConfig)
    geocoding: GeocodingConfig = Field(default_factory=GeocodingConfig)
    simulation: SimulationConfig = Field(default_factory=SimulationConfig)
    display: DisplayConfig = Field(default_factory=DisplayConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    # Metadata
    schema_version: int = Field(default=1, description="Configuration schema version")


# Environment variable -> (section, key, type)
ENV_OVERRIDES: Dict[str, tuple] = {
    'LOCUS_UPDATE_INTERVAL': ('location', 'update_interval_sec', float),
    'GEOCODER_PROVIDER': ('geocoding', 'provider', str),
    'NOMINATIM_BASE_URL': ('geocoding', 'base_url', str),
    'NOMINATIM_USER_AGENT': ('geocoding', 'user_agent', str),
    'GEOCODER_TIMEOUT': ('geocoding', 'timeout', float),
    'LOCUS_PROVIDER_ENABLED': ('simulation', 'provider_enabled', bool),
    'LOCUS_GRANT_ON_REQUEST': ('simulation', 'grant_on_request', bool),
    'LOG_LEVEL': ('logging', 'level', str),
}


class ConfigManager:
    """Centralized configuration manager with 4-tier precedence hierarchy"""

    def __init__(self, project_root: Optional[Path] = None):
        self.project_root = Path(project_root) if project_root else Path.cwd()
        self.config_dir = self.project_root / "config" / "settings"
        self._system_config: Optional[SystemConfig] = None
        # layer name ("user", "project") -> parsed YAML
        self._layers: Dict[str, Dict[str, Any]] = {}

    def _load_yaml_file(self, file_path: Path) -> Dict[str, Any]:
        """Load YAML configuration file"""
        if not file_path.exists():
            return {}

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.warning(f"Failed to load {file_path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Ignoring {file_path}: top level must be a mapping")
            return {}
        return data

    def _save_yaml_file(self, file_path: Path, data: Dict[str, Any]) -> bool:
        """Save configuration to YAML file"""
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(file_path, 'w', encoding='utf-8') as f:
                yaml.dump(data, f, default_flow_style=False, sort_keys=False, indent=2)
            return True
        except OSError as e:
            logger.error(f"Failed to save {file_path}: {e}")
            return False

    def _load_system_defaults(self) -> SystemConfig:
        """Load system default configuration"""
        if self._system_config is None:
            defaults_dict = self._load_yaml_file(self.config_dir / "defaults.yaml")

            try:
                self._system_config = SystemConfig(**defaults_dict)
            except ValidationError as e:
                logger.warning(f"System defaults validation failed: {e}")
                self._system_config = SystemConfig()

        return self._system_config

    def _load_layer(self, name: str) -> Dict[str, Any]:
        """Load ``<config_dir>/<name>.yaml`` once per manager."""
        if name not in self._layers:
            self._layers[name] = self._load_yaml_file(self.config_dir / f"{name}.yaml")
        return self._layers[name]

    def _merge_configs(self) -> Dict[str, Any]:
        """Merge configurations with precedence: env → project → user → system"""
        merged = self._load_system_defaults().model_dump()
        for layer in ("user", "project"):
            self._deep_merge(merged, self._load_layer(layer))
        self._deep_merge(merged, self._get_env_overrides())
        return merged

    def _deep_merge(self, base: Dict[str, Any], updates: Dict[str, Any]) -> None:
        """Deep merge configuration dictionaries"""
        for key, value in updates.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    def _get_env_overrides(self) -> Dict[str, Any]:
        """Extract configuration overrides from environment variables"""
        overrides: Dict[str, Any] = {}
        for env_key, (section, config_key, kind) in ENV_OVERRIDES.items():
            value = os.getenv(env_key)
            if value is None:
                continue

            if kind is bool:
                converted: Any = value.strip().lower() in ('true', '1', 'yes', 'on')
            elif kind is float:
                try:
                    converted = float(value)
                except ValueError:
                    logger.warning(f"Ignoring {env_key}={value!r}: not a number")
                    continue
            else:
                converted = value

            overrides.setdefault(section, {})[config_key] = converted

        return overrides

    def get_config(self, validation_level: ValidationLevel = ValidationLevel.STRICT) -> SystemConfig:
        """Get merged configuration with validation"""
        merged_config = self._merge_configs()

        try:
            return SystemConfig(**merged_config)
        except ValidationError as e:
            if validation_level == ValidationLevel.STRICT:
                raise ValueError(f"Configuration validation failed: {e}") from e
            logger.warning(f"Configuration validation failed, using defaults: {e}")
            return SystemConfig()

    def save_project_config(self, config_updates: Dict[str, Any]) -> bool:
        """Save project-specific configuration updates"""
        project_path = self.config_dir / "project.yaml"
        existing_config = self._load_yaml_file(project_path)
        self._deep_merge(existing_config, config_updates)

        success = self._save_yaml_file(project_path, existing_config)
        if success:
            self._layers.pop("project", None)
        return success

    def reload_config(self) -> None:
        """Forget cached layers; the next get_config re-reads the files."""
        self._system_config = None
        self._layers.clear()


# Global instance
_config_manager: Optional[ConfigManager] = None


def get_config_manager(project_root: Optional[Path] = None) -> ConfigManager:
    """Get global configuration manager instance"""
    global _config_manager
    if _config_manager is None or project_root is not None:
        _config_manager = ConfigManager(project_root)
    return _config_manager


def get_config(validation_level: ValidationLevel = ValidationLevel.STRICT) -> SystemConfig:
    """Get current system configuration"""
    return get_config_manager().get_config(validation_level)
