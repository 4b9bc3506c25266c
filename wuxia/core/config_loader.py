"""
Configuration loader for combat tuning values.

This module handles loading and validating the YAML file that supplies the
global action threshold and the other encounter-wide combat settings.
"""
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional

import yaml

from .data import DEFAULT_ACTION_THRESHOLD


class ConfigError(ValueError):
    """Raised when a configuration file holds invalid values."""


@dataclass(frozen=True)
class CombatConfig:
    """Encounter-wide combat settings."""

    # Length of the action-value track shared by all entities
    action_threshold: float = DEFAULT_ACTION_THRESHOLD
    # Pause between turns, in seconds of driver time
    turn_transition_delay: float = 0.5
    # Action points spent per meter of movement
    ap_cost_per_meter: float = 5.0
    # Meters per second for AI movement steps
    move_speed: float = 1.0
    predicted_turns_to_show: int = 10
    use_random_selection: bool = True
    # Fixed tick used when AI turns are driven to completion
    ai_tick_seconds: float = 0.1

    def validate(self) -> None:
        """Reject values the scheduler or the AI engine cannot work with.

        Raises:
            ConfigError: On the first invalid value found
        """
        if self.action_threshold <= 0:
            raise ConfigError(f"action_threshold must be positive, got {self.action_threshold}")
        if self.turn_transition_delay < 0:
            raise ConfigError("turn_transition_delay cannot be negative")
        if self.ap_cost_per_meter <= 0:
            raise ConfigError("ap_cost_per_meter must be positive")
        if self.move_speed <= 0:
            raise ConfigError("move_speed must be positive")
        if self.predicted_turns_to_show < 0:
            raise ConfigError("predicted_turns_to_show cannot be negative")
        if self.ai_tick_seconds <= 0:
            raise ConfigError("ai_tick_seconds must be positive")


class CombatConfigLoader:
    """Loads combat settings from a YAML file."""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or "assets/config/combat_config.yaml"
        self._config = CombatConfig()
        self.warnings: list[str] = []

    def _resolve_path(self) -> Path:
        # Relative paths are relative to the project root
        if os.path.isabs(self.config_path):
            return Path(self.config_path)
        project_root = Path(__file__).parent.parent.parent
        return project_root / self.config_path

    def load_config(self) -> bool:
        """
        Load configuration from the YAML file.

        A missing file falls back to defaults and records a warning. A file
        that exists but holds invalid values raises.

        Returns:
            bool: True if config was loaded from disk

        Raises:
            ConfigError: If the file cannot be parsed or holds invalid values
        """
        config_file = self._resolve_path()
        if not config_file.exists():
            self.warnings.append(f"Combat config file not found: {config_file}, using defaults")
            self._config = CombatConfig()
            return False

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse combat config {config_file}: {e}") from e

        self._config = self.parse(data.get('combat', data), self.warnings)
        return True

    @staticmethod
    def parse(section: dict[str, Any], warnings: Optional[list[str]] = None) -> CombatConfig:
        """Build a validated CombatConfig from a mapping of setting names."""
        if not isinstance(section, dict):
            raise ConfigError("Combat config must be a mapping")

        known = {f.name: f for f in fields(CombatConfig)}
        values: dict[str, Any] = {}
        for key, raw in section.items():
            if key not in known:
                if warnings is not None:
                    warnings.append(f"Unknown combat config key '{key}' ignored")
                continue
            default = getattr(CombatConfig, key)
            try:
                if isinstance(default, bool):
                    if not isinstance(raw, bool):
                        raise TypeError(f"expected true/false, got {raw!r}")
                    values[key] = raw
                    continue
                if isinstance(raw, bool):
                    raise TypeError(f"expected a number, got {raw!r}")
                number = float(raw)
                if isinstance(default, int):
                    if not number.is_integer():
                        raise ValueError(f"expected a whole number, got {raw!r}")
                    values[key] = int(number)
                else:
                    values[key] = number
            except (TypeError, ValueError) as e:
                raise ConfigError(f"Invalid value for '{key}': {e}") from e

        config = CombatConfig(**values)
        config.validate()
        return config

    def get_config(self) -> CombatConfig:
        return self._config
