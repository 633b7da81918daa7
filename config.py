"""
Configuration for the colour mapping engine
Loads startup defaults (active palette, log level) from an optional JSON file
"""
import json
import logging
import os
from copy import deepcopy
from typing import Any, Dict, Optional

from palette_manager import PaletteRegistry, PaletteType
from colour_mapper import ColourMapper

logger = logging.getLogger(__name__)


class Config:
    """
    Read-only configuration with defaults
    Values from the config file override DEFAULT_CONFIG
    """

    DEFAULT_CONFIG = {
        'default_palette': 'inferno',  # One of PaletteType values
        'log_level': 'INFO',
    }

    def __init__(self, config_file: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None):
        """
        Initialize configuration

        Args:
            config_file: Path to JSON config file (optional)
            overrides: Values applied on top of the file
        """
        self.config_file = config_file
        self.config = deepcopy(self.DEFAULT_CONFIG)

        if config_file:
            self.load()
        if overrides:
            self.config.update(overrides)

    def load(self) -> bool:
        """
        Load configuration from file

        Returns:
            True if loaded successfully, False if using defaults
        """
        try:
            if os.path.exists(self.config_file):
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    loaded_config = json.load(f)
                if not isinstance(loaded_config, dict):
                    raise ValueError("top-level JSON value must be an object")
                self.config.update(loaded_config)
                logger.info(f"Configuration loaded from {self.config_file}")
                return True
            else:
                logger.info("No config file found, using defaults")
                return False
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load config: {e}. Using defaults.")
            self.config = deepcopy(self.DEFAULT_CONFIG)
            return False

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value"""
        return self.config.get(key, default)

    def default_palette(self) -> PaletteType:
        """
        Palette to activate at startup

        Unknown names fall back to the built-in default.
        """
        name = self.config.get('default_palette', self.DEFAULT_CONFIG['default_palette'])
        try:
            return PaletteType.from_name(name)
        except ValueError:
            logger.warning(f"Unknown palette '{name}' in config, using "
                           f"{self.DEFAULT_CONFIG['default_palette']}")
            return PaletteType.from_name(self.DEFAULT_CONFIG['default_palette'])

    def log_level(self) -> int:
        level = logging.getLevelName(str(self.config.get('log_level', 'INFO')).upper())
        return level if isinstance(level, int) else logging.INFO

    def create_mapper(self, registry: Optional[PaletteRegistry] = None) -> ColourMapper:
        """Create a colour mapper with the configured default palette"""
        return ColourMapper(registry=registry, default_palette=self.default_palette())
