"""
Centralized configuration management for clipping-tools.
"""
import os
import configparser
from typing import Dict, Any, Optional
from pathlib import Path


class ConfigManager:
    """Centralized configuration management."""
    
    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize configuration manager.
        
        Args:
            config_file: Path to configuration file. If None, uses default location.
        """
        self.config_file = config_file or self._get_default_config_path()
        self.config = configparser.ConfigParser()
        self._load_config()
    
    def _get_default_config_path(self) -> str:
        """Get default configuration file path."""
        # Look for config.conf in the project root directory
        project_root = Path(__file__).parent.parent.parent
        return str(project_root / "config.conf")
    
    def _load_config(self):
        """Load configuration from file."""
        if os.path.exists(self.config_file):
            self.config.read(self.config_file)
        else:
            self._create_default_config()
    
    def _create_default_config(self):
        """Create default configuration file."""
        config_dir = Path(self.config_file).parent
        config_dir.mkdir(parents=True, exist_ok=True)
        
        self.config['BORDERS'] = {
            'default_mode': 'both',
            'depth_ratio': '0.02'
        }
        
        self.config['LOC'] = {
            'iiif_width': '0',
            'timeout': '30',
            'user_agent': 'clipping-tools/0.1'
        }
        
        self.config['PATHS'] = {
            'output_folder': './output'
        }
        
        self.save_config()
    
    def get(self, section: str, key: str, fallback: Any = None) -> Any:
        """Get configuration value."""
        try:
            return self.config.get(section, key, fallback=fallback)
        except (configparser.NoSectionError, configparser.NoOptionError):
            return fallback
    
    def get_int(self, section: str, key: str, fallback: int = 0) -> int:
        """Get integer configuration value, falling back on bad input."""
        try:
            return self.config.getint(section, key, fallback=fallback)
        except ValueError:
            return fallback
    
    def get_float(self, section: str, key: str, fallback: float = 0.0) -> float:
        """Get float configuration value, falling back on bad input."""
        try:
            return self.config.getfloat(section, key, fallback=fallback)
        except ValueError:
            return fallback
    
    def get_section(self, section: str) -> Dict[str, str]:
        """Get entire configuration section."""
        try:
            return dict(self.config[section])
        except KeyError:
            return {}
    
    def set(self, section: str, key: str, value: str):
        """Set configuration value."""
        if not self.config.has_section(section):
            self.config.add_section(section)
        self.config.set(section, key, value)
    
    def save_config(self):
        """Save configuration to file."""
        with open(self.config_file, 'w') as f:
            self.config.write(f)
    
    def get_path(self, path_type: str) -> str:
        """Get configured path."""
        return self.get('PATHS', path_type, '')
    
    def border_remover_config(self) -> Dict[str, Any]:
        """Settings for BorderRemover as a plain dict."""
        return {'depth_ratio': self.get_float('BORDERS', 'depth_ratio', 0.02)}
