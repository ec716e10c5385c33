import os
import configparser
from pathlib import Path

DEFAULT_CONFIG_PATH = Path('config') / 'settings.ini'

# Environment variables that override a (section, key) pair
ENV_OVERRIDES = {
    'DATABASE_URL': ('DATABASE', 'url'),
    'OPENAI_API_KEY': ('FORECAST_MODEL', 'api_key'),
    'FORECAST_MODEL': ('FORECAST_MODEL', 'model'),
    'ARCHIVE_DIRECTORY': ('ARCHIVE', 'directory'),
}


class Config:
    """Configuration manager for the Demand Forecasting service."""

    _instance = None

    def __new__(cls):
        """Singleton pattern implementation."""
        if cls._instance is None:
            cls._instance = super(Config, cls).__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize the configuration if not already initialized."""
        if self._initialized:
            return

        self._config_path = Path(os.getenv('DEMAND_FORECASTING_CONFIG', DEFAULT_CONFIG_PATH))
        self._config = configparser.ConfigParser(interpolation=None)
        self._load_defaults()

        if self._config_path.exists():
            self._config.read(self._config_path)

        self._apply_environment()
        self._initialized = True

    def _load_defaults(self):
        """Load built-in default settings."""
        self._config.read_dict({
            'DATABASE': {
                'url': 'sqlite:///demand_forecasting.db',
                'echo': 'False'
            },
            'LOGGING': {
                'level': 'INFO',
                'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                'directory': 'logs',
                'max_size_mb': '10',
                'backup_count': '5',
                'console_output': 'True'
            },
            'ARCHIVE': {
                'directory': 'archive',
                'prefix': 'uploads'
            },
            'FORECAST_MODEL': {
                'model': 'gpt-4o',
                'api_key': '',
                'max_tokens': '4000',
                'timeout_seconds': '120',
                'temperature': '0.2'
            },
            'BUSINESS_RULES': {
                'default_forecast_days': '30',
                'min_forecast_days': '7',
                'max_forecast_days': '365',
                'max_prompt_records': '0',
                'csv_delimiter': ','
            }
        })

    def _apply_environment(self):
        """Let environment variables take precedence over file values."""
        for env_name, (section, key) in ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if value:
                self._config.set(section, key, value)

    def save(self):
        """Save configuration to file."""
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._config_path, 'w') as configfile:
            self._config.write(configfile)

    def get(self, section, key, default=None):
        """Get configuration value."""
        try:
            return self._config.get(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError):
            return default

    def get_int(self, section, key, default=None):
        """Get configuration value as integer."""
        try:
            return self._config.getint(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return default

    def get_float(self, section, key, default=None):
        """Get configuration value as float."""
        try:
            return self._config.getfloat(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return default

    def get_boolean(self, section, key, default=None):
        """Get configuration value as boolean."""
        try:
            return self._config.getboolean(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return default

    def set(self, section, key, value):
        """Set configuration value for the running process."""
        if not self._config.has_section(section):
            self._config.add_section(section)

        self._config.set(section, key, str(value))

    def get_db_url(self):
        """Get SQLAlchemy database URL."""
        return self.get('DATABASE', 'url', 'sqlite:///demand_forecasting.db')

    @property
    def log_config(self):
        """Get logging configuration."""
        return {
            'level': self.get('LOGGING', 'level', 'INFO'),
            'format': self.get('LOGGING', 'format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s'),
            'directory': self.get('LOGGING', 'directory', 'logs'),
            'max_size_mb': self.get_int('LOGGING', 'max_size_mb', 10),
            'backup_count': self.get_int('LOGGING', 'backup_count', 5),
            'console_output': self.get_boolean('LOGGING', 'console_output', True)
        }

    @property
    def archive_config(self):
        """Get raw upload archive configuration."""
        return {
            'directory': self.get('ARCHIVE', 'directory', 'archive'),
            'prefix': self.get('ARCHIVE', 'prefix', 'uploads')
        }

    @property
    def model_config(self):
        """Get generative forecasting model configuration."""
        return {
            'model': self.get('FORECAST_MODEL', 'model', 'gpt-4o'),
            'api_key': self.get('FORECAST_MODEL', 'api_key', ''),
            'max_tokens': self.get_int('FORECAST_MODEL', 'max_tokens', 4000),
            'timeout_seconds': self.get_float('FORECAST_MODEL', 'timeout_seconds', 120.0),
            'temperature': self.get_float('FORECAST_MODEL', 'temperature', 0.2)
        }

    @property
    def business_rules(self):
        """Get business rules configuration."""
        return {
            'default_forecast_days': self.get_int('BUSINESS_RULES', 'default_forecast_days', 30),
            'min_forecast_days': self.get_int('BUSINESS_RULES', 'min_forecast_days', 7),
            'max_forecast_days': self.get_int('BUSINESS_RULES', 'max_forecast_days', 365),
            'max_prompt_records': self.get_int('BUSINESS_RULES', 'max_prompt_records', 0),
            'csv_delimiter': self.get('BUSINESS_RULES', 'csv_delimiter', ',')
        }

# Global config instance
config = Config()
