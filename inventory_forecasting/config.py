import os
import configparser
from pathlib import Path

from inventory_forecasting.core.records import ForecastConfig
from inventory_forecasting.exceptions import ConfigError

CONFIG_PATH_ENV = 'INVENTORY_FORECASTING_CONFIG'
MISSING_OPTION = (configparser.NoSectionError, configparser.NoOptionError)


class Config:
    """Configuration manager for the Inventory Forecasting Engine.

    Settings live in an INI file (``config/settings.ini`` unless the
    INVENTORY_FORECASTING_CONFIG environment variable points elsewhere).
    Only the surrounding services read this; the forecasting core receives
    a ForecastConfig value instead.
    """

    _instance = None

    def __new__(cls, *args, **kwargs):
        """Singleton pattern implementation."""
        if cls._instance is None:
            cls._instance = super(Config, cls).__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_path=None):
        """Initialize the configuration if not already initialized."""
        if self._initialized:
            return

        self._config_path = Path(config_path or os.environ.get(CONFIG_PATH_ENV, 'config/settings.ini'))
        self._config = configparser.ConfigParser(interpolation=None)

        self._load_defaults()
        if self._config_path.exists():
            try:
                self._config.read(self._config_path)
            except configparser.Error as e:
                raise ConfigError(f"Cannot read {self._config_path}: {str(e)}")

        self._initialized = True

    @classmethod
    def reset(cls):
        """Drop the singleton so the next Config() reloads from disk."""
        cls._instance = None

    def _load_defaults(self):
        """Populate default settings."""
        self._config['DATABASE'] = {
            'url': 'sqlite:///inventory_forecasting.db',
            'echo': 'False'
        }

        self._config['LOGGING'] = {
            'level': 'INFO',
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            'directory': 'logs',
            'max_size_mb': '10',
            'backup_count': '5',
            'console_output': 'True',
            'file_output': 'False'
        }

        self._config['BATCH_PROCESS'] = {
            'max_workers': '4',
            'history_days': '90',
            'store_results': 'True'
        }

        defaults = ForecastConfig()
        self._config['FORECASTING'] = {
            'safety_stock_days_default': str(defaults.safety_stock_days_default),
            'fba_target_days': str(defaults.fba_target_days),
            'fba_capacity': '',
            'lead_time_days_default': str(defaults.lead_time_days_default),
            'round_to_nearest': '',
            'urgency_threshold_days': str(defaults.urgency_threshold_days),
            'seasonality_lookahead_days': str(defaults.seasonality_lookahead_days),
            'trend_rising_ratio': str(defaults.trend_rising_ratio),
            'trend_declining_ratio': str(defaults.trend_declining_ratio),
            'baseline_window': defaults.baseline_window,
            'min_history_days': str(defaults.min_history_days),
            'volatility_tolerance': str(defaults.volatility_tolerance),
            'volatility_weight': str(defaults.volatility_weight),
            'safety_stock_method': defaults.safety_stock_method,
            'service_level': str(defaults.service_level),
            'spike_threshold_pct': str(defaults.spike_threshold_pct),
            'allocation_policy': defaults.allocation_policy
        }

    def _typed(self, getter, section, key, default):
        try:
            return getter(section, key)
        except MISSING_OPTION:
            return default
        except ValueError:
            raise ConfigError(
                f"[{section}] {key} has invalid value {self._config.get(section, key)!r}",
                details={f"{section}.{key}": self._config.get(section, key)}
            )

    def get(self, section, key, default=None):
        """Get configuration value."""
        return self._typed(self._config.get, section, key, default)

    def get_int(self, section, key, default=None):
        """Get configuration value as integer."""
        return self._typed(self._config.getint, section, key, default)

    def get_float(self, section, key, default=None):
        """Get configuration value as float."""
        return self._typed(self._config.getfloat, section, key, default)

    def get_boolean(self, section, key, default=None):
        """Get configuration value as boolean."""
        return self._typed(self._config.getboolean, section, key, default)

    def get_optional_int(self, section, key):
        """Get an integer that may be left blank to mean 'not set'."""
        value = self.get(section, key, '')
        if value is None or value.strip() == '':
            return None
        try:
            return int(value)
        except ValueError:
            raise ConfigError(f"[{section}] {key} must be an integer, got {value!r}")

    def get_db_url(self):
        """SQLAlchemy database URL."""
        return self.get('DATABASE', 'url', 'sqlite:///inventory_forecasting.db')

    @property
    def log_config(self):
        """Get logging configuration."""
        return {
            'level': self.get('LOGGING', 'level', 'INFO'),
            'format': self.get('LOGGING', 'format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s'),
            'directory': self.get('LOGGING', 'directory', 'logs'),
            'max_size_mb': self.get_int('LOGGING', 'max_size_mb', 10),
            'backup_count': self.get_int('LOGGING', 'backup_count', 5),
            'console_output': self.get_boolean('LOGGING', 'console_output', True),
            'file_output': self.get_boolean('LOGGING', 'file_output', False)
        }

    @property
    def batch_config(self):
        """Get batch processing configuration."""
        return {
            'max_workers': self.get_int('BATCH_PROCESS', 'max_workers', 4),
            'history_days': self.get_int('BATCH_PROCESS', 'history_days', 90),
            'store_results': self.get_boolean('BATCH_PROCESS', 'store_results', True)
        }

    @property
    def forecast_config(self) -> ForecastConfig:
        """Build a validated ForecastConfig from the [FORECASTING] section."""
        defaults = ForecastConfig()
        section = 'FORECASTING'

        forecast_config = ForecastConfig(
            safety_stock_days_default=self.get_float(section, 'safety_stock_days_default', defaults.safety_stock_days_default),
            fba_target_days=self.get_float(section, 'fba_target_days', defaults.fba_target_days),
            fba_capacity=self.get_optional_int(section, 'fba_capacity'),
            lead_time_days_default=self.get_float(section, 'lead_time_days_default', defaults.lead_time_days_default),
            round_to_nearest=self.get_optional_int(section, 'round_to_nearest'),
            urgency_threshold_days=self.get_float(section, 'urgency_threshold_days', defaults.urgency_threshold_days),
            seasonality_lookahead_days=self.get_int(section, 'seasonality_lookahead_days', defaults.seasonality_lookahead_days),
            trend_rising_ratio=self.get_float(section, 'trend_rising_ratio', defaults.trend_rising_ratio),
            trend_declining_ratio=self.get_float(section, 'trend_declining_ratio', defaults.trend_declining_ratio),
            baseline_window=self.get(section, 'baseline_window', defaults.baseline_window),
            min_history_days=self.get_int(section, 'min_history_days', defaults.min_history_days),
            volatility_tolerance=self.get_float(section, 'volatility_tolerance', defaults.volatility_tolerance),
            volatility_weight=self.get_float(section, 'volatility_weight', defaults.volatility_weight),
            safety_stock_method=self.get(section, 'safety_stock_method', defaults.safety_stock_method),
            service_level=self.get_float(section, 'service_level', defaults.service_level),
            spike_threshold_pct=self.get_float(section, 'spike_threshold_pct', defaults.spike_threshold_pct),
            allocation_policy=self.get(section, 'allocation_policy', defaults.allocation_policy),
            max_workers=self.batch_config['max_workers']
        )

        return forecast_config.validate()


# Global config instance
config = Config()
