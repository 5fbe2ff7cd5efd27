import logging
import logging.handlers
from datetime import datetime
from pathlib import Path

from inventory_forecasting.config import config


class Logger:
    """Logging manager for forecasting runs.

    Console output goes through the root logger; with ``file_output`` enabled
    every named logger also writes to its own rotating file under the
    configured directory.
    """

    _instance = None
    _loggers = {}

    def __new__(cls):
        """Singleton pattern implementation."""
        if cls._instance is None:
            cls._instance = super(Logger, cls).__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        settings = config.log_config
        self._settings = settings
        self._level = getattr(logging, settings['level'].upper(), logging.INFO)
        self._formatter = logging.Formatter(settings['format'])
        self._log_dir = Path(settings['directory'])

        if settings['file_output']:
            self._log_dir.mkdir(parents=True, exist_ok=True)

        root = logging.getLogger()
        root.setLevel(self._level)
        if settings['console_output'] and not root.handlers:
            console = logging.StreamHandler()
            console.setFormatter(self._formatter)
            root.addHandler(console)

        self._initialized = True

    def _file_handler(self, name):
        handler = logging.handlers.RotatingFileHandler(
            self._log_dir / f"{name}.log",
            maxBytes=self._settings['max_size_mb'] * 1024 * 1024,
            backupCount=self._settings['backup_count']
        )
        handler.setFormatter(self._formatter)
        return handler

    def get_logger(self, name):
        """Return the named logger, configured once per process."""
        if name not in self._loggers:
            named = logging.getLogger(name)
            named.setLevel(self._level)
            if self._settings['file_output'] and not named.handlers:
                named.addHandler(self._file_handler(name))
            self._loggers[name] = named
        return self._loggers[name]

    def set_level(self, level):
        """Change the level of the root logger and every logger handed out so far."""
        self._level = level
        logging.getLogger().setLevel(level)
        for named in self._loggers.values():
            named.setLevel(level)

    def log_exception(self, logger_name, exception, message=None):
        """Log an error with its traceback.

        Args:
            logger_name: Logger to write to
            exception: Exception being handled
            message: Optional context prefix
        """
        text = f"{message}: {exception}" if message else str(exception)
        self.get_logger(logger_name).error(text, exc_info=exception)

    def log_outcomes(self, logger_name, skipped, alerts):
        """Warn about skipped SKUs and stockout alerts of a forecasting run.

        Args:
            logger_name: Logger to write to
            skipped: Mapping of SKU to skip reason
            alerts: Alerts from generate_stockout_alerts
        """
        run_logger = self.get_logger(logger_name)
        for sku, reason in sorted(skipped.items()):
            run_logger.warning(f"Skipped {sku}: {reason}")
        for alert in alerts:
            run_logger.warning(f"[{alert['severity'].upper()}] {alert['message']}")

    def batch_start_log(self, process_name, additional_info=None):
        """Record the start of a batch process.

        Returns:
            Dictionary to hand back to batch_end_log
        """
        self.get_logger('batch').info(
            f"Starting batch process: {process_name}"
            + (f" ({additional_info})" if additional_info else "")
        )
        return {
            'process_name': process_name,
            'start_time': datetime.now(),
            'additional_info': additional_info
        }

    def batch_end_log(self, log_info, success=True, result_info=None):
        """Record the end of a batch process.

        Args:
            log_info: Dictionary returned by batch_start_log
            success: Whether the process succeeded
            result_info: Optional summary counts

        Returns:
            Process duration as a timedelta
        """
        batch_logger = self.get_logger('batch')
        process_name = log_info.get('process_name', 'Unknown')
        duration = datetime.now() - log_info.get('start_time', datetime.now())

        status = "Completed" if success else "Failed"
        level = logging.INFO if success else logging.ERROR
        batch_logger.log(level, f"{status} batch process: {process_name} in {duration}")

        if result_info:
            summary = ', '.join(f"{key}={value}" for key, value in result_info.items())
            batch_logger.info(f"{process_name} results: {summary}")

        return duration


# Global logger instance
logger = Logger()


def get_logger(name):
    """Get a logger with the specified name."""
    return logger.get_logger(name)


def log_exception(logger_name, exception, message=None):
    """Log an exception with stack trace."""
    logger.log_exception(logger_name, exception, message)
