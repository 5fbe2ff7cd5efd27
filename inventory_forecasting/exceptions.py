class ForecastingError(Exception):
    """Base exception for the Inventory Forecasting Engine.

    Subclasses set ``default_message`` and, where callers branch on it,
    ``default_code``.
    """

    default_message = "An error occurred in the Inventory Forecasting Engine"
    default_code = None

    def __init__(self, message=None, code=None, details=None):
        """Initialize the exception.

        Args:
            message: Error message
            code: Error code
            details: Additional error details (e.g. field -> problem)
        """
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.details = details
        super().__init__(self.message)

    def __str__(self):
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message

    def to_dict(self):
        """Serialize for job results and logs."""
        error_dict = {
            'error': self.__class__.__name__,
            'message': self.message,
        }
        if self.code:
            error_dict['code'] = self.code
        if self.details:
            error_dict['details'] = self.details
        return error_dict


class ConfigError(ForecastingError):
    """Raised when the settings file cannot be read or parsed."""
    default_message = "Configuration error"


class InvalidConfigurationError(ForecastingError):
    """Raised for policy values that make a run meaningless.

    Fatal: raised before any SKU is processed.
    """
    default_message = "Invalid forecast configuration"
    default_code = 'INVALID_CONFIGURATION'


class InconsistentSnapshotError(ForecastingError):
    """Raised for impossible inventory data on a single SKU."""
    default_message = "Inconsistent inventory snapshot"
    default_code = 'INCONSISTENT_SNAPSHOT'


class CalculationError(ForecastingError):
    default_message = "Calculation error"


class DatabaseError(ForecastingError):
    default_message = "Database error"


class ForecastCancelledError(ForecastingError):
    """Raised when a forecast run is cancelled between SKUs."""
    default_message = "Forecast run cancelled"
    default_code = 'CANCELLED'


class NotFoundError(ForecastingError):
    default_message = "Resource not found"
