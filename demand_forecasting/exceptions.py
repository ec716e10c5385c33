class ForecastingError(Exception):
    """Base exception for Demand Forecasting service errors."""

    def __init__(self, message=None, code=None, details=None):
        """Initialize the exception.

        Args:
            message: Error message
            code: Error code
            details: Additional error details
        """
        self.message = message or "An error occurred in the Demand Forecasting service"
        self.code = code
        self.details = details
        super().__init__(self.message)

    def __str__(self):
        """String representation of the error."""
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message

    def to_dict(self):
        """Convert the exception to a dictionary."""
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
    """Exception raised for configuration errors."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Configuration error"
        super().__init__(message, code, details)


class SchemaError(ForecastingError):
    """Exception raised when an upload's header or overall shape is unusable."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Invalid CSV format"
        super().__init__(message, code, details)


class ValidationError(ForecastingError):
    """Exception raised for data validation errors.

    During CSV ingestion it is raised per row and collected; elsewhere it
    rejects the whole request.
    """

    def __init__(self, message=None, code=None, details=None):
        message = message or "Validation error"
        super().__init__(message, code, details)


class InsufficientDataError(ForecastingError):
    """Exception raised when a product has too little sales history to forecast."""

    def __init__(self, current_data_points, required_data_points=7, message=None):
        self.current_data_points = current_data_points
        self.required_data_points = required_data_points
        message = message or (
            f"At least {required_data_points} days of sales data required for forecasting"
        )
        super().__init__(message, 'INSUFFICIENT_DATA', {
            'current_data_points': current_data_points,
            'required_data_points': required_data_points
        })

    def to_dict(self):
        error_dict = super().to_dict()
        error_dict['currentDataPoints'] = self.current_data_points
        return error_dict


class NotFoundError(ForecastingError):
    """Exception raised when a requested resource is not found."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Resource not found"
        super().__init__(message, code, details)


class ResponseFormatError(ForecastingError):
    """Exception raised when the forecasting model's reply is unusable."""

    def __init__(self, message=None, field=None, cause=None):
        self.field = field
        self.cause = cause
        message = message or "Failed to parse AI response"
        details = {}
        if field:
            details['field'] = field
        if cause is not None:
            details['cause'] = str(cause)
        super().__init__(message, 'RESPONSE_FORMAT', details or None)


class DependencyError(ForecastingError):
    """Exception raised when a store, archive or model call fails in transport."""

    def __init__(self, message=None, code=None, details=None):
        message = message or "Dependency failure"
        super().__init__(message, code, details)
