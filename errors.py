"""Error types raised by the ERP core and mapped to HTTP responses in app.py."""


class ErpError(Exception):
    """Base class for all domain errors."""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {'error': self.message, 'type': self.__class__.__name__}


class ValidationError(ErpError):
    """Out-of-range or malformed input (percentages, amounts, dates)."""
    status_code = 400


class InvalidAmount(ValidationError):
    pass


class CapacityExceeded(ErpError):
    status_code = 409


class NotFound(ErpError):
    status_code = 404


class UnknownStudent(NotFound):
    pass


class AlreadyAllocated(ErpError):
    status_code = 409


class PersistenceFailure(ErpError):
    """Storage read/write failure. Handled inside storage.py with a fallback."""
    status_code = 500
