"""Custom exceptions for the Kala POS application."""


class PosError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['error'] = self.message
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv


class ValidationError(PosError):
    """Raised for malformed input, before any mutation."""
    def __init__(self, message, payload=None):
        super().__init__(message, 400, payload)


class ConflictError(PosError):
    """Raised when a unique value (barcode, name) already exists."""
    def __init__(self, message, payload=None):
        super().__init__(message, 409, payload)


class NotFoundError(PosError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)


class InsufficientStockError(ConflictError):
    """Raised when an operation fails due to lack of stock."""
    def __init__(self, barcode, required, available):
        message = f"Insufficient stock for {barcode}: requested {required}, available {available}"
        super().__init__(message, payload={
            'barcode': barcode,
            'requested': required,
            'available': available
        })


class TransactionError(PosError):
    """A storage step failed inside a sale transaction; everything was rolled back."""
    def __init__(self, message="Transaction failed"):
        super().__init__(message, 500)


class ImportFailedError(PosError):
    """No row of an import could be applied."""
    def __init__(self, message, errors):
        super().__init__(message, 422, payload={'details': errors, 'errors': errors})
