# landval/errors.py
"""
Error taxonomy. Every error carries the HTTP status and the public message
the API answers with; driver details stay in the exception chain and the log.
"""
from typing import Optional


class ValuationError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class RegionNotFound(ValuationError):
    status_code = 404
    message = "Mouza not found"


class ClassificationNotFound(ValuationError):
    status_code = 404
    message = "Classification not found for this mouza"


class SourceNotFound(ValuationError):
    status_code = 404
    message = "City not found"


class InvalidInput(ValuationError):
    message = "Invalid input"


class StorageError(ValuationError):
    message = "Storage error"


class StorageTimeout(StorageError):
    message = "Storage timeout"
