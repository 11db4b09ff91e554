# smartpark/errors.py
"""
Failure kinds reported by the parking core.
Each carries the HTTP status the API layer maps it to.
"""


class ParkingError(Exception):
    http_status = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(ParkingError):
    http_status = 404


class InvalidTransition(ParkingError):
    http_status = 400


class ValidationError(ParkingError):
    http_status = 400


class StoreUnavailable(ParkingError):
    http_status = 500
