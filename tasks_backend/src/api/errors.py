from __future__ import annotations


class StoreError(Exception):
    """
    Base error for failures surfaced by the task adapter.

    Each subclass carries the HTTP status code the API layer responds with.
    """

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class GatewayError(StoreError):
    """A call to the external store failed (transport or API error)."""

    status_code = 502


class SchemaFetchFailed(StoreError):
    """The external store's property definitions could not be retrieved."""

    status_code = 503


class MissingTitleProperty(StoreError):
    """The external database declares no title property."""

    status_code = 400


class MissingTitleValue(StoreError):
    """A record was created without its title property populated."""

    status_code = 400


class RecordReadFailed(StoreError):
    status_code = 502


class RecordWriteFailed(StoreError):
    status_code = 502


class RecordNotFound(StoreError):
    status_code = 404
