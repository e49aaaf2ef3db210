"""Error types raised by the relay.

Errors raised before the first byte of a stream carry the HTTP status
they are reported with. Once streaming has begun the status is already
committed, so only ``MidStreamFailure`` can occur.
"""

from fastapi import status

from chat_relay.models.schemas import ErrorResponse


class RelayError(Exception):
    """Base relay error reported as a JSON body."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        details: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(error=self.message, details=self.details)


class ConfigurationError(RelayError):
    """Required upstream credentials are not configured."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class MalformedRequestError(RelayError):
    """Request body is not valid JSON or lacks a conversation."""

    status_code = status.HTTP_400_BAD_REQUEST


class UpstreamRejection(RelayError):
    """Provider refused the request or could not be reached."""

    status_code = status.HTTP_502_BAD_GATEWAY


class MidStreamFailure(RelayError):
    """Provider stream broke after frames were already sent."""
