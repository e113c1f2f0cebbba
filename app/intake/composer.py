"""HTTP responses for intake outcomes."""

import orjson
from pydantic import BaseModel
from robyn import Response, status_codes

from app.models.core import Accepted, ErrorKind, Rejected, ValidationOutcome

JSON_HEADERS = {"content-type": "application/json"}

# Every classified rejection is the client's fault
REJECTION_STATUS: dict[ErrorKind, int] = {kind: status_codes.HTTP_400_BAD_REQUEST for kind in ErrorKind}


class UploadResponse(BaseModel):
    """Metadata returned for an accepted upload."""

    name: str
    type: str
    size: int


class ErrorResponse(BaseModel):
    error: str
    message: str


def json_response(status_code: int, payload: BaseModel) -> Response:
    return Response(
        status_code=status_code,
        headers=dict(JSON_HEADERS),
        description=orjson.dumps(payload.model_dump()).decode(),
    )


def compose(outcome: ValidationOutcome) -> Response:
    """Build the single response emitted for a request."""
    match outcome:
        case Accepted(name=name, declared_type=declared_type, size=size):
            return json_response(status_codes.HTTP_200_OK, UploadResponse(name=name, type=declared_type, size=size))
        case Rejected(kind=kind, message=message):
            return json_response(REJECTION_STATUS[kind], ErrorResponse(error=kind.value, message=message))
    raise TypeError(f"Unexpected outcome: {outcome!r}")


def compose_internal_error() -> Response:
    return json_response(
        status_codes.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorResponse(error="internal_error", message="An unknown error occurred while uploading the file."),
    )
