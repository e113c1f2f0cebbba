"""File upload middlewares: early payload limit and OpenAPI multipart/form-data patching."""

from collections.abc import Mapping

import orjson
from robyn import Request, Response

from app.core.logger import LogIcon, logger
from app.intake.composer import compose
from app.intake.errors import IntakeError
from app.intake.pipeline import rejected
from app.intake.receiver import SizeBoundedReceiver
from app.middlewares.base import BaseMiddleware


class PayloadLimitMiddleware(BaseMiddleware):
    """Rejects upload requests whose Content-Length can never fit under the ceiling."""

    def __init__(self, receiver: SizeBoundedReceiver, endpoints: Mapping[str, str]) -> None:
        super().__init__(endpoints.keys())
        self.receiver = receiver

    def before(self, request: Request) -> Request | Response:
        try:
            self.receiver.check_content_length(request.headers.get("content-length"))
        except IntakeError as ex:
            logger.info("Upload rejected before decoding", icon=LogIcon.SECURITY, kind=ex.kind)
            return compose(rejected(ex))
        return request


def multipart_request_body(field: str) -> dict:
    return {
        "content": {
            "multipart/form-data": {
                "schema": {
                    "type": "object",
                    "properties": {
                        field: {
                            "type": "string",
                            "format": "binary",
                            "description": "File to analyse",
                        }
                    },
                    "required": [field],
                }
            }
        },
        "required": True,
    }


class FileUploadOpenAPIMiddleware(BaseMiddleware):
    """Patches OpenAPI responses to use multipart/form-data for file upload endpoints."""

    endpoints = frozenset(["/openapi.json"])

    def __init__(self, upload_endpoints: Mapping[str, str]) -> None:
        super().__init__()
        self.upload_endpoints = upload_endpoints

    def after(self, response: Response) -> Response:
        """Patch OpenAPI spec with multipart/form-data for file upload endpoints."""
        if not self.upload_endpoints:
            return response

        try:
            spec = orjson.loads(response.description)
        except orjson.JSONDecodeError:
            logger.warning("OpenAPI document is not JSON, leaving it untouched", icon=LogIcon.WARNING)
            return response

        paths = spec.get("paths", {})
        for endpoint, field in self.upload_endpoints.items():
            for operation in paths.get(endpoint, {}).values():
                operation["requestBody"] = multipart_request_body(field)

        response.description = orjson.dumps(spec).decode()
        return response
