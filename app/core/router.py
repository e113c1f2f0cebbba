"""Router with request correlation, result conversion and upload endpoint registry."""

import inspect
import uuid
from collections.abc import Callable
from functools import wraps
from typing import Any

import orjson
from asgi_correlation_id import correlation_id
from pydantic import BaseModel
from robyn import Request, Response, SubRouter, status_codes
from robyn.robyn import HttpMethod

from app.core.logger import LogIcon, logger
from app.intake.composer import compose
from app.models.core import Accepted, Rejected

REQUEST_ID_HEADER = "x-request-id"

# full path -> multipart file field name, read by the OpenAPI and payload limit middlewares
UPLOAD_ENDPOINTS: dict[str, str] = {}


def parse_response(result: Any) -> Response:
    """Convert handler result to Response."""
    match result:
        case Response():
            return result
        case Accepted() | Rejected():
            return compose(result)
        case BaseModel():
            return Response(
                status_code=status_codes.HTTP_200_OK,
                headers={"content-type": "application/json"},
                description=result.model_dump_json(indent=4),
            )
        case dict():
            return Response(
                status_code=status_codes.HTTP_200_OK,
                headers={"content-type": "application/json"},
                description=orjson.dumps(result).decode(),
            )
        case _:
            return Response(
                status_code=status_codes.HTTP_200_OK,
                headers={},
                description=str(result),
            )


def request_id_for(request: Request) -> str:
    """Reuse the caller's request id when it sent one."""
    headers = getattr(request, "headers", None)
    incoming = headers.get(REQUEST_ID_HEADER) if headers is not None else None
    return incoming or uuid.uuid4().hex


HTTP_METHODS = (
    HttpMethod.GET,
    HttpMethod.POST,
    HttpMethod.PUT,
    HttpMethod.DELETE,
    HttpMethod.PATCH,
    HttpMethod.HEAD,
    HttpMethod.OPTIONS,
    HttpMethod.TRACE,
    HttpMethod.CONNECT,
)


def _create_method_wrapper(original_method: Callable, router_prefix: str = "") -> Callable:
    @wraps(original_method)
    def method_wrapper(*args, upload_field: str | None = None, **kwargs) -> Callable:
        endpoint = args[0] if args else kwargs.get("endpoint", "")
        full_path = f"{router_prefix}{endpoint}".replace("//", "/")
        decorator = original_method(*args, **kwargs)

        if upload_field:
            UPLOAD_ENDPOINTS[full_path] = upload_field

        def handler_decorator(handler: Callable) -> Callable:
            sig = inspect.signature(handler)
            has_request_param = "request" in sig.parameters

            @wraps(handler)
            async def wrapped_handler(request: Request, **h_kwargs):
                token = correlation_id.set(request_id_for(request))
                try:
                    # Pass request to handler only if it declared it
                    if has_request_param:
                        h_kwargs["request"] = request

                    response = parse_response(await handler(**h_kwargs))
                    logger.info("Request handled", icon=LogIcon.NETWORK, path=full_path, status=response.status_code)
                    return response
                finally:
                    correlation_id.reset(token)

            # Build signature: always include request for Robyn injection
            new_params = [inspect.Parameter("request", inspect.Parameter.POSITIONAL_OR_KEYWORD, annotation=Request)]
            new_params.extend(param for name, param in sig.parameters.items() if name != "request")

            wrapped_handler.__signature__ = sig.replace(parameters=new_params)  # type: ignore[attr-defined]
            return decorator(wrapped_handler)

        return handler_decorator

    return method_wrapper


class Router(SubRouter):
    """SubRouter whose handlers get a correlation id and may return plain results."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._prefix = kwargs.get("prefix", "")
        self._wrap_methods()

    def _wrap_methods(self) -> None:
        """Wrap HTTP methods with conversion logic."""
        for method in HTTP_METHODS:
            method_name = str(method).split(".")[-1].lower()
            if hasattr(self, method_name):
                original_method = getattr(self, method_name)
                wrapped_method = _create_method_wrapper(original_method, self._prefix)
                setattr(self, method_name, wrapped_method)
