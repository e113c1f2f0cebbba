"""Base middleware architecture for Robyn applications."""

from collections.abc import Callable, Iterable

from robyn import Request, Response, Robyn

from app.core.logger import LogIcon, logger


class BaseMiddleware:
    """Base class for middlewares with before/after hooks.

    Subclasses override at least one hook; only overridden hooks are registered.
    """

    endpoints: frozenset[str] = frozenset()

    def __init__(self, endpoints: Iterable[str] | None = None) -> None:
        if endpoints is not None:
            self.endpoints = frozenset(endpoints)

    def __init_subclass__(cls, **kwargs) -> None:
        super().__init_subclass__(**kwargs)
        if not (cls.has_before() or cls.has_after()):
            raise TypeError(f"{cls.__name__} must implement at least one of before/after")

    @classmethod
    def has_before(cls) -> bool:
        return cls.before is not BaseMiddleware.before

    @classmethod
    def has_after(cls) -> bool:
        return cls.after is not BaseMiddleware.after

    def before(self, request: Request) -> Request | Response:
        """Called before request handling. Return Request to continue or Response to short-circuit."""
        return request

    def after(self, response: Response) -> Response:
        """Called after request handling. Return modified Response."""
        return response


class MiddlewareHandler:
    """Manages middleware registration for a Robyn application."""

    def __init__(self, app: Robyn) -> None:
        self._app = app
        self._middlewares: list[BaseMiddleware] = []

    @property
    def middlewares(self) -> list[BaseMiddleware]:
        return self._middlewares

    def register(self, middleware: BaseMiddleware) -> "MiddlewareHandler":
        """Register a middleware instance. Returns self for chaining."""
        self._middlewares.append(middleware)
        endpoints = self._apply_middleware(middleware)
        logger.info(
            f"Registered middleware: {type(middleware).__name__}",
            icon=LogIcon.ADAPTER,
            endpoints=sorted(endpoints),
        )
        return self

    def _apply_middleware(self, middleware: BaseMiddleware) -> frozenset[str]:
        """Apply middleware to its endpoints, or to every route when it names none."""
        endpoints = middleware.endpoints or self._get_all_routes()

        for endpoint in endpoints:
            if middleware.has_before():
                self._register_before(endpoint, middleware)
            if middleware.has_after():
                self._register_after(endpoint, middleware.after)
        return endpoints

    def _get_all_routes(self) -> frozenset[str]:
        """Get all registered routes from the app."""
        routes = self._app.get_all_routes()
        return frozenset(route[1] for route in routes)

    def _register_before(self, endpoint: str, middleware: BaseMiddleware) -> None:
        """Register a before_request handler for an endpoint; a Response ends the request there."""
        name = type(middleware).__name__

        @self._app.before_request(endpoint)
        async def before_wrapper(request: Request) -> Request | Response:
            result = middleware.before(request)
            if isinstance(result, Response):
                logger.info(
                    "Request short-circuited",
                    icon=LogIcon.SECURITY,
                    middleware=name,
                    path=endpoint,
                    status=result.status_code,
                )
            return result

    def _register_after(self, endpoint: str, handler: Callable) -> None:
        """Register an after_request handler for an endpoint."""
        @self._app.after_request(endpoint)
        def after_wrapper(response: Response) -> Response:
            return handler(response)
