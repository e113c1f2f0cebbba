"""Lifespan management with event-based architecture for fileanalyse-api.

Collaborators (storage backend, intake pipeline) are created here at startup,
kept in a ``State`` injected into handlers as a global dependency, and released
in reverse order at shutdown.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Coroutine
from typing import Any

from robyn import Robyn

from app.core.logger import LogIcon, logger
from app.core.settings import settings as st

AsyncHandler = Callable[[], Coroutine[Any, Any, None]]


class State:
    """Application state container with attribute access."""

    __slots__ = ("_data",)

    def __init__(self) -> None:
        object.__setattr__(self, "_data", {})

    def __getattr__(self, name: str) -> Any:
        try:
            return self._data[name]
        except KeyError:
            raise AttributeError(f"State has no attribute '{name}'") from None

    def __setattr__(self, name: str, value: Any) -> None:
        self._data[name] = value

    def __contains__(self, name: str) -> bool:
        return name in self._data

    def __iter__(self):
        return iter(self._data.keys())

    def __repr__(self) -> str:
        return f"State({', '.join(self._data)})"

    def get(self, name: str, default: Any = None) -> Any:
        return self._data.get(name, default)

    def clear(self) -> None:
        self._data.clear()


class BaseEvent[T](ABC):
    """A collaborator created at startup and stored on the state under ``name``."""

    name: str
    state: State

    @abstractmethod
    async def startup(self) -> T:
        """Create and return the collaborator."""
        ...

    async def shutdown(self, instance: T) -> None:  # noqa: B027
        """Optional cleanup. Override if cleanup is needed."""

    @classmethod
    def has_shutdown(cls) -> bool:
        return cls.shutdown is not BaseEvent.shutdown


class Lifespan:
    """Runs registered events in order at startup and in reverse at shutdown."""

    def __init__(self, app: Robyn) -> None:
        self._app = app
        self._event_classes: list[type[BaseEvent[Any]]] = []
        self._events: list[BaseEvent[Any]] = []
        self._state: State | None = None

    def register(self, event_cls: type[BaseEvent[Any]]) -> "Lifespan":
        """Register an event class. Returns self for chaining."""
        self._event_classes.append(event_cls)
        return self

    @property
    def state(self) -> State | None:
        return self._state

    @property
    def events(self) -> list[BaseEvent[Any]]:
        return self._events

    async def _start_event(self, event_cls: type[BaseEvent[Any]]) -> None:
        event = event_cls()
        event.state = self._state
        logger.info(f"Starting event: {event.name}", icon=LogIcon.PROCESSING)
        instance = await event.startup()
        setattr(self._state, event.name, instance)
        self._events.append(event)
        logger.info(f"Event ready: {event.name}", icon=LogIcon.SUCCESS)

    async def _stop_events(self) -> None:
        for event in reversed(self._events):
            if not (event.has_shutdown() and event.name in self._state):
                continue
            logger.info(f"Shutting down: {event.name}", icon=LogIcon.PROCESSING)
            try:
                await event.shutdown(getattr(self._state, event.name))
            except Exception:
                logger.exception(f"Shutdown failed: {event.name}", icon=LogIcon.ERROR)
        self._events.clear()
        self._state.clear()

    @property
    def startup(self) -> AsyncHandler:
        """Return async startup handler function."""

        async def _startup() -> None:
            logger.info("Starting application lifespan", icon=LogIcon.START, version=st.API_VERSION)
            self._state = State()

            for event_cls in self._event_classes:
                try:
                    await self._start_event(event_cls)
                except Exception:
                    logger.exception(f"Startup failed: {event_cls.__name__}", icon=LogIcon.CRITICAL)
                    await self._stop_events()
                    raise

            self._app.inject_global(state=self._state)
            logger.info("App state ready", icon=LogIcon.COMPLETE, state=repr(self._state))

        return _startup

    @property
    def shutdown(self) -> AsyncHandler:
        """Return async shutdown handler function."""

        async def _shutdown() -> None:
            if not self._state:
                logger.info("No state to cleanup", icon=LogIcon.WARNING)
                return

            logger.info("Cleaning up app state", icon=LogIcon.TOOL)
            await self._stop_events()
            logger.info("Cleanup complete", icon=LogIcon.COMPLETE)

        return _shutdown


def create_lifespan(app: Robyn) -> Lifespan:
    """Create lifespan manager for event registration."""
    return Lifespan(app)
