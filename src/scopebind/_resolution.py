"""Per-resolution bookkeeping: the resolution stack and deferred references."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any

from ._errors import CircularDependencyError


if TYPE_CHECKING:
    from collections.abc import Iterator

    from ._registration import Registration


logger = logging.getLogger(__name__)

_current_context: ContextVar[ResolutionContext | None] = ContextVar("scopebind_resolution_context", default=None)


class ResolutionContext:
    """State shared by everything built during one top-level resolve call.

    ``instances`` holds every instance created so far, keyed by registration, so a
    dependency requested twice (a diamond) is built once, and deferred references
    can find the instance they stand for.

    A context belongs to the asyncio task (or plain thread of execution) that
    created it. A resolve issued from another task, such as one started with
    ``asyncio.gather`` inside a factory, gets a child context: it sees what is
    under construction in its parent, so cycles are still detected, but builds
    its own instances.
    """

    def __init__(self, parent: ResolutionContext | None = None) -> None:
        self.task = _current_task()
        # registration under construction -> context constructing it
        self._stack: dict[Registration, ResolutionContext] = dict(parent._stack) if parent is not None else {}
        self.instances: dict[Registration, object] = {}
        self.implicit: dict[type, Registration] = parent.implicit if parent is not None else {}

    def is_resolving(self, registration: Registration) -> bool:
        return registration in self._stack

    @contextlib.contextmanager
    def constructing(self, registration: Registration) -> Iterator[None]:
        self._stack[registration] = self
        try:
            yield
        finally:
            self._stack.pop(registration, None)

    def defer(self, registration: Registration) -> DeferredReference:
        logger.debug("Circular dependency on %r, injecting a deferred reference", registration.token)
        return DeferredReference(self._stack[registration], registration)


def _current_task() -> asyncio.Task[Any] | None:
    try:
        return asyncio.current_task()
    except RuntimeError:
        # no running event loop
        return None


@contextlib.contextmanager
def resolution_context() -> Iterator[ResolutionContext]:
    """Join the running resolution, or start a new one for a top-level call."""
    context = _current_context.get()
    if context is not None and context.task is _current_task():
        yield context
        return

    context = ResolutionContext(parent=context)
    reset_token = _current_context.set(context)
    try:
        yield context
    finally:
        _current_context.reset(reset_token)


_UNSET = object()


class DeferredReference:
    """Stand-in injected where a dependency is still under construction.

    The first attribute access looks the real instance up in the resolution
    context it was created in, remembers it, and forwards every access from then
    on. ``isinstance`` checks and ``==`` see the real instance; ``__wrapped__``
    returns it.
    """

    __slots__ = ("_ref_context", "_ref_registration", "_ref_instance")

    def __init__(self, context: ResolutionContext, registration: Registration) -> None:
        object.__setattr__(self, "_ref_context", context)
        object.__setattr__(self, "_ref_registration", registration)
        object.__setattr__(self, "_ref_instance", _UNSET)

    def _ref_target(self) -> Any:
        instance = self._ref_instance
        if instance is _UNSET:
            registration = self._ref_registration
            try:
                instance = self._ref_context.instances[registration]
            except KeyError:
                msg = (
                    f"Deferred reference to {registration.token!r} was used before the instance was built. "
                    "The dependency cycle has no member that can be constructed first."
                )
                raise CircularDependencyError(msg) from None
            if instance is self:
                msg = f"Provider for {registration.token!r} resolved to a deferred reference to itself"
                raise CircularDependencyError(msg)
            object.__setattr__(self, "_ref_instance", instance)
            object.__setattr__(self, "_ref_context", None)
        return instance

    @property
    def __wrapped__(self) -> Any:
        return self._ref_target()

    @property  # type: ignore[misc]
    def __class__(self) -> type:
        return type(self._ref_target())

    def __getattr__(self, name: str) -> Any:
        return getattr(self._ref_target(), name)

    def __setattr__(self, name: str, value: Any) -> None:
        setattr(self._ref_target(), name, value)

    def __delattr__(self, name: str) -> None:
        delattr(self._ref_target(), name)

    def __dir__(self) -> list[str]:
        return dir(self._ref_target())

    def __repr__(self) -> str:
        if self._ref_instance is _UNSET:
            return f"<DeferredReference to {self._ref_registration.token!r} (unresolved)>"
        return repr(self._ref_instance)

    def __str__(self) -> str:
        return str(self._ref_target())

    def __format__(self, format_spec: str) -> str:
        return format(self._ref_target(), format_spec)

    def __eq__(self, other: object) -> bool:
        return self._ref_target() == other

    def __ne__(self, other: object) -> bool:
        return self._ref_target() != other

    def __lt__(self, other: Any) -> bool:
        return self._ref_target() < other

    def __le__(self, other: Any) -> bool:
        return self._ref_target() <= other

    def __gt__(self, other: Any) -> bool:
        return self._ref_target() > other

    def __ge__(self, other: Any) -> bool:
        return self._ref_target() >= other

    def __hash__(self) -> int:
        return hash(self._ref_target())

    def __bool__(self) -> bool:
        return bool(self._ref_target())

    def __len__(self) -> int:
        return len(self._ref_target())

    def __iter__(self) -> Iterator[Any]:
        return iter(self._ref_target())

    def __contains__(self, item: object) -> bool:
        return item in self._ref_target()

    def __getitem__(self, key: Any) -> Any:
        return self._ref_target()[key]

    def __setitem__(self, key: Any, value: Any) -> None:
        self._ref_target()[key] = value

    def __delitem__(self, key: Any) -> None:
        del self._ref_target()[key]

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self._ref_target()(*args, **kwargs)

    def __enter__(self) -> Any:
        return self._ref_target().__enter__()

    def __exit__(self, *exc_info: Any) -> Any:
        return self._ref_target().__exit__(*exc_info)

    async def __aenter__(self) -> Any:
        return await self._ref_target().__aenter__()

    async def __aexit__(self, *exc_info: Any) -> Any:
        return await self._ref_target().__aexit__(*exc_info)
