from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ._disposal import ensure_sync_releasable, release, release_async


if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from ._registration import Registration


class Registry:
    """Ordered multi-map from token to registrations.

    The last registration stored for a token is the active one; ``get_all``
    returns every registration in insertion order.
    """

    def __init__(self) -> None:
        self._services: dict[Any, list[Registration]] = {}

    def get(self, token: Any) -> Registration | None:
        registrations = self._services.get(token)
        return registrations[-1] if registrations else None

    def get_all(self, token: Any) -> list[Registration]:
        return list(self._services.get(token, ()))

    def set(self, token: Any, registration: Registration) -> None:
        self._services.setdefault(token, []).append(registration)

    def set_all(self, token: Any, registrations: list[Registration]) -> None:
        if registrations:
            self._services[token] = list(registrations)
        else:
            self._services.pop(token, None)

    def has(self, token: Any) -> bool:
        return bool(self._services.get(token))

    def remove_all(self, token: Any) -> list[Registration]:
        return self._services.pop(token, [])

    def remove_matching(self, token: Any, predicate: Callable[[Registration], bool]) -> list[Registration]:
        removed: list[Registration] = []
        kept: list[Registration] = []
        for registration in self._services.get(token, []):
            (removed if predicate(registration) else kept).append(registration)
        self.set_all(token, kept)
        return removed

    def clear(self) -> None:
        self._services.clear()

    def tokens(self) -> list[Any]:
        return list(self._services)

    def items(self) -> Iterator[tuple[Any, list[Registration]]]:
        for token, registrations in list(self._services.items()):
            yield token, list(registrations)

    def registrations(self) -> Iterator[Registration]:
        for registrations in list(self._services.values()):
            yield from registrations

    def detach_instances(self, predicate: Callable[[Registration], bool] | None = None) -> list[object]:
        """Drop cached instances (registrations stay) and return them for release."""
        detached = []
        for registration in self.registrations():
            if not registration.has_instance:
                continue
            if predicate is not None and not predicate(registration):
                continue
            detached.append(registration.detach())
        return detached

    def dispose(self) -> None:
        ensure_sync_releasable(r.instance for r in self.registrations() if r.has_instance)
        instances = self.detach_instances()
        self.clear()
        release(instances)

    async def dispose_async(self) -> None:
        instances = self.detach_instances()
        self.clear()
        await release_async(instances)

    def __contains__(self, token: Any) -> bool:
        return self.has(token)

    def __len__(self) -> int:
        return len(self._services)
