from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING, Any

from ._registration import EMPTY
from ._registry import Registry


if TYPE_CHECKING:
    from ._container import Container
    from ._registration import Registration


logger = logging.getLogger(__name__)


class Scope:
    """Cache for scoped registrations, e.g. one per request or per unit of work.

    Created with ``Container.create_scope()``. Every scoped registration resolved
    with this scope is built once and kept here until the scope is disposed:

        with container.create_scope() as scope:
            session = container.resolve(Session, scope)
    """

    def __init__(self, owner: Container, *, _from_parent: bool = False) -> None:
        if not _from_parent:
            msg = "Scope instances must be created via Container.create_scope()"
            raise RuntimeError(msg)
        self._owner = owner
        self.services = Registry()
        self._entries: dict[Registration, Registration] = {}

    def get(self, registration: Registration) -> object:
        """Cached instance for ``registration``, or ``EMPTY``."""
        entry = self._entries.get(registration)
        return entry.instance if entry is not None else EMPTY

    def store(self, registration: Registration, instance: object) -> None:
        entry = dataclasses.replace(registration, instance=instance)
        self._entries[registration] = entry
        self.services.set(registration.token, entry)

    def dispose(self) -> None:
        self.services.dispose()
        self._entries.clear()

    async def dispose_async(self) -> None:
        self._entries.clear()
        await self.services.dispose_async()

    def __len__(self) -> int:
        return len(self._entries)

    def __enter__(self) -> Scope:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self._owner.dispose_scope(self)

    async def __aenter__(self) -> Scope:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self._owner.dispose_scope_async(self)
