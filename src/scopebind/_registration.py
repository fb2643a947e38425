from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from ._providers import ProviderKind


class _Empty(Enum):
    EMPTY = "empty"


# marks an empty instance cache; None is a valid instance
EMPTY = _Empty.EMPTY


class Lifetime(Enum):
    SINGLETON = "singleton"
    TRANSIENT = "transient"
    SCOPED = "scoped"


@dataclass(eq=False)
class Registration:
    """A stored provider for a token.

    Compared and hashed by identity: the resolver keys its per-resolution cache
    and its cycle detection on the registration object itself, so two
    registrations of the same token never collide.
    """

    token: Any
    provider: Any
    kind: ProviderKind
    lifetime: Lifetime = Lifetime.TRANSIENT
    instance: object = EMPTY  # cached singleton
    # filled from class metadata on first construction
    dependencies: list[Any] | None = None

    @property
    def has_instance(self) -> bool:
        return self.instance is not EMPTY

    def detach(self) -> object:
        """Empty the instance cache, returning what it held (or ``EMPTY``)."""
        instance, self.instance = self.instance, EMPTY
        return instance
