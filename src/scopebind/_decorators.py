"""Class decorators that attach dependency metadata.

They only describe a class; nothing is registered anywhere. The container reads
the metadata when the class is resolved, registered, or used as a provider:

    @singleton(Database, "settings")
    class Repository:
        def __init__(self, db, settings): ...

    repo = container.resolve(Repository)
"""

from __future__ import annotations

import inspect
from typing import TYPE_CHECKING, Any, TypeVar

from ._errors import InvalidDecoratorError
from ._metadata import INJECT_ATTR, LIFETIME_ATTR
from ._registration import Lifetime


if TYPE_CHECKING:
    from collections.abc import Callable

C = TypeVar("C", bound=type)


def injectable(*dependencies: Any, lifetime: Lifetime = Lifetime.TRANSIENT) -> Callable[[C], C]:
    """Declare the dependency tokens and lifetime of a class.

    Without dependencies the class keeps its ``__init__`` annotations as the
    source of its dependencies.
    """

    def decorator(cls: C) -> C:
        if not inspect.isclass(cls):
            raise InvalidDecoratorError(lifetime.value, cls)
        if dependencies:
            setattr(cls, INJECT_ATTR, list(dependencies))
        setattr(cls, LIFETIME_ATTR, lifetime)
        return cls

    return decorator


def singleton(*dependencies: Any) -> Callable[[C], C]:
    return injectable(*dependencies, lifetime=Lifetime.SINGLETON)


def transient(*dependencies: Any) -> Callable[[C], C]:
    return injectable(*dependencies, lifetime=Lifetime.TRANSIENT)


def scoped(*dependencies: Any) -> Callable[[C], C]:
    return injectable(*dependencies, lifetime=Lifetime.SCOPED)
