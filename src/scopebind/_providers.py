from __future__ import annotations

import inspect
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from ._errors import InvalidProviderError


if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

T = TypeVar("T")


class ProviderKind(Enum):
    VALUE = "value"
    CLASS = "class"
    FACTORY = "factory"
    CONSTRUCTOR = "constructor"
    TOKEN = "token"


@dataclass(frozen=True)
class ValueProvider(Generic[T]):
    value: T


@dataclass(frozen=True)
class ClassProvider(Generic[T]):
    """Instantiate ``cls``.

    ``dependencies`` overrides the tokens declared on the class itself.
    """

    cls: type[T]
    dependencies: Sequence[Any] | None = None


@dataclass(frozen=True)
class FactoryProvider(Generic[T]):
    """Call ``factory(container)`` on every resolution; may return an awaitable."""

    factory: Callable[..., Any]


@dataclass(frozen=True)
class TokenProvider:
    """Redirect resolution to another token."""

    token: Any


def is_provider(provider: object) -> bool:
    return isinstance(provider, (ValueProvider, ClassProvider, FactoryProvider, TokenProvider)) or inspect.isclass(
        provider
    )


def get_provider_kind(provider: object) -> ProviderKind:
    if isinstance(provider, ValueProvider):
        return ProviderKind.VALUE
    if isinstance(provider, ClassProvider):
        return ProviderKind.CLASS
    if isinstance(provider, FactoryProvider):
        return ProviderKind.FACTORY
    if isinstance(provider, TokenProvider):
        return ProviderKind.TOKEN
    if inspect.isclass(provider):
        return ProviderKind.CONSTRUCTOR

    msg = f"Invalid provider type: {provider!r}"
    raise InvalidProviderError(msg)
