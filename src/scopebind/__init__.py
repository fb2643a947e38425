"""Dependency injection container with lifetimes, scopes and cycle-tolerant resolution.

This package lets you register classes, factories, values and aliases for
tokens, then resolve them with their dependency graphs injected, synchronously
or asynchronously.

Exports:
- `Container`: registration and resolution, child containers, scopes, teardown.
- `Lifetime`: singleton, transient or scoped caching of resolved instances.
- `Scope`: per-request (or per unit of work) cache of scoped instances.
- Providers (`ValueProvider`, `ClassProvider`, `FactoryProvider`, `TokenProvider`)
  and tokens (`Token`, `create_interface_id`).
- Class decorators (`injectable`, `singleton`, `transient`, `scoped`) and the
  `All` dependency marker.
- `Disposable` / `AsyncDisposable`: opt-in release of cached instances.
"""

from ._container import Container
from ._decorators import injectable, scoped, singleton, transient
from ._disposal import AsyncDisposable, Disposable
from ._errors import (
    AsyncDisposalError,
    AsyncProviderError,
    CircularDependencyError,
    InvalidDecoratorError,
    InvalidProviderError,
    InvalidRegistrationTargetError,
    RegistrationCycleError,
    ResolutionError,
    TokenNotFoundError,
    UndefinedScopeError,
)
from ._metadata import All
from ._providers import ClassProvider, FactoryProvider, ProviderKind, TokenProvider, ValueProvider
from ._registration import Lifetime, Registration
from ._registry import Registry
from ._resolution import DeferredReference
from ._scope import Scope
from ._tokens import InterfaceId, Token, create_interface_id


__all__ = [
    "All",
    "AsyncDisposable",
    "AsyncDisposalError",
    "AsyncProviderError",
    "CircularDependencyError",
    "ClassProvider",
    "Container",
    "DeferredReference",
    "Disposable",
    "FactoryProvider",
    "InterfaceId",
    "InvalidDecoratorError",
    "InvalidProviderError",
    "InvalidRegistrationTargetError",
    "Lifetime",
    "ProviderKind",
    "Registration",
    "RegistrationCycleError",
    "Registry",
    "ResolutionError",
    "Scope",
    "Token",
    "TokenNotFoundError",
    "TokenProvider",
    "UndefinedScopeError",
    "ValueProvider",
    "create_interface_id",
    "injectable",
    "scoped",
    "singleton",
    "transient",
]
