from __future__ import annotations

import inspect
import logging
from typing import (
    TYPE_CHECKING,
    Any,
    ParamSpec,
    TypeVar,
    overload,
)

from ._disposal import ensure_sync_releasable, release, release_async
from ._errors import InvalidProviderError, InvalidRegistrationTargetError, RegistrationCycleError, TokenNotFoundError
from ._metadata import declared_lifetime
from ._providers import FactoryProvider, ProviderKind, TokenProvider, ValueProvider, get_provider_kind
from ._registration import Lifetime, Registration
from ._registry import Registry
from ._resolver import Resolver
from ._scope import Scope
from ._tokens import is_token


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from ._providers import ClassProvider
    from ._tokens import InterfaceId

    T = TypeVar("T")
    # Parameter spec for factories
    P = ParamSpec("P")

    InjectionToken = type[T] | InterfaceId[T] | str | Any


class Container:
    """Dependency injection container.

    - register classes, factories, values or aliases for a token
    - resolve with constructor injection, sync or async
    - lifetimes: singleton / transient / scoped
    - child containers that fall back to their parent.

    There is no global container: create one at startup and pass it around.
    Use it as a context manager to release cached instances on exit.
    """

    def __init__(self, parent: Container | None = None) -> None:
        self._registry = Registry()
        self._parent = parent
        self._scopes: set[Scope] = set()
        # unregistered classes declaring a singleton/scoped lifetime, kept on the root
        self.implicit = Registry()
        self._resolver = Resolver(self)

    @property
    def parent(self) -> Container | None:
        return self._parent

    @property
    def root(self) -> Container:
        container = self
        while container._parent is not None:
            container = container._parent
        return container

    @property
    def scopes(self) -> set[Scope]:
        return set(self._scopes)

    # -- registration ------------------------------------------------------

    @overload
    def register(
        self,
        token: type[T] | InterfaceId[T],
        provider: type[T] | ClassProvider[T] | ValueProvider[T] | TokenProvider,
        *,
        lifetime: Lifetime | None = ...,
    ) -> None: ...

    @overload
    def register(
        self,
        token: type[T] | InterfaceId[T],
        provider: None = ...,
        *,
        factory: Callable[P, T],
        lifetime: Lifetime | None = ...,
    ) -> None: ...

    @overload
    def register(
        self,
        token: InjectionToken[Any],
        provider: Any = ...,
        *,
        factory: Callable[..., Any] | None = ...,
        lifetime: Lifetime | None = ...,
    ) -> None: ...

    def register(
        self,
        token: InjectionToken[T],
        provider: Any = None,
        *,
        factory: Callable[..., Any] | None = None,
        lifetime: Lifetime | None = None,
    ) -> None:
        """Register a provider for a token.

        Example:
          container.register(IFoo, FooImpl)
          container.register("db", factory=create_db, lifetime=Lifetime.SINGLETON)
          container.register("config", ValueProvider(config))

        Without an explicit lifetime, a class provider uses the lifetime declared
        on the class (``__lifetime__``) and everything else is transient.
        """
        if provider is not None and factory is not None:
            msg = "Provide either `provider` or `factory`, not both."
            raise InvalidProviderError(msg)

        if provider is None and factory is None:
            msg = "Either `provider` or `factory` must be provided."
            raise InvalidProviderError(msg)

        if factory is not None:
            provider = FactoryProvider(factory)

        self._validate_token(token)
        kind = get_provider_kind(provider)
        self._validate_provider(token, provider, kind)

        if lifetime is None:
            lifetime = self._default_lifetime(provider, kind)

        self._registry.set(token, Registration(token=token, provider=provider, kind=kind, lifetime=lifetime))
        logger.debug("Registered %r (%s, %s)", token, kind.value, lifetime.value)

    def register_instance(self, token: InjectionToken[T], instance: object) -> None:
        """Register a pre-built value; resolving the token always returns it."""
        self.register(token, ValueProvider(instance))

    def register_type(self, token: InjectionToken[Any], target: InjectionToken[Any]) -> None:
        """Make ``token`` resolve whatever ``target`` resolves to."""
        self.register(token, TokenProvider(target))

    def is_registered(self, token: InjectionToken[Any], *, recursive: bool = False) -> bool:
        if self._registry.has(token):
            return True
        return recursive and self._parent is not None and self._parent.is_registered(token, recursive=True)

    def lookup(self, token: InjectionToken[Any]) -> Registration | None:
        """Active registration for ``token`` here or in the closest ancestor that has one."""
        container: Container | None = self
        while container is not None:
            registration = container._registry.get(token)
            if registration is not None:
                return registration
            container = container._parent
        return None

    def lookup_all(self, token: InjectionToken[Any]) -> list[Registration]:
        container: Container | None = self
        while container is not None:
            registrations = container._registry.get_all(token)
            if registrations:
                return registrations
            container = container._parent
        return []

    def _validate_token(self, token: object) -> None:
        if not is_token(token):
            msg = f"Invalid token {token!r}: expected a string, a Token or a class"
            raise InvalidRegistrationTargetError(msg)

    def _validate_provider(self, token: Any, provider: Any, kind: ProviderKind) -> None:
        if kind is ProviderKind.CLASS and not inspect.isclass(provider.cls):
            msg = f"ClassProvider for {token!r} expects a class, got {provider.cls!r}"
            raise InvalidProviderError(msg)

        if kind is ProviderKind.FACTORY and not callable(provider.factory):
            msg = f"FactoryProvider for {token!r} expects a callable, got {provider.factory!r}"
            raise InvalidProviderError(msg)

        if kind is ProviderKind.TOKEN:
            self._validate_token(provider.token)
            self._check_alias_cycle(token, provider.token)

    def _check_alias_cycle(self, token: Any, target: Any) -> None:
        """Walk the alias chain starting at ``target`` and fail if it leads back to ``token``."""
        path = [token, target]
        current = target
        while True:
            if current == token:
                raise RegistrationCycleError(path)
            registration = self.lookup(current)
            if registration is None or registration.kind is not ProviderKind.TOKEN:
                return
            current = registration.provider.token
            if current in path[1:]:
                # an existing loop not involving `token`
                return
            path.append(current)

    def _default_lifetime(self, provider: Any, kind: ProviderKind) -> Lifetime:
        if kind is ProviderKind.CLASS:
            return declared_lifetime(provider.cls) or Lifetime.TRANSIENT
        if kind is ProviderKind.CONSTRUCTOR:
            return declared_lifetime(provider) or Lifetime.TRANSIENT
        return Lifetime.TRANSIENT

    # -- resolution --------------------------------------------------------

    @overload
    def resolve(self, token: type[T], scope: Scope | None = ...) -> T: ...

    @overload
    def resolve(self, token: InterfaceId[T], scope: Scope | None = ...) -> T: ...

    @overload
    def resolve(self, token: str, scope: Scope | None = ...) -> Any: ...

    def resolve(self, token: InjectionToken[T], scope: Scope | None = None) -> Any:
        """Resolve the token to an instance.

        - If a registration exists here or in a parent container: use the latest one.
        - If no registration and token is a class: construct it, injecting the
          dependencies it declares (or its ``__init__`` annotations).
        Scoped registrations need ``scope``.
        """
        return self._resolver.resolve(token, scope)

    async def resolve_async(self, token: InjectionToken[T], scope: Scope | None = None) -> Any:
        """Like ``resolve`` but awaits async factories and their dependencies."""
        return await self._resolver.resolve_async(token, scope)

    def resolve_all(self, token: InjectionToken[T], scope: Scope | None = None) -> list[Any]:
        """Resolve every registration of ``token``, in registration order."""
        return self._resolver.resolve_all(token, scope)

    async def resolve_all_async(self, token: InjectionToken[T], scope: Scope | None = None) -> list[Any]:
        return await self._resolver.resolve_all_async(token, scope)

    def resolve_with_args(
        self,
        token: InjectionToken[T],
        args: Sequence[Any] = (),
        scope: Scope | None = None,
    ) -> Any:
        """Build a fresh instance with ``args`` as leading constructor arguments.

        The remaining trailing parameters are injected. The instance is never
        cached, whatever the registration lifetime.
        """
        return self._resolver.resolve_with_args(token, args, scope)

    async def resolve_with_args_async(
        self,
        token: InjectionToken[T],
        args: Sequence[Any] = (),
        scope: Scope | None = None,
    ) -> Any:
        return await self._resolver.resolve_with_args_async(token, args, scope)

    # -- scopes & children -------------------------------------------------

    def create_scope(self) -> Scope:
        scope = Scope(self, _from_parent=True)
        self._scopes.add(scope)
        logger.debug("Created scope %#x (%d live)", id(scope), len(self._scopes))
        return scope

    def dispose_scope(self, scope: Scope) -> None:
        scope.dispose()
        self._scopes.discard(scope)
        logger.debug("Disposed scope %#x", id(scope))

    async def dispose_scope_async(self, scope: Scope) -> None:
        await scope.dispose_async()
        self._scopes.discard(scope)
        logger.debug("Disposed scope %#x", id(scope))

    def create_child_container(self) -> Container:
        """Create a container that resolves from its own registrations first, then from this one."""
        return Container(parent=self)

    # -- teardown ----------------------------------------------------------

    def remove_registration(
        self,
        token: InjectionToken[Any],
        predicate: Callable[[Registration], bool] | None = None,
    ) -> None:
        """Remove the registrations of ``token`` matching ``predicate`` (all by default), releasing their instances."""
        removed = self._matching(token, predicate)
        ensure_sync_releasable(r.instance for r in removed if r.has_instance)
        self._registry.remove_matching(token, lambda r: r in removed)
        release(_detach(removed))

    async def remove_registration_async(
        self,
        token: InjectionToken[Any],
        predicate: Callable[[Registration], bool] | None = None,
    ) -> None:
        removed = self._matching(token, predicate)
        self._registry.remove_matching(token, lambda r: r in removed)
        await release_async(_detach(removed))

    def _matching(
        self,
        token: InjectionToken[Any],
        predicate: Callable[[Registration], bool] | None,
    ) -> list[Registration]:
        if not self._registry.has(token):
            raise TokenNotFoundError(token)
        return [r for r in self._registry.get_all(token) if predicate is None or predicate(r)]

    def clear_instances(self) -> None:
        """Drop cached singletons, releasing them; registrations stay, so the next resolve builds new ones."""
        singletons = self._singleton_registrations()
        ensure_sync_releasable(r.instance for r in singletons)
        release(_detach(singletons))

    async def clear_instances_async(self) -> None:
        await release_async(_detach(self._singleton_registrations()))

    def _singleton_registrations(self) -> list[Registration]:
        return [
            r
            for registry in (self._registry, self.implicit)
            for r in registry.registrations()
            if r.lifetime is Lifetime.SINGLETON and r.has_instance
        ]

    def reset(self) -> None:
        """Dispose every scope created here and drop all registrations and cached instances."""
        scopes = list(self._scopes)
        ensure_sync_releasable(
            r.instance
            for registry in (self._registry, self.implicit, *(s.services for s in scopes))
            for r in registry.registrations()
            if r.has_instance
        )
        for scope in scopes:
            self.dispose_scope(scope)
        self._registry.dispose()
        self.implicit.dispose()

    async def reset_async(self) -> None:
        for scope in list(self._scopes):
            await self.dispose_scope_async(scope)
        await self._registry.dispose_async()
        await self.implicit.dispose_async()

    def __enter__(self) -> Container:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.reset()

    async def __aenter__(self) -> Container:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.reset_async()


def _detach(registrations: Iterable[Registration]) -> list[object]:
    return [r.detach() for r in registrations if r.has_instance]
