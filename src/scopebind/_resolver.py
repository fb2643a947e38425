from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING, Any

from ._errors import AsyncProviderError, InvalidProviderError, TokenNotFoundError, UndefinedScopeError
from ._metadata import (
    All,
    declared_lifetime,
    declares_dependencies,
    dependencies_of,
    positional_parameters,
    required_keyword_only,
)
from ._providers import ProviderKind
from ._registration import EMPTY, Lifetime, Registration
from ._resolution import ResolutionContext, resolution_context


if TYPE_CHECKING:
    from collections.abc import Sequence

    from ._container import Container
    from ._scope import Scope


logger = logging.getLogger(__name__)

_MISS = object()


class Resolver:
    """Builds instances for one container.

    ``resolve*`` are the synchronous path, ``resolve*_async`` the asynchronous one.
    Both share lookup, caching and cycle handling; they only differ in how a
    factory result and a dependency are obtained.
    """

    def __init__(self, container: Container) -> None:
        self._container = container

    # -- lookup ------------------------------------------------------------

    def registration_for(self, token: Any, context: ResolutionContext) -> Registration:
        registration = self._container.lookup(token)
        if registration is not None:
            return registration
        if inspect.isclass(token):
            return self._implicit_registration(token, context)
        raise TokenNotFoundError(token)

    def registrations_for(self, token: Any, context: ResolutionContext) -> list[Registration]:
        registrations = self._container.lookup_all(token)
        if registrations:
            return registrations
        if inspect.isclass(token):
            return [self._implicit_registration(token, context)]
        raise TokenNotFoundError(token)

    def _implicit_registration(self, cls: type, context: ResolutionContext) -> Registration:
        lifetime = declared_lifetime(cls) or Lifetime.TRANSIENT

        # transient ones only live as long as the resolution, the others are kept at the root
        if lifetime is Lifetime.TRANSIENT:
            registration = context.implicit.get(cls)
            if registration is None:
                registration = context.implicit[cls] = self._constructor_registration(cls, lifetime)
            return registration

        root = self._container.root
        registration = root.implicit.get(cls)
        if registration is None:
            registration = self._constructor_registration(cls, lifetime)
            root.implicit.set(cls, registration)
        return registration

    def _constructor_registration(self, cls: type, lifetime: Lifetime) -> Registration:
        logger.debug("Constructing unregistered class %s (%s)", cls.__qualname__, lifetime.value)
        return Registration(token=cls, provider=cls, kind=ProviderKind.CONSTRUCTOR, lifetime=lifetime)

    # -- shared steps ------------------------------------------------------

    def _cached(self, registration: Registration, scope: Scope | None, context: ResolutionContext) -> Any:
        if registration.kind is ProviderKind.VALUE:
            return registration.provider.value

        if registration.lifetime is Lifetime.SINGLETON and registration.has_instance:
            return registration.instance

        if registration.lifetime is Lifetime.SCOPED:
            if scope is None:
                raise UndefinedScopeError(registration.token)
            instance = scope.get(registration)
            if instance is not EMPTY:
                return instance

        if registration in context.instances:
            return context.instances[registration]

        if context.is_resolving(registration):
            return context.defer(registration)

        return _MISS

    def _store(
        self,
        registration: Registration,
        instance: object,
        scope: Scope | None,
        context: ResolutionContext,
    ) -> None:
        context.instances[registration] = instance
        if registration.lifetime is Lifetime.SINGLETON:
            registration.instance = instance
        elif registration.lifetime is Lifetime.SCOPED and scope is not None:
            scope.store(registration, instance)

    def _class_of(self, registration: Registration) -> type:
        if registration.kind is ProviderKind.CLASS:
            return registration.provider.cls
        if registration.kind is ProviderKind.CONSTRUCTOR:
            return registration.provider
        msg = f"Token {registration.token!r} is registered with a {registration.kind.value} provider, not a class"
        raise InvalidProviderError(msg)

    def _dependencies(self, registration: Registration) -> list[Any]:
        if registration.dependencies is None:
            cls = self._class_of(registration)
            missing = required_keyword_only(cls)
            if missing:
                msg = (
                    f"{cls.__qualname__} has keyword-only parameters without defaults "
                    f"({', '.join(missing)}); only positional parameters are injected"
                )
                raise InvalidProviderError(msg)

            provider = registration.provider
            if registration.kind is ProviderKind.CLASS and provider.dependencies is not None:
                registration.dependencies = list(provider.dependencies)
            else:
                registration.dependencies = dependencies_of(cls)
        return registration.dependencies

    def _trailing_dependencies(self, registration: Registration, supplied: int) -> list[Any]:
        """Dependencies left to inject after ``supplied`` leading positional arguments."""
        dependencies = self._dependencies(registration)
        if not supplied:
            return dependencies
        if not self._declares_dependencies(registration):
            # derived from the leading required parameters, the supplied ones come first
            return dependencies[supplied:]
        leading = max(len(positional_parameters(self._class_of(registration))) - len(dependencies), 0)
        return dependencies[max(supplied - leading, 0) :]

    def _declares_dependencies(self, registration: Registration) -> bool:
        if registration.kind is ProviderKind.CLASS and registration.provider.dependencies is not None:
            return True
        return declares_dependencies(self._class_of(registration))

    def _call_factory(self, registration: Registration) -> Any:
        return registration.provider.factory(self._container)

    # -- sync path ---------------------------------------------------------

    def resolve(self, token: Any, scope: Scope | None = None) -> Any:
        with resolution_context() as context:
            return self._resolve_token(token, scope, context)

    def resolve_all(self, token: Any, scope: Scope | None = None) -> list[Any]:
        with resolution_context() as context:
            return self._resolve_all(token, scope, context)

    def resolve_with_args(self, token: Any, args: Sequence[Any] = (), scope: Scope | None = None) -> Any:
        with resolution_context() as context:
            registration = self.registration_for(token, context)
            cls = self._class_of(registration)
            with context.constructing(registration):
                injected = [
                    self._resolve_token(dependency, scope, context)
                    for dependency in self._trailing_dependencies(registration, len(args))
                ]
                instance = cls(*args, *injected)
            context.instances.setdefault(registration, instance)
            return instance

    def _resolve_token(self, token: Any, scope: Scope | None, context: ResolutionContext) -> Any:
        if isinstance(token, All):
            return self._resolve_all(token.token, scope, context)
        registration = self.registration_for(token, context)
        return self._resolve_registration(registration, scope, context)

    def _resolve_all(self, token: Any, scope: Scope | None, context: ResolutionContext) -> list[Any]:
        return [
            self._resolve_registration(registration, scope, context)
            for registration in self.registrations_for(token, context)
        ]

    def _resolve_registration(self, registration: Registration, scope: Scope | None, context: ResolutionContext) -> Any:
        instance = self._cached(registration, scope, context)
        if instance is not _MISS:
            return instance

        with context.constructing(registration):
            instance = self._construct(registration, scope, context)

        self._store(registration, instance, scope, context)
        return instance

    def _construct(self, registration: Registration, scope: Scope | None, context: ResolutionContext) -> Any:
        if registration.kind is ProviderKind.TOKEN:
            return self._resolve_token(registration.provider.token, scope, context)

        if registration.kind is ProviderKind.FACTORY:
            result = self._call_factory(registration)
            if inspect.isawaitable(result):
                if inspect.iscoroutine(result):
                    result.close()
                msg = (
                    f"Factory for {registration.token!r} returned an awaitable; "
                    "resolve it with resolve_async() instead of resolve()"
                )
                raise AsyncProviderError(msg)
            return result

        cls = self._class_of(registration)
        args = [self._resolve_token(dependency, scope, context) for dependency in self._dependencies(registration)]
        return cls(*args)

    # -- async path --------------------------------------------------------

    async def resolve_async(self, token: Any, scope: Scope | None = None) -> Any:
        with resolution_context() as context:
            return await self._resolve_token_async(token, scope, context)

    async def resolve_all_async(self, token: Any, scope: Scope | None = None) -> list[Any]:
        with resolution_context() as context:
            return await self._resolve_all_async(token, scope, context)

    async def resolve_with_args_async(
        self,
        token: Any,
        args: Sequence[Any] = (),
        scope: Scope | None = None,
    ) -> Any:
        with resolution_context() as context:
            registration = self.registration_for(token, context)
            cls = self._class_of(registration)
            with context.constructing(registration):
                injected = []
                for dependency in self._trailing_dependencies(registration, len(args)):
                    injected.append(await self._resolve_token_async(dependency, scope, context))
                instance = cls(*args, *injected)
            context.instances.setdefault(registration, instance)
            return instance

    async def _resolve_token_async(self, token: Any, scope: Scope | None, context: ResolutionContext) -> Any:
        if isinstance(token, All):
            return await self._resolve_all_async(token.token, scope, context)
        registration = self.registration_for(token, context)
        return await self._resolve_registration_async(registration, scope, context)

    async def _resolve_all_async(self, token: Any, scope: Scope | None, context: ResolutionContext) -> list[Any]:
        instances = []
        for registration in self.registrations_for(token, context):
            instances.append(await self._resolve_registration_async(registration, scope, context))
        return instances

    async def _resolve_registration_async(
        self,
        registration: Registration,
        scope: Scope | None,
        context: ResolutionContext,
    ) -> Any:
        instance = self._cached(registration, scope, context)
        if instance is not _MISS:
            return instance

        with context.constructing(registration):
            instance = await self._construct_async(registration, scope, context)

        self._store(registration, instance, scope, context)
        return instance

    async def _construct_async(self, registration: Registration, scope: Scope | None, context: ResolutionContext) -> Any:
        if registration.kind is ProviderKind.TOKEN:
            return await self._resolve_token_async(registration.provider.token, scope, context)

        if registration.kind is ProviderKind.FACTORY:
            result = self._call_factory(registration)
            if inspect.isawaitable(result):
                result = await result
            return result

        cls = self._class_of(registration)
        # one at a time, in declaration order
        args = []
        for dependency in self._dependencies(registration):
            args.append(await self._resolve_token_async(dependency, scope, context))
        return cls(*args)
