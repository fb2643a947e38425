from __future__ import annotations


class ResolutionError(RuntimeError):
    pass


class TokenNotFoundError(ResolutionError, KeyError):
    """Nothing is registered for a token anywhere in the container chain."""

    def __init__(self, token: object) -> None:
        self.token = token
        super().__init__(f"No registration found for token: {token!r}")

    def __str__(self) -> str:
        # KeyError would repr() the message
        return RuntimeError.__str__(self)


class UndefinedScopeError(ResolutionError):
    def __init__(self, token: object) -> None:
        self.token = token
        super().__init__(f"Token {token!r} is registered as scoped but was resolved without a scope")


class CircularDependencyError(ResolutionError):
    pass


class AsyncProviderError(ResolutionError):
    pass


class RegistrationCycleError(ValueError):
    def __init__(self, path: list[object]) -> None:
        self.path = path
        chain = " -> ".join(repr(t) for t in path)
        super().__init__(f"Token registration cycle detected: {chain}")


class InvalidProviderError(ValueError):
    pass


class InvalidRegistrationTargetError(TypeError):
    pass


class InvalidDecoratorError(TypeError):
    def __init__(self, decorator: str, target: object, message: str = "can only be used on a class") -> None:
        name = getattr(target, "__qualname__", repr(target))
        super().__init__(f"Decorator '{decorator}' found on '{name}' {message}.")


class AsyncDisposalError(RuntimeError):
    pass
