from __future__ import annotations

import inspect
from typing import Any, Generic, TypeVar


T = TypeVar("T")


class Token:
    """Explicit token object.

    Compared by identity, so two ``Token("db")`` objects are different tokens.
    The name only shows up in ``repr`` and error messages.
    """

    __slots__ = ("name",)

    def __init__(self, name: str | None = None) -> None:
        self.name = name

    def __repr__(self) -> str:
        return f"Token({self.name!r})" if self.name is not None else f"Token(<anonymous {id(self):#x}>)"


class InterfaceId(str, Generic[T]):
    """A string token that carries the interface type it stands for.

    ``IRepo: InterfaceId[Repo] = create_interface_id("IRepo")`` lets type checkers
    know what ``container.resolve(IRepo)`` returns while still comparing equal to
    the plain string ``"IRepo"`` at runtime.
    """

    def __repr__(self) -> str:
        return f"InterfaceId({str.__repr__(self)})"


def create_interface_id(name: str) -> InterfaceId[Any]:
    return InterfaceId(name)


def is_token(value: object) -> bool:
    return isinstance(value, (str, Token)) or inspect.isclass(value)
