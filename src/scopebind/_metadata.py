"""Dependency metadata read from classes.

A class describes itself to the container with two optional class attributes:

- ``__inject__``: ordered dependency tokens, one per trailing constructor parameter;
- ``__lifetime__``: the ``Lifetime`` used when the class is resolved without
  being registered.

Without ``__inject__`` the dependencies come from the required positional
parameters of ``__init__``: a parameter annotated with a (non-builtin) class is
resolved by that class, any other parameter by its name.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, get_type_hints


if TYPE_CHECKING:
    from ._registration import Lifetime


logger = logging.getLogger(__name__)

INJECT_ATTR = "__inject__"
LIFETIME_ATTR = "__lifetime__"


@dataclass(frozen=True)
class All:
    """Dependency marker: inject every registration of ``token`` as a list."""

    token: Any


def declared_lifetime(cls: type) -> Lifetime | None:
    return getattr(cls, LIFETIME_ATTR, None)


def declares_dependencies(cls: type) -> bool:
    return getattr(cls, INJECT_ATTR, None) is not None


def dependencies_of(cls: type) -> list[Any]:
    declared = getattr(cls, INJECT_ATTR, None)
    if declared is not None:
        return list(declared)

    hints = _get_init_type_hints(cls)
    dependencies: list[Any] = []
    for p in positional_parameters(cls):
        if p.default is not inspect.Parameter.empty:
            break

        ann = hints.get(p.name, inspect.Signature.empty)
        if inspect.isclass(ann) and getattr(ann, "__module__", "") != "builtins":
            dependencies.append(ann)
        else:
            # name-based
            dependencies.append(p.name)
    return dependencies


def positional_parameters(cls: type) -> list[inspect.Parameter]:
    return [
        p
        for p in _init_parameters(cls)
        if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    ]


def required_keyword_only(cls: type) -> list[str]:
    """Names of keyword-only ``__init__`` parameters without a default."""
    return [
        p.name
        for p in _init_parameters(cls)
        if p.kind is inspect.Parameter.KEYWORD_ONLY and p.default is inspect.Parameter.empty
    ]


def _init_parameters(cls: type) -> list[inspect.Parameter]:
    if cls.__init__ is object.__init__:
        return []

    try:
        sig = inspect.signature(cls)
    except (TypeError, ValueError):
        return []

    return list(sig.parameters.values())


def _get_init_type_hints(cls: type) -> dict[str, Any]:
    try:
        init = inspect.getattr_static(cls, "__init__")
        hints = get_type_hints(init)
    except TypeError:
        hints = {}
    except NameError as exc:
        logger.warning("'%s' name error retrieving %s (%s) type hints", exc.name, cls.__name__, cls.__qualname__)
        hints = {}

    return hints
