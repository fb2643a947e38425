"""Release of cached instances.

Instances opt into release by subclassing (or registering with) one of the two
capability ABCs below. The container never probes arbitrary attributes:
an object with a ``close`` method that is not a ``Disposable`` is left alone.
"""

from __future__ import annotations

import abc
import asyncio
import logging
from typing import TYPE_CHECKING

from ._errors import AsyncDisposalError


if TYPE_CHECKING:
    from collections.abc import Iterable


logger = logging.getLogger(__name__)


class Disposable(abc.ABC):
    @abc.abstractmethod
    def close(self) -> None: ...


class AsyncDisposable(abc.ABC):
    @abc.abstractmethod
    async def aclose(self) -> None: ...


def _unique(instances: Iterable[object]) -> list[object]:
    seen: set[int] = set()
    unique = []
    for instance in instances:
        if instance is None or id(instance) in seen:
            continue
        seen.add(id(instance))
        unique.append(instance)
    return unique


def ensure_sync_releasable(instances: Iterable[object]) -> None:
    async_only = [i for i in instances if isinstance(i, AsyncDisposable) and not isinstance(i, Disposable)]
    if async_only:
        names = ", ".join(type(i).__name__ for i in async_only)
        msg = f"Instances of {names} only support asynchronous release; use the *_async variant"
        raise AsyncDisposalError(msg)


def release(instances: Iterable[object]) -> None:
    """Synchronously release instances.

    Fails before releasing anything when one of them can only be released
    asynchronously.
    """
    pending = _unique(instances)
    ensure_sync_releasable(pending)

    for instance in pending:
        if isinstance(instance, Disposable):
            logger.debug("Releasing %s", type(instance).__name__)
            instance.close()


async def release_async(instances: Iterable[object]) -> None:
    """Release instances, awaiting every asynchronous release before the synchronous ones run."""
    pending = _unique(instances)

    async_disposables = [i for i in pending if isinstance(i, AsyncDisposable)]
    disposables = [i for i in pending if isinstance(i, Disposable) and not isinstance(i, AsyncDisposable)]

    if async_disposables:
        logger.debug("Releasing %d instance(s) asynchronously", len(async_disposables))
        results = await asyncio.gather(*(i.aclose() for i in async_disposables), return_exceptions=True)
        for result in results:
            if isinstance(result, BaseException):
                raise result

    for instance in disposables:
        logger.debug("Releasing %s", type(instance).__name__)
        instance.close()
