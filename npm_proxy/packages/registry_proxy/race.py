"""First-success racing over concurrent awaitables."""

import asyncio
from typing import Awaitable, Callable, Iterable, Optional, TypeVar

from .types import RaceResult

T = TypeVar("T")


async def first_successful(
    awaitables: Iterable[Awaitable[T]],
    predicate: Callable[[T], bool],
    result: Optional[RaceResult[T]] = None,
) -> RaceResult[T]:
    """Run ``awaitables`` concurrently and return the first outcome that
    satisfies ``predicate``.

    Outcomes that do not satisfy the predicate are collected as failures
    rather than stopping the race. When no outcome qualifies the result has
    no winner and lists every outcome. Once a winner is found the remaining
    awaitables are cancelled; any of them that had already finished are
    appended to the failures so the caller can release them.

    Exceptions raised by an awaitable are not failures: they cancel the rest
    of the race and propagate. Pass ``result`` to keep hold of the outcomes
    that settled before the race was aborted (by such an exception or by
    cancellation of the caller).
    """
    pending = {asyncio.ensure_future(aw) for aw in awaitables}
    if result is None:
        result = RaceResult()

    try:
        while pending and result.winner is None:
            done, pending = await asyncio.wait(
                pending, return_when=asyncio.FIRST_COMPLETED
            )
            errors = []
            for task in done:
                try:
                    outcome = task.result()
                except Exception as e:
                    errors.append(e)
                    continue
                if result.winner is None and predicate(outcome):
                    result.winner = outcome
                else:
                    result.failures.append(outcome)
            if errors:
                raise errors[0]
    finally:
        for task in pending:
            task.cancel()
        if pending:
            late = await asyncio.gather(*pending, return_exceptions=True)
            result.failures.extend(
                outcome for outcome in late if not isinstance(outcome, BaseException)
            )

    return result
