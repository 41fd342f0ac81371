"""Combinators which wait on many futures and produce one

Each combinator takes an iterable of futures (plain values are treated as
already-fulfilled futures) and returns a single aggregate Future. Results are
always in input order, whatever order the inputs settle in.

None of these cancel anything; once the aggregate has settled, the remaining
inputs keep running, and their settlements are simply ignored.

"""
from __future__ import annotations
from pledge.errors import AggregateError
from pledge.future import Future
from pledge.outcome import Outcome, Value, Error
from pledge.scheduler import Scheduler
import functools
import logging
import typing as t

__all__ = [
    'all_of',
    'all_settled',
    'race',
    'any_of',
]

logger = logging.getLogger(__name__)

T = t.TypeVar('T')

def _lift(futures: t.Iterable[t.Any], scheduler: t.Optional[Scheduler]) -> t.List[Future[t.Any]]:
    return [Future.fulfilled(fut, scheduler) for fut in futures]

def all_of(futures: t.Iterable[t.Any], scheduler: t.Optional[Scheduler]=None) -> Future[t.List[t.Any]]:
    """Fulfill with every input's value, or reject with the first error.

    An empty input fulfills with an empty list.

    """
    inputs = _lift(futures, scheduler)
    aggregate: Future[t.List[t.Any]] = Future(scheduler)
    if not inputs:
        aggregate.set_result([])
        return aggregate
    results: t.List[t.Any] = [None]*len(inputs)
    remaining = len(inputs)
    def on_fulfilled(index: int, value: t.Any) -> None:
        nonlocal remaining
        results[index] = value
        remaining -= 1
        if remaining == 0:
            logger.debug("all_of: all %d inputs fulfilled", len(results))
            aggregate.set_result(results)
    for i, fut in enumerate(inputs):
        fut.register(functools.partial(on_fulfilled, i), aggregate.set_error)
    return aggregate

def all_settled(futures: t.Iterable[t.Any], scheduler: t.Optional[Scheduler]=None) -> Future[t.List[Outcome[t.Any]]]:
    """Fulfill with every input's outcome, once they have all settled.

    Each slot is a `pledge.outcome.Value` or `pledge.outcome.Error`. This never
    rejects. An empty input fulfills with an empty list.

    """
    inputs = _lift(futures, scheduler)
    aggregate: Future[t.List[Outcome[t.Any]]] = Future(scheduler)
    if not inputs:
        aggregate.set_result([])
        return aggregate
    results: t.List[t.Any] = [None]*len(inputs)
    remaining = len(inputs)
    def on_settled(index: int, result: Outcome[t.Any]) -> None:
        nonlocal remaining
        results[index] = result
        remaining -= 1
        if remaining == 0:
            aggregate.set_result(results)
    for i, fut in enumerate(inputs):
        fut.register(lambda value, i=i: on_settled(i, Value(value)),
                     lambda error, i=i: on_settled(i, Error(error)))
    return aggregate

def race(futures: t.Iterable[t.Any], scheduler: t.Optional[Scheduler]=None) -> Future[t.Any]:
    """Settle the same way as whichever input settles first.

    An empty input never settles.

    """
    inputs = _lift(futures, scheduler)
    aggregate: Future[t.Any] = Future(scheduler)
    for fut in inputs:
        fut.register(aggregate.set_result, aggregate.set_error)
    return aggregate

def any_of(futures: t.Iterable[t.Any], scheduler: t.Optional[Scheduler]=None) -> Future[t.Any]:
    """Fulfill with the first input to fulfill, ignoring rejections.

    If every input rejects, reject with an AggregateError holding their
    errors in input order. An empty input rejects with an empty AggregateError.

    """
    inputs = _lift(futures, scheduler)
    aggregate: Future[t.Any] = Future(scheduler)
    if not inputs:
        aggregate.set_error(AggregateError([]))
        return aggregate
    errors: t.List[t.Any] = [None]*len(inputs)
    remaining = len(inputs)
    def on_rejected(index: int, error: BaseException) -> None:
        nonlocal remaining
        errors[index] = error
        remaining -= 1
        if remaining == 0:
            logger.debug("any_of: all %d inputs rejected", len(errors))
            aggregate.set_error(AggregateError(errors))
    for i, fut in enumerate(inputs):
        fut.register(aggregate.set_result, functools.partial(on_rejected, i))
    return aggregate
