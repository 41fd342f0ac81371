"""Just the outcome library, with a State tag for settled results

A settled Future holds an `Outcome`: `Value(value)` if it was fulfilled, or
`Error(error)` if it was rejected. These are the tagged results produced by
`pledge.combinators.all_settled`, and `status_of` recovers the tag.

Note that an outcome from the `outcome` library can only be unwrapped once;
we never unwrap an Outcome that belongs to a Future, we hand out fresh ones.

"""
from __future__ import annotations
from outcome import Outcome, Value, Error, acapture
import enum
import typing as t

__all__ = [
    'Outcome',
    'Value',
    'Error',
    'State',
    'status_of',
    'acapture',
]

T = t.TypeVar('T')

class State(enum.Enum):
    "Where a Future is in its pending -> fulfilled | rejected lifecycle"
    PENDING = "pending"
    FULFILLED = "fulfilled"
    REJECTED = "rejected"

def status_of(result: t.Optional[Outcome[T]]) -> State:
    "Return the State tag for this outcome; None means we haven't settled yet."
    if result is None:
        return State.PENDING
    elif isinstance(result, Value):
        return State.FULFILLED
    else:
        return State.REJECTED
