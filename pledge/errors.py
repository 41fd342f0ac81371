"Exceptions raised by pledge itself, as opposed to errors that futures are rejected with"
from __future__ import annotations
import typing as t
if t.TYPE_CHECKING:
    from pledge.future import Future
    from pledge.scheduler import Scheduler

__all__ = [
    'AggregateError',
    'ChainingCycleError',
    'NotSettledError',
    'SchedulerClosed',
]

class AggregateError(Exception):
    """Every input to `any_of` was rejected.

    `errors` holds the individual rejection errors, in the same order as the
    inputs; it's empty if `any_of` was passed no futures at all.

    """
    def __init__(self, errors: t.Sequence[BaseException], message: str="all futures were rejected") -> None:
        super().__init__(message, list(errors))
        self.message = message
        self.errors = list(errors)

    def __str__(self) -> str:
        return f"{self.message} ({len(self.errors)} errors)"

class ChainingCycleError(TypeError):
    """A future was settled with itself.

    This happens directly, with `fut.set_result(fut)`, or indirectly, when a
    handler returns the very future that its registration produced. Such a
    future could never settle, so we reject it with this instead.

    """
    def __init__(self, future: Future) -> None:
        super().__init__("future was settled with itself", future)
        self.future = future

class NotSettledError(RuntimeError):
    "Asked for the result of a future which is still pending."
    def __init__(self, future: Future) -> None:
        super().__init__("future is still pending", future)
        self.future = future

class SchedulerClosed(RuntimeError):
    "A task was scheduled on a Scheduler after `Scheduler.close`."
    def __init__(self, scheduler: Scheduler) -> None:
        super().__init__("scheduler is closed", scheduler)
        self.scheduler = scheduler
