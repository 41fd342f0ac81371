"""The deferred value state machine

A Future starts out pending, and is settled exactly once: either fulfilled
with a value, or rejected with an error. Later attempts to settle it are
silently discarded.

Settling a Future with another Future doesn't fulfill it with that Future;
instead it adopts the other Future's eventual outcome. A Future never holds a
Future as its value.

Consumers register continuations with `register`, which returns a new
downstream Future immediately. The continuations never run inline; they are
scheduled on the Future's Scheduler, either right away if the Future has
already settled, or at settlement time if it hasn't.

"""
from __future__ import annotations
from pledge.chain import ContinuationLink, OnFulfilled, OnRejected
from pledge.errors import ChainingCycleError, NotSettledError, SchedulerClosed
from pledge.outcome import Outcome, Value, Error, State, status_of
from pledge.scheduler import Scheduler, get_scheduler
import functools
import logging
import typing as t

__all__ = [
    'Future',
    'Deferred',
    'State',
]

logger = logging.getLogger(__name__)

T = t.TypeVar('T')
Executor = t.Callable[[t.Callable[[t.Any], None], t.Callable[[BaseException], None]], t.Any]

def _reraise(error: BaseException, _: t.Any=None) -> t.NoReturn:
    raise error

class Future(t.Generic[T]):
    """A value or error which will become available later.

    Producers settle a Future with `set_result` or `set_error`; only the first
    call to either has any effect. Consumers register continuations with
    `register`, `error_handler` or `always`, await it inside
    `pledge.sequential.spawn`, or combine it with others using the functions in
    `pledge.combinators`.

    """
    def __init__(self, scheduler: t.Optional[Scheduler]=None) -> None:
        self.scheduler = scheduler if scheduler is not None else get_scheduler()
        self.waiters: t.List[ContinuationLink] = []
        self._result: t.Optional[Outcome[T]] = None
        # set once the outcome is decided, which may be before we've settled,
        # if we're adopting the outcome of another future
        self._locked = False

    @classmethod
    def create(cls, executor: Executor, scheduler: t.Optional[Scheduler]=None) -> Future[T]:
        """Make a Future, and synchronously call `executor(set_result, set_error)` on it.

        If the executor raises before settling the Future, the Future is rejected
        with that exception.

        """
        if not callable(executor):
            raise TypeError("executor must be callable", executor)
        self = cls(scheduler)
        try:
            executor(self.set_result, self.set_error)
        except Exception as exn:
            logger.debug("Future.create: executor %s raised %r", executor, exn)
            self.set_error(exn)
        return self

    @classmethod
    def fulfilled(cls, value: t.Any, scheduler: t.Optional[Scheduler]=None) -> Future[t.Any]:
        "Return an already-fulfilled Future; or, if `value` is a Future, just return it."
        if isinstance(value, Future):
            return value
        self = cls(scheduler)
        self.set_result(value)
        return self

    @classmethod
    def rejected(cls, error: BaseException, scheduler: t.Optional[Scheduler]=None) -> Future[t.Any]:
        "Return an already-rejected Future."
        self = cls(scheduler)
        self.set_error(error)
        return self

    def __repr__(self) -> str:
        if self._result is None:
            return f"<Future {State.PENDING.value}>"
        elif isinstance(self._result, Value):
            return f"<Future {State.FULFILLED.value} value={self._result.value!r}>"
        else:
            return f"<Future {State.REJECTED.value} error={self._result.error!r}>"

    @property
    def state(self) -> State:
        return status_of(self._result)

    @property
    def outcome(self) -> t.Optional[Outcome[T]]:
        "The settled outcome, or None if we're still pending."
        return self._result

    def done(self) -> bool:
        return self._result is not None

    def error(self) -> t.Optional[BaseException]:
        "Return the error we were rejected with, or None if we weren't."
        if isinstance(self._result, Error):
            return self._result.error
        return None

    def unwrap(self) -> T:
        """Return our value or raise our error; raise NotSettledError if we're pending.

        Taking the error this way counts as handling the rejection.

        """
        if self._result is None:
            raise NotSettledError(self)
        elif isinstance(self._result, Value):
            return self._result.value
        else:
            self.scheduler.untrack_rejection(self)
            raise self._result.error

    #### Producer side
    def set_result(self, value: t.Any) -> None:
        """Fulfill this future with `value`, or adopt its outcome if it's a Future.

        Does nothing if we were already settled, or are already adopting. Raises
        SchedulerClosed, leaving us pending, if our Scheduler has been closed.

        """
        if self._locked:
            logger.debug("%s.set_result(%r): already settled, discarding", self, value)
            return
        if self.scheduler.closed:
            raise SchedulerClosed(self.scheduler)
        self._locked = True
        if value is self:
            self._settle(Error(ChainingCycleError(self)))
        elif isinstance(value, Future):
            logger.debug("%s.set_result: adopting outcome of %s", self, value)
            value.register(self._adopt_value, self._adopt_error)
        else:
            self._settle(Value(value))

    def set_error(self, error: BaseException) -> None:
        "Reject this future with `error`; does nothing if we were already settled."
        if not isinstance(error, BaseException):
            raise TypeError("futures can only be rejected with exceptions", error)
        if self._locked:
            logger.debug("%s.set_error(%r): already settled, discarding", self, error)
            return
        if self.scheduler.closed:
            raise SchedulerClosed(self.scheduler)
        self._locked = True
        self._settle(Error(error))

    def settle(self, result: Outcome[t.Any]) -> None:
        "Settle this future with this outcome, as with `set_result` or `set_error`."
        if isinstance(result, Value):
            self.set_result(result.value)
        else:
            self.set_error(result.error)

    def _adopt_value(self, value: T) -> None:
        self._settle(Value(value))

    def _adopt_error(self, error: BaseException) -> None:
        self._settle(Error(error))

    def _settle(self, result: Outcome[T]) -> None:
        if self._result is not None:
            raise RuntimeError("future settled twice", self, result)
        self._result = result
        waiters, self.waiters = self.waiters, []
        logger.debug("%s: settled, triggering %d waiters", self, len(waiters))
        if isinstance(result, Error) and not waiters:
            self.scheduler.track_rejection(self)
        for link in waiters:
            link.trigger(result)

    #### Consumer side
    def register(self,
                 on_fulfilled: t.Optional[OnFulfilled]=None,
                 on_rejected: t.Optional[OnRejected]=None,
    ) -> Future[t.Any]:
        """Register a continuation pair, and return the Future for its result.

        When we settle, the matching handler is called with our value or error,
        and the returned Future is settled with what the handler returns (or
        rejected with what it raises). If the matching handler is None, the
        returned Future just gets our outcome.

        The handler is never called before the code calling `register` has
        finished running, even if we've already settled.

        """
        downstream: Future[t.Any] = Future(self.scheduler)
        link = ContinuationLink(self, on_fulfilled, on_rejected, downstream)
        if self._result is None:
            self.waiters.append(link)
        else:
            if isinstance(self._result, Error):
                self.scheduler.untrack_rejection(self)
            link.trigger(self._result)
        return downstream

    def error_handler(self, on_rejected: OnRejected) -> Future[t.Any]:
        "Handle only our error; our value, if we have one, passes through unchanged."
        return self.register(None, on_rejected)

    def always(self, callback: t.Callable[[], t.Any]) -> Future[T]:
        """Call `callback()` however we settle, and pass our outcome through.

        If `callback` raises, or returns a Future which is rejected, the returned
        Future is rejected with that error instead. If `callback` returns a
        Future, the returned Future waits for it before settling.

        """
        def on_fulfilled(value: T) -> t.Any:
            ret = callback()
            if isinstance(ret, Future):
                return ret.register(lambda _: value)
            return value
        def on_rejected(error: BaseException) -> t.Any:
            ret = callback()
            if isinstance(ret, Future):
                return ret.register(functools.partial(_reraise, error))
            raise error
        return self.register(on_fulfilled, on_rejected)

    def __await__(self) -> t.Generator[Future[T], t.Any, T]:
        """Suspend the awaiting coroutine until we settle.

        This only works for coroutines run by `pledge.sequential.spawn`; to wait
        for a Future from a trio task, use `pledge.trio_host.wait`.

        """
        value: T = yield self
        return value

class Deferred(t.Generic[T]):
    """The producer side of a Future.

    Holds the Future, and the two capabilities which settle it, so that they
    can be handed to different parties.

    """
    def __init__(self, scheduler: t.Optional[Scheduler]=None) -> None:
        self.future: Future[T] = Future(scheduler)
        self.resolve = self.future.set_result
        self.reject = self.future.set_error

    def __repr__(self) -> str:
        return f"<Deferred {self.future}>"
