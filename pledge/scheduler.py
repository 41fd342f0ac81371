"""A single-threaded cooperative task queue

Continuations registered on a Future never run inline with the code that
registered them or settled the Future. Instead, a zero-argument task is
appended to a Scheduler, and runs when someone drains that Scheduler.

Tasks run in FIFO order: the order in which they became runnable. Since
settling a Future enqueues its waiters in registration order, this gives us
the ordering guarantees we want; handlers on the same future run in the
order they were registered, and handlers for a settlement that happened
earlier run before handlers for one that happened later.

There's no implicit event loop here. Something has to call `Scheduler.drain`;
that's the job of the host. In a plain synchronous program, that can be
`Scheduler.run_until_settled`; under trio, it's `pledge.trio_host.run_scheduler`,
which drains whenever the queue goes from empty to non-empty.

Rejected futures which nobody registered a continuation on are reported at
the end of each drain, to `Scheduler.unhandled_rejection_hook`. This is an
observability hook; the rejection is never raised.

"""
from __future__ import annotations
from collections import deque
from pledge.errors import SchedulerClosed
import atexit
import logging
import typing as t
if t.TYPE_CHECKING:
    from pledge.future import Future

__all__ = [
    'Scheduler',
    'get_scheduler',
    'set_scheduler',
    'log_unhandled_rejection',
]

logger = logging.getLogger(__name__)

T = t.TypeVar('T')
Task = t.Callable[[], t.Any]
UnhandledRejectionHook = t.Callable[['Future[t.Any]', BaseException], None]

def log_unhandled_rejection(future: Future[t.Any], error: BaseException) -> None:
    "The default unhandled rejection hook; just logs a warning with the traceback."
    logger.warning("%s was rejected and no handler was ever registered on it", future,
                   exc_info=(type(error), error, error.__traceback__))

class Scheduler:
    """A FIFO queue of tasks, drained explicitly by the host.

    Only one task runs at a time, and a task is never run while another task is
    running; calling `drain` from inside a task does nothing.

    """
    def __init__(self, unhandled_rejection_hook: UnhandledRejectionHook=log_unhandled_rejection) -> None:
        self.unhandled_rejection_hook = unhandled_rejection_hook
        self._tasks: t.Deque[Task] = deque()
        self._wakeups: t.List[t.Callable[[], None]] = []
        # a dict rather than a set, so that we report in rejection order
        self._unhandled: t.Dict[Future[t.Any], None] = {}
        self._draining = False
        self.closed = False

    def __repr__(self) -> str:
        return f"<Scheduler tasks={len(self._tasks)} closed={self.closed}>"

    def __len__(self) -> int:
        return len(self._tasks)

    def call_soon(self, task: Task) -> None:
        "Run this task after every task that is already queued."
        if self.closed:
            raise SchedulerClosed(self)
        was_idle = not self._tasks and not self._draining
        self._tasks.append(task)
        if was_idle:
            for wakeup in list(self._wakeups):
                try:
                    wakeup()
                except Exception:
                    logger.exception("Scheduler.call_soon: wakeup %s raised", wakeup)

    def add_wakeup(self, wakeup: t.Callable[[], None]) -> None:
        """Call `wakeup` whenever the queue stops being idle.

        A host event loop uses this to learn that it needs to call `drain` again.
        While the queue is being drained, it isn't idle, so no wakeups happen.

        """
        self._wakeups.append(wakeup)

    def remove_wakeup(self, wakeup: t.Callable[[], None]) -> None:
        self._wakeups.remove(wakeup)

    def drain(self) -> int:
        """Run queued tasks until there are none left, and return how many we ran.

        Tasks enqueued by running tasks are run too, in order. An exception
        raised by a task is logged and then ignored; it won't stop the loop.

        """
        if self._draining:
            logger.debug("Scheduler.drain: already draining, not running tasks re-entrantly")
            return 0
        self._draining = True
        count = 0
        try:
            while self._tasks:
                task = self._tasks.popleft()
                count += 1
                try:
                    task()
                except Exception:
                    logger.exception("Scheduler.drain: task %s raised", task)
        finally:
            self._draining = False
        self._report_unhandled()
        return count

    def run_until_settled(self, future: Future[T]) -> T:
        """Drain the queue, then return the future's value or raise its error.

        Raises NotSettledError if there's no more work to do but the future is
        still pending; something outside this scheduler needs to settle it.

        """
        self.drain()
        return future.unwrap()

    def close(self, drain: bool=True) -> None:
        """Stop accepting new tasks, after draining the queue, or discarding it if not `drain`.

        Tasks which are still queued when we close the scheduler without
        draining are thrown away, so the futures they would have settled stay
        pending forever.

        """
        if self.closed:
            return
        if drain:
            self.drain()
        elif self._tasks:
            logger.debug("Scheduler.close: discarding %d queued tasks", len(self._tasks))
            self._tasks.clear()
        self.closed = True

    def track_rejection(self, future: Future[t.Any]) -> None:
        "Called when a future is rejected while no continuations are registered on it."
        self._unhandled[future] = None

    def untrack_rejection(self, future: Future[t.Any]) -> None:
        "Called when a continuation is registered on a rejected future, or its error is taken."
        self._unhandled.pop(future, None)

    def _report_unhandled(self) -> None:
        unhandled, self._unhandled = self._unhandled, {}
        for future in unhandled:
            error = future.error()
            try:
                self.unhandled_rejection_hook(future, error)
            except Exception:
                logger.exception("Scheduler: unhandled rejection hook raised on %s", future)

_scheduler: t.Optional[Scheduler] = None

def get_scheduler() -> Scheduler:
    "Return the process-wide Scheduler, making it if it doesn't exist yet."
    global _scheduler
    if _scheduler is None:
        _scheduler = Scheduler()
    return _scheduler

def set_scheduler(scheduler: t.Optional[Scheduler]) -> t.Optional[Scheduler]:
    """Replace the process-wide Scheduler, and return the previous one.

    Futures made before this call stay attached to the scheduler that was
    current when they were made. Pass None to get a fresh one on next use.

    """
    global _scheduler
    previous, _scheduler = _scheduler, scheduler
    return previous

@atexit.register
def _drain_at_exit() -> None:
    if _scheduler is not None and not _scheduler.closed:
        _scheduler.close()
