"""Running pledge futures under trio

pledge has no event loop of its own; a Scheduler only runs tasks when
someone calls `Scheduler.drain`. Here, trio is that someone.

`run_scheduler` is a trio task which drains a Scheduler each time the
Scheduler's queue stops being idle. Start it in a nursery, and continuations
will run soon after their futures settle:

```
async with trio.open_nursery() as nursery:
    await nursery.start(run_scheduler)
    value = await wait(race([sleep(nursery, 1, "slow"), sleep(nursery, 0.1, "fast")]))
```

`wait` suspends a trio task until a Future settles, and `sleep` and `start`
are producers which settle futures from trio tasks.

All of this runs on the trio thread; pledge futures are not thread-safe, and
other threads must hand work over with `trio.from_thread`.

"""
from __future__ import annotations
from dataclasses import dataclass
from pledge.future import Future, Deferred
from pledge.outcome import Outcome, Value, Error, acapture
from pledge.scheduler import Scheduler, get_scheduler
import logging
import trio
import typing as t

__all__ = [
    'run_scheduler',
    'wait',
    'sleep',
    'start',
]

logger = logging.getLogger(__name__)

T = t.TypeVar('T')

async def run_scheduler(scheduler: t.Optional[Scheduler]=None, *,
                        task_status: trio.TaskStatus[None]=trio.TASK_STATUS_IGNORED) -> None:
    "Drain `scheduler` (by default the process-wide one) whenever it has work, forever."
    if scheduler is None:
        scheduler = get_scheduler()
    event = trio.Event()
    def wakeup() -> None:
        event.set()
    scheduler.add_wakeup(wakeup)
    try:
        task_status.started()
        while True:
            count = scheduler.drain()
            if count:
                logger.debug("run_scheduler(%s): ran %d tasks", scheduler, count)
            await event.wait()
            event = trio.Event()
    finally:
        logger.debug("run_scheduler(%s): exiting", scheduler)
        scheduler.remove_wakeup(wakeup)

@dataclass(eq=False)
class _TrioWaiter:
    "A trio task suspended until some future settles."
    task: t.Any
    cancelled: bool = False

    def resume(self, result: Outcome[t.Any]) -> None:
        if self.cancelled:
            # the task has already moved on; the result is just dropped
            logger.debug("_TrioWaiter(%s): resumed after cancellation", self.task)
            return
        trio.lowlevel.reschedule(self.task, result)

    def abort(self, raise_cancel: t.Any) -> trio.lowlevel.Abort:
        logger.debug("_TrioWaiter(%s): cancelled", self.task)
        self.cancelled = True
        return trio.lowlevel.Abort.SUCCEEDED

async def wait(future: Future[T]) -> T:
    """Wait for this future to settle, then return its value or raise its error.

    This is cancellable; cancelling the wait does not affect the future.
    Something must be draining the future's Scheduler, or this may never return.

    """
    if future.done():
        await trio.lowlevel.checkpoint()
        return future.unwrap()
    waiter = _TrioWaiter(trio.lowlevel.current_task())
    future.register(lambda value: waiter.resume(Value(value)),
                    lambda error: waiter.resume(Error(error)))
    return await trio.lowlevel.wait_task_rescheduled(waiter.abort)

def sleep(nursery: trio.Nursery, seconds: float, value: t.Any=None,
          scheduler: t.Optional[Scheduler]=None) -> Future[t.Any]:
    "Return a future which a task in `nursery` fulfills with `value` after `seconds`."
    deferred: Deferred[t.Any] = Deferred(scheduler)
    async def timer() -> None:
        await trio.sleep(seconds)
        deferred.resolve(value)
    nursery.start_soon(timer)
    return deferred.future

def start(nursery: trio.Nursery, async_fn: t.Callable[..., t.Awaitable[T]], *args: t.Any,
          scheduler: t.Optional[Scheduler]=None) -> Future[T]:
    """Run `async_fn(*args)` in `nursery`, and return a future for its result.

    If it raises an Exception, the future is rejected with it. Anything else it
    raises, such as trio.Cancelled, propagates into the nursery as usual, and the
    future stays pending.

    """
    future: Future[T] = Future(scheduler)
    async def run() -> None:
        result = await acapture(async_fn, *args)
        if isinstance(result, Error) and not isinstance(result.error, Exception):
            result.unwrap()
        future.settle(result)
    nursery.start_soon(run)
    return future
