"""Sequential-looking code over futures, with async/await

Writing continuation-passing code by hand is awkward:

```
fetch_user(uid).register(lambda user: fetch_orders(user)).register(show_orders, show_error)
```

Instead, we can write an `async def`, `await` futures inside it, and run it
with `spawn`, which returns a Future for the coroutine's result:

```
async def orders(uid):
    try:
        user = await fetch_user(uid)
        show_orders(await fetch_orders(user))
    except LookupError as e:
        show_error(e)

spawn(orders(uid))
```

This is not a new primitive. Each `await` on a Future yields that Future up to
`spawn`, which registers a continuation pair on it: the fulfillment handler
resumes the coroutine by sending it the value, and the rejection handler
resumes it by throwing the error in at the `await`. So the coroutine is only
ever resumed from a Scheduler task, in the same order as any other
continuation.

A coroutine runs synchronously, inside `spawn`, up to its first `await`.
Futures created before awaiting any of them run concurrently; awaits which
depend on each other's results run one after another.

"""
from __future__ import annotations
from dataclasses import dataclass
from pledge.future import Future
from pledge.scheduler import Scheduler
import functools
import logging
import typing as t

__all__ = [
    'spawn',
    'sequential',
]

logger = logging.getLogger(__name__)

T = t.TypeVar('T')
Coroutine = t.Coroutine[Future[t.Any], t.Any, T]

@dataclass(eq=False)
class _Resumption:
    "Drives one coroutine, resuming it each time a future it awaited settles."
    coro: Coroutine[t.Any]
    future: Future[t.Any]

    def send(self, value: t.Any) -> None:
        self._step(functools.partial(self.coro.send, value))

    def throw(self, exn: BaseException) -> None:
        self._step(functools.partial(self.coro.throw, exn))

    def _step(self, resume: t.Callable[[], t.Any]) -> None:
        try:
            yielded = resume()
        except StopIteration as e:
            logger.debug("spawn(%s): returned %r", self.coro, e.value)
            self.future.set_result(e.value)
            return
        except Exception as e:
            logger.debug("spawn(%s): raised %r", self.coro, e)
            self.future.set_error(e)
            return
        if not isinstance(yielded, Future):
            self.throw(TypeError("coroutines run by spawn can only await pledge Futures", yielded))
            return
        logger.debug("spawn(%s): suspended on %s", self.coro, yielded)
        yielded.register(self.send, self.throw)

def spawn(coro: Coroutine[T], scheduler: t.Optional[Scheduler]=None) -> Future[T]:
    """Run this coroutine until it first awaits, and return a Future for its result.

    The returned Future is fulfilled with the coroutine's return value, or
    rejected with the exception it raises.

    """
    if not (hasattr(coro, 'send') and hasattr(coro, 'throw')):
        raise TypeError("spawn needs a coroutine", coro)
    future: Future[T] = Future(scheduler)
    _Resumption(coro, future).send(None)
    return future

def sequential(func: t.Optional[t.Callable[..., t.Coroutine[t.Any, t.Any, T]]]=None, *,
               scheduler: t.Optional[Scheduler]=None) -> t.Any:
    """Turn an async function into a function which returns a Future.

    Each call spawns the coroutine on `scheduler`, by default the process-wide
    Scheduler. Use it bare, as `@sequential`, or as `@sequential(scheduler=s)`.

    """
    if func is None:
        return functools.partial(sequential, scheduler=scheduler)
    @functools.wraps(func)
    def wrapper(*args: t.Any, **kwargs: t.Any) -> Future[T]:
        return spawn(func(*args, **kwargs), scheduler)
    return wrapper
