"""Deferred values, ordered continuations, and combinators

A `Future` is a value or error that becomes available later. It is settled
exactly once, and continuations registered on it run afterwards, in the order
they were registered, from a single cooperative `Scheduler`:

```
fut = Future.create(lambda resolve, reject: resolve(5))
fut.register(print)
get_scheduler().drain()  # prints 5
```

A continuation never runs inline with the code that registered it, even if the
future has already settled; it always runs from a later `Scheduler.drain`.
This means a caller never observes a re-entrant, synchronous completion in the
middle of its own code.

Each registration returns a new future, settled with whatever the handler
returns or raises, so continuations chain. A rejection passes down the chain,
skipping handlers which don't handle errors, until the nearest error handler
catches it.

On top of this we build the usual combinators (`all_of`, `all_settled`,
`race`, `any_of`) and a sequential view (`spawn`, `sequential`) which lets a
coroutine `await` futures directly, by registering its own continuation on
each one.

There is no implicit event loop. The host program drains the scheduler;
`pledge.trio_host` does so from trio.

"""
from pledge.errors import AggregateError, ChainingCycleError, NotSettledError, SchedulerClosed
from pledge.outcome import Outcome, Value, Error, State, status_of
from pledge.scheduler import Scheduler, get_scheduler, set_scheduler
from pledge.future import Future, Deferred
from pledge.combinators import all_of, all_settled, race, any_of
from pledge.sequential import spawn, sequential
