"""The bookkeeping that links a future to the continuations registered on it

Each call to `Future.register` makes one ContinuationLink, which holds the
source future, the (optional) handler pair, and the downstream future that
`register` returned. When the source settles, the link is triggered with the
source's outcome, which schedules a task; that task runs the matching handler
and settles the downstream future with whatever it produced.

"""
from __future__ import annotations
from dataclasses import dataclass, field
from pledge.outcome import Outcome, Value
import functools
import logging
import typing as t
if t.TYPE_CHECKING:
    from pledge.future import Future

__all__ = [
    'ContinuationLink',
    'OnFulfilled',
    'OnRejected',
]

logger = logging.getLogger(__name__)

OnFulfilled = t.Callable[[t.Any], t.Any]
OnRejected = t.Callable[[BaseException], t.Any]

@dataclass(eq=False)
class ContinuationLink:
    """One registration of a handler pair on a source future.

    If the handler matching the source's outcome is missing, the downstream
    future adopts that outcome unchanged. Otherwise the downstream future is
    fulfilled with the handler's return value (adopting it, if it's a Future),
    or rejected with whatever the handler raised.

    """
    source: Future[t.Any] = field(repr=False)
    on_fulfilled: t.Optional[OnFulfilled]
    on_rejected: t.Optional[OnRejected]
    downstream: Future[t.Any] = field(repr=False)
    triggered: bool = False

    def trigger(self, result: Outcome[t.Any]) -> None:
        "Schedule resolution of the downstream future with the source's outcome."
        if self.triggered:
            raise RuntimeError("continuation link was triggered twice", self)
        self.triggered = True
        self.downstream.scheduler.call_soon(functools.partial(self.run, result))

    def run(self, result: Outcome[t.Any]) -> None:
        if isinstance(result, Value):
            handler: t.Optional[t.Callable[[t.Any], t.Any]] = self.on_fulfilled
            arg: t.Any = result.value
        else:
            handler = self.on_rejected
            arg = result.error
        if handler is None:
            logger.debug("ContinuationLink.run(%s): no handler, passing through", result)
            self.downstream.settle(result)
            return
        try:
            ret = handler(arg)
        except Exception as exn:
            logger.debug("ContinuationLink.run(%s): handler %s raised %r", result, handler, exn)
            self.downstream.set_error(exn)
        else:
            self.downstream.set_result(ret)
