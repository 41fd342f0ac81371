from pledge.scheduler import Scheduler, set_scheduler
import typing as t
import unittest

class MyException(Exception):
    pass

class SchedulerTestCase(unittest.TestCase):
    "Runs each test with a fresh process-wide Scheduler, which the test drains by hand."
    def setUp(self) -> None:
        self.scheduler = Scheduler()
        self.previous = set_scheduler(self.scheduler)

    def tearDown(self) -> None:
        set_scheduler(self.previous)

    def drain(self) -> int:
        return self.scheduler.drain()

def recorder() -> t.Tuple[t.List[t.Any], t.Callable[[t.Any], None]]:
    "Return a list, and a handler which appends its argument to that list."
    calls: t.List[t.Any] = []
    return calls, calls.append
