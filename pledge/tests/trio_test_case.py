"A trio-enabled variant of unittest.TestCase, with a pledge Scheduler drained by trio"
from pledge.scheduler import Scheduler, set_scheduler
from pledge.trio_host import run_scheduler
import trio
import unittest
import contextlib
import functools
import sys
import types
import typing as t
import warnings

@contextlib.contextmanager
def raise_unraisables() -> t.Iterator[None]:
    unraisables: t.List[t.Any] = []
    try:
        orig_unraisablehook, sys.unraisablehook = sys.unraisablehook, unraisables.append
        yield
    finally:
        sys.unraisablehook = orig_unraisablehook
        if len(unraisables) == 1:
            raise unraisables[0].exc_value
        elif unraisables:
            raise ExceptionGroup("unraisable exceptions during test",
                                 [unr.exc_value for unr in unraisables])

class TrioTestCase(unittest.TestCase):
    """A trio-enabled variant of unittest.TestCase

    Each test method is an async function, run under `trio.run` inside a
    nursery. A fresh Scheduler is installed as the process-wide one and drained
    by `pledge.trio_host.run_scheduler` for the duration of the test, so
    continuations run whenever the test yields to trio.

    """
    nursery: trio.Nursery
    scheduler: Scheduler

    def make_clock(self) -> t.Optional[trio.abc.Clock]:
        "Override to run the test under a different clock, such as trio.testing.MockClock."
        return None

    async def asyncSetUp(self) -> None:
        "Asynchronously set up resources for tests in this TestCase"
        pass

    async def asyncTearDown(self) -> None:
        "Asynchronously clean up resources for tests in this TestCase"
        pass

    def __init__(self, methodName='runTest') -> None:
        test = getattr(type(self), methodName, None)
        if test is None:
            # test loaders instantiate with the default methodName just to inspect the class
            super().__init__(methodName)
            return
        @functools.wraps(test)
        async def test_with_setup() -> None:
            self.scheduler = Scheduler()
            previous = set_scheduler(self.scheduler)
            try:
                async with trio.open_nursery() as nursery:
                    self.nursery = nursery
                    await nursery.start(run_scheduler, self.scheduler)
                    await self.asyncSetUp()
                    try:
                        await test(self)
                    finally:
                        await self.asyncTearDown()
                    nursery.cancel_scope.cancel()
            finally:
                set_scheduler(previous)
        @functools.wraps(test_with_setup)
        def sync_test_with_setup(self) -> None:
            # A coroutine which is made but never spawned or awaited only warns,
            # from its __del__; turn that into a test failure.
            with raise_unraisables():
                with warnings.catch_warnings():
                    warnings.filterwarnings('error', message='.*was never awaited', category=RuntimeWarning)
                    trio.run(test_with_setup, clock=self.make_clock())
        setattr(self, methodName, types.MethodType(sync_test_with_setup, self))
        super().__init__(methodName)

class Test(unittest.TestCase):
    def test_coro_warning(self) -> None:
        class Test(TrioTestCase):
            async def test(self) -> None:
                async def body() -> int:
                    return 1
                body()
        with self.assertRaises(RuntimeWarning):
            Test('test').test()

    def test_default_method_name(self) -> None:
        class Test(TrioTestCase):
            async def test(self) -> None:
                pass
        self.assertFalse(hasattr(Test, 'runTest'))
        Test()
