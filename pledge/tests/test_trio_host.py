from pledge import Future, State, race, all_of, any_of, spawn
from pledge.trio_host import wait, sleep, start
from pledge.tests.trio_test_case import TrioTestCase
from pledge.tests.utils import MyException
import trio
import trio.testing
import typing as t

class TestWait(TrioTestCase):
    async def test_already_settled(self) -> None:
        self.assertEqual(await wait(Future.fulfilled(5)), 5)

    async def test_settled_later(self) -> None:
        fut: Future[str] = Future()
        @self.nursery.start_soon
        async def producer() -> None:
            await trio.sleep(0)
            fut.set_result("hello")
        self.assertEqual(await wait(fut), "hello")

    async def test_rejected(self) -> None:
        fut = Future.fulfilled(1).register(lambda x: x / 0)
        with self.assertRaises(ZeroDivisionError):
            await wait(fut)

    async def test_cancelled_wait(self) -> None:
        fut: Future[int] = Future()
        with trio.move_on_after(0.01) as scope:
            await wait(fut)
        self.assertTrue(scope.cancelled_caught)
        # settling after the waiter went away is harmless
        fut.set_result(1)
        await trio.sleep(0)
        self.assertEqual(fut.state, State.FULFILLED)

    async def test_spawned_coroutine(self) -> None:
        async def body() -> int:
            return (await sleep(self.nursery, 0.01, 20)) + 1
        self.assertEqual(await wait(spawn(body())), 21)

class TestProducers(TrioTestCase):
    def make_clock(self) -> trio.abc.Clock:
        return trio.testing.MockClock(autojump_threshold=0)

    async def test_race_timers(self) -> None:
        slow = sleep(self.nursery, 100, "slow")
        fast = sleep(self.nursery, 10, "fast")
        agg = race([slow, fast])
        self.assertEqual(await wait(agg), "fast")
        await wait(slow)
        self.assertEqual(agg.unwrap(), "fast")

    async def test_all_of_timers(self) -> None:
        start_time = trio.current_time()
        results = await wait(all_of([sleep(self.nursery, 3, "a"), sleep(self.nursery, 1, "b")]))
        self.assertEqual(results, ["a", "b"])
        self.assertAlmostEqual(trio.current_time() - start_time, 3)

    async def test_start(self) -> None:
        async def compute(x: int) -> int:
            await trio.sleep(1)
            return x * 2
        self.assertEqual(await wait(start(self.nursery, compute, 4)), 8)

    async def test_start_raises(self) -> None:
        async def fail() -> None:
            await trio.sleep(1)
            raise MyException("from trio")
        with self.assertRaises(MyException):
            await wait(start(self.nursery, fail))

    async def test_any_of_timers(self) -> None:
        async def fail() -> None:
            await trio.sleep(1)
            raise MyException()
        agg = any_of([start(self.nursery, fail), sleep(self.nursery, 5, "ok")])
        self.assertEqual(await wait(agg), "ok")
