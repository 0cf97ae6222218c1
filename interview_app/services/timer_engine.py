import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimerHandle:
    candidate_id: str
    question_index: int
    generation: int


TickCallback = Callable[[TimerHandle, int], None]
ExpireCallback = Callable[[TimerHandle], Awaitable[None]]


class TimerEngine:
    """
    Single per-question countdown with 1-second ticks.

    At most one (candidate, question) pair is bound at a time. Starting a new
    countdown invalidates the previous handle before anything else, so a tick
    scheduled for an old handle never fires.

    Each tick decrements ``remaining`` and hands the new value to ``on_tick``
    (which persists it). When it reaches zero the engine unbinds itself and
    awaits ``on_expire``.

    With ``autorun=False`` no task is scheduled and ticks are driven by
    calling ``tick()`` directly.
    """

    def __init__(
        self,
        on_tick: TickCallback,
        on_expire: ExpireCallback,
        interval: float = 1.0,
        autorun: bool = True,
    ):
        self.on_tick = on_tick
        self.on_expire = on_expire
        self.interval = interval
        self.autorun = autorun

        self.handle: TimerHandle | None = None
        self.remaining = 0
        self._generation = 0
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self.handle is not None

    def is_current(self, handle: TimerHandle | None) -> bool:
        return handle is not None and handle == self.handle

    def start(self, candidate_id: str, question_index: int, remaining: int) -> TimerHandle:
        self.stop()

        self.handle = TimerHandle(candidate_id, question_index, self._generation)
        self.remaining = max(0, int(remaining))
        logger.debug(
            "Timer started for %s question %d with %ds",
            candidate_id, question_index + 1, self.remaining,
        )

        if self.autorun:
            self._task = asyncio.get_running_loop().create_task(self._run(self.handle))
        return self.handle

    def stop(self) -> int:
        """Invalidate the current handle. Returns the remaining seconds."""
        self._detach()
        task, self._task = self._task, None
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()
        return self.remaining

    def _detach(self):
        self._generation += 1
        self.handle = None

    async def tick(self):
        handle = self.handle
        if handle is None:
            return

        self.remaining = max(0, self.remaining - 1)
        self.on_tick(handle, self.remaining)

        if self.remaining == 0:
            # unbind first: the expiry callback may start the next countdown
            self._detach()
            self._task = None
            await self.on_expire(handle)

    async def _run(self, handle: TimerHandle):
        try:
            while self.is_current(handle):
                await asyncio.sleep(self.interval)
                if not self.is_current(handle):
                    break
                await self.tick()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Timer for %s stopped unexpectedly", handle.candidate_id)
