import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Union

from childcare.client.api import ApiResult
from childcare.client.assignments import AssignmentService, Id
from childcare.core.config import settings

logger = logging.getLogger(__name__)

Callback = Callable[[ApiResult], Union[None, Awaitable[None]]]


class AssignmentPoller:
    """
    Periodically fetch a skill's assignments and hand each result to `callback`.

    Every consumer owns its own poller and task; stopping one never affects
    another. The first fetch happens one interval after `start()`.

        async with AssignmentPoller(service, skill_id, on_update):
            ...
    """

    def __init__(
        self,
        service: AssignmentService,
        skill_id: Id,
        callback: Callback,
        interval: Optional[float] = None,
    ):
        self.service = service
        self.skill_id = skill_id
        self.callback = callback
        self.interval = settings.ASSIGNMENT_POLL_INTERVAL if interval is None else interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def __aenter__(self) -> "AssignmentPoller":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    async def poll_once(self) -> ApiResult:
        result = await self.service.get_all_assignments(self.skill_id)
        await self._deliver(result)
        return result

    async def _deliver(self, result: ApiResult) -> None:
        try:
            outcome: Any = self.callback(result)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception:
            # callback errors are logged; polling continues
            logger.exception("Assignment poll callback failed for skill %s", self.skill_id)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            await self.poll_once()
