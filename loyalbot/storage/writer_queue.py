"""Single-writer queue that serializes account store mutations."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, TypeVar, cast

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

T = TypeVar("T")


class WriterQueueProtocol(Protocol):
    """Anything that can run one write operation at a time."""

    async def submit(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run `operation` after every previously submitted one finished."""
        ...


class WriterQueueClosedError(RuntimeError):
    """Raised when callers submit work after queue shutdown."""

    @classmethod
    def default_message(cls) -> WriterQueueClosedError:
        """Build deterministic error text for closed queue submissions."""
        return cls("Writer queue is closed and cannot accept new jobs.")


@dataclass(slots=True)
class _WriteJob:
    operation: Callable[[], Awaitable[object]]
    done: asyncio.Future[object]


class WriterQueue:
    """FIFO queue drained by one worker task, started on first submit."""

    _jobs: asyncio.Queue[_WriteJob | None]
    _worker: asyncio.Task[None] | None
    _closed: bool

    def __init__(self) -> None:
        """Create an idle queue; the worker starts lazily."""
        self._jobs = asyncio.Queue()
        self._worker = None
        self._closed = False

    async def submit(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Enqueue one write and wait for its result or exception."""
        if self._closed:
            raise WriterQueueClosedError.default_message()
        if self._worker is None or self._worker.done():
            self._worker = asyncio.create_task(self._drain())
        done: asyncio.Future[object] = asyncio.get_running_loop().create_future()
        self._jobs.put_nowait(
            _WriteJob(
                operation=cast("Callable[[], Awaitable[object]]", operation),
                done=done,
            ),
        )
        return cast("T", await done)

    async def close(self) -> None:
        """Refuse new jobs, finish queued ones, then stop the worker."""
        if self._closed:
            return
        self._closed = True
        worker = self._worker
        if worker is None:
            return
        self._jobs.put_nowait(None)
        await worker
        self._worker = None

    async def _drain(self) -> None:
        while True:
            job = await self._jobs.get()
            if job is None:
                return
            try:
                result = await job.operation()
            except Exception as exc:  # noqa: BLE001
                if not job.done.cancelled():
                    job.done.set_exception(exc)
                continue
            if not job.done.cancelled():
                job.done.set_result(result)
