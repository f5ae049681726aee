"""
Render Worker Pool
==================

Fixed-size pool of worker threads for CPU-bound rendering.

Each worker thread owns one layout engine for its whole life. Async callers
hand a job to the pool and suspend on a future until a worker finishes it,
so the event loop keeps serving other requests meanwhile.
"""

import asyncio
import queue
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, TypeVar

from html_to_image.config.logging import get_logger
from html_to_image.core.errors import ApiError, summarize_exception
from html_to_image.core.rendering.engine import BaseLayoutEngine

logger = get_logger(__name__)

T = TypeVar("T")
EngineFactory = Callable[[], BaseLayoutEngine]
RenderJob = Callable[[BaseLayoutEngine], T]


@dataclass
class _QueuedJob:
    fn: Callable[[BaseLayoutEngine], Any]
    future: "Future[Any]"
    release: Callable[[], None]


class RenderWorkerPool:
    """
    Bounded pool of render worker threads.

    At most ``max_workers`` jobs run at once and at most ``max_pending`` more
    wait in the queue. Further callers wait for admission, which is the
    service's backpressure point.

    A job whose caller goes away before a worker picks it up is dropped, and
    keeps its admission slot until a worker takes it off the queue. A job
    that already started runs to completion and its result is discarded;
    engines expose no cancellation point.
    """

    def __init__(
        self,
        engine_factory: EngineFactory,
        max_workers: int = 4,
        max_pending: int = 16,
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if max_pending < 0:
            raise ValueError("max_pending must not be negative")

        self.engine_factory = engine_factory
        self.max_workers = max_workers
        self.max_pending = max_pending
        self.logger: Any = logger.bind(component="render_worker_pool")

        self._jobs: "queue.Queue[Optional[_QueuedJob]]" = queue.Queue()
        self._threads: List[threading.Thread] = []
        self._lock = threading.Lock()
        self._busy = 0
        self._admitted = 0
        self._started = False
        self._closed = False
        self._admission: Optional[asyncio.Semaphore] = None

    @property
    def capacity(self) -> int:
        return self.max_workers + self.max_pending

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        """Start the worker threads."""
        with self._lock:
            if self._closed:
                raise RuntimeError("render worker pool is shut down")
            if self._started:
                return
            self._started = True
            for _ in range(self.max_workers):
                self._spawn_worker()
        self.logger.info(
            "Render worker pool started", workers=self.max_workers, max_pending=self.max_pending
        )

    def _spawn_worker(self) -> None:
        index = len(self._threads)
        thread = threading.Thread(
            target=self._worker_main, name=f"render-worker-{index}", daemon=True
        )
        self._threads.append(thread)
        thread.start()

    async def run(self, job: RenderJob[T]) -> T:
        """
        Run ``job`` on a worker and wait for its result.

        Raises:
            ApiError: the job's own classified error, or ``task`` if the
                worker failed or the pool is shut down
        """
        if self._closed:
            raise ApiError.task("render worker pool is shut down")
        if not self._started:
            self.start()

        admission = self._get_admission()
        await admission.acquire()
        loop = asyncio.get_running_loop()

        def release() -> None:
            with self._lock:
                self._admitted -= 1
            if not loop.is_closed():
                loop.call_soon_threadsafe(admission.release)

        future: "Future[T]" = Future()
        with self._lock:
            self._admitted += 1
            closed = self._closed
            if not closed:
                self._jobs.put(_QueuedJob(fn=job, future=future, release=release))
        if closed:
            release()
            raise ApiError.task("render worker pool is shut down")

        try:
            return await asyncio.wrap_future(future)
        except ApiError:
            raise
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.logger.error("Render job failed unexpectedly", error=str(e), exc_info=e)
            raise ApiError.task(summarize_exception(e)) from e

    def _get_admission(self) -> asyncio.Semaphore:
        if self._admission is None:
            self._admission = asyncio.Semaphore(self.capacity)
        return self._admission

    def _worker_main(self) -> None:
        name = threading.current_thread().name
        log = self.logger.bind(worker=name)
        engine: Optional[BaseLayoutEngine] = None
        crashed = False
        log.debug("Render worker started")
        try:
            while True:
                job = self._jobs.get()
                if job is None:
                    break
                if not job.future.set_running_or_notify_cancel():
                    log.debug("Skipping render job cancelled before start")
                    job.release()
                    continue

                with self._lock:
                    self._busy += 1
                try:
                    if engine is None:
                        engine = self.engine_factory()
                    result = job.fn(engine)
                except Exception as e:
                    job.future.set_exception(e)
                except BaseException as e:
                    crashed = True
                    job.future.set_exception(RuntimeError(f"render worker {name} aborted: {e!r}"))
                    raise
                else:
                    job.future.set_result(result)
                finally:
                    with self._lock:
                        self._busy -= 1
                    job.release()
        finally:
            if engine is not None:
                try:
                    engine.close()
                except Exception as e:
                    log.warning("Failed to close layout engine", error=str(e))
            if crashed:
                log.error("Render worker aborted")
                with self._lock:
                    if not self._closed:
                        self._spawn_worker()
            else:
                log.debug("Render worker stopped")

    def stats(self) -> Dict[str, int]:
        """Return worker pool statistics."""
        with self._lock:
            return {
                "workers": sum(1 for t in self._threads if t.is_alive()),
                "busy_workers": self._busy,
                "admitted_jobs": self._admitted,
                "capacity": self.capacity,
            }

    def close(self, wait: bool = True) -> None:
        """
        Stop accepting jobs and stop the workers after the queued jobs finish.

        Each worker closes its own engine on its own thread.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            threads = list(self._threads)
            for _ in threads:
                self._jobs.put(None)

        if wait:
            for thread in threads:
                thread.join()
        self.logger.info("Render worker pool closed")

    async def aclose(self) -> None:
        """Close the pool without blocking the event loop."""
        await asyncio.to_thread(self.close)

    async def __aenter__(self) -> "RenderWorkerPool":
        self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
