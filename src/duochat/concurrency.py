"""Concurrency-related utility classes and functions."""

from itertools import count
from trio import Event, WouldBlock, open_nursery
from typing import Awaitable, Callable, Generic, Optional, Set, TypeVar

from .logger import log as base_log

__all__ = (
    "aclosing",
    "ExecutorShutdownError",
    "Future",
    "FutureCancelled",
    "TaskExecutor",
)

log = base_log.getChild("concurrency")

T = TypeVar("T")


class aclosing:
    """Context manager that closes an async generator when the context is
    exited. Similar to `closing()` in `contextlib`.
    """

    def __init__(self, aiter):
        self._aiter = aiter

    async def __aenter__(self):
        return self._aiter

    async def __aexit__(self, *args):
        await self._aiter.aclose()


class FutureCancelled(RuntimeError):
    """Exception raised when trying to retrieve the result or the exception
    of a future that was cancelled.
    """

    pass


class ExecutorShutdownError(RuntimeError):
    """Exception raised when trying to submit a task to an executor that was
    shut down already.
    """

    pass


class Future(Generic[T]):
    """Trio-compatible future object that holds the eventual result of a task.

    A future is resolved exactly once, either with a value, an exception, or
    by cancelling it. Waiting for the future does not affect the task that
    resolves it; if the wait itself is cancelled, the future keeps on
    waiting for its resolution.
    """

    def __init__(self):
        self._cancelled = False
        self._event = Event()
        self._exception: Optional[BaseException] = None
        self._value: Optional[T] = None

    def cancel(self) -> bool:
        """Cancels the future if it has not been resolved yet.

        Returns:
            whether the future was cancelled by this call
        """
        if self.done():
            return False

        self._cancelled = True
        self._event.set()
        return True

    def cancelled(self) -> bool:
        """Returns whether the future was cancelled."""
        return self._cancelled

    def done(self) -> bool:
        """Returns whether the future was resolved or cancelled."""
        return self._event.is_set()

    def exception(self) -> Optional[BaseException]:
        """Returns the exception that the future was resolved with, or
        ``None`` if it was resolved with a value.

        Raises:
            WouldBlock: if the future is not resolved yet
            FutureCancelled: if the future was cancelled
        """
        if not self.done():
            raise WouldBlock()
        if self._cancelled:
            raise FutureCancelled()
        return self._exception

    def result(self) -> T:
        """Returns the value that the future was resolved with.

        Raises:
            WouldBlock: if the future is not resolved yet
            FutureCancelled: if the future was cancelled
            Exception: the exception that the future was resolved with
        """
        if self.exception() is not None:
            raise self._exception
        return self._value

    def set_exception(self, exception: BaseException) -> None:
        """Resolves the future with an exception."""
        self._ensure_not_done()
        self._exception = exception
        self._event.set()

    def set_result(self, value: T) -> None:
        """Resolves the future with a value."""
        self._ensure_not_done()
        self._value = value
        self._event.set()

    async def wait(self) -> T:
        """Waits for the future to be resolved and returns its value.

        Raises:
            FutureCancelled: if the future was cancelled
            Exception: the exception that the future was resolved with
        """
        await self._event.wait()
        return self.result()

    def _ensure_not_done(self) -> None:
        if self.done():
            raise RuntimeError("future was already resolved")


class TaskExecutor:
    """Named task executor that runs submitted async functions concurrently
    in a Trio nursery and hands out futures for their results.

    The executor must be used as an async context manager; the nursery is
    open while the context is active. Leaving the context shuts the executor
    down and waits for the running tasks to finish.

    Shutting down the executor does not cancel running tasks. It only
    prevents new tasks from being submitted and cancels the ones that were
    submitted but have not started yet. Running tasks may check
    `is_shutdown` to find out that they should wrap up.
    """

    def __init__(self, name: str = "worker"):
        """Constructor.

        Parameters:
            name: name of the executor; used as a prefix in the names of the
                tasks that it spawns
        """
        self._name = name
        self._counter = count()
        self._nursery = None
        self._nursery_manager = None
        self._pending: Set[Future] = set()
        self._shutdown = False

    @property
    def is_shutdown(self) -> bool:
        """Whether the executor was shut down."""
        return self._shutdown

    @property
    def name(self) -> str:
        """The name of the executor."""
        return self._name

    def shutdown(self) -> None:
        """Shuts down the executor.

        New submissions will be refused and tasks that were submitted but not
        started yet are cancelled. Tasks that are already running are left
        alone. Calling this method multiple times is allowed.
        """
        if not self._shutdown:
            log.debug(f"Shutting down executor {self._name!r}")
            self._shutdown = True

        pending, self._pending = self._pending, set()
        for future in pending:
            future.cancel()

    def submit(
        self, func: Callable[..., Awaitable[T]], *args, name: Optional[str] = None
    ) -> Future[T]:
        """Submits an async function to the executor.

        Parameters:
            func: the async function to call
            args: positional arguments to call the function with
            name: short name of the task; defaults to the name of the
                function

        Returns:
            a future that resolves to the return value of the function, or to
            the exception that it raised

        Raises:
            ExecutorShutdownError: if the executor was shut down already
            RuntimeError: if the executor is not running
        """
        if self._shutdown:
            raise ExecutorShutdownError(f"Executor {self._name!r} is shut down")
        if self._nursery is None:
            raise RuntimeError(f"Executor {self._name!r} is not running")

        future = Future()
        task_name = "{0}-{1}-{2}".format(
            self._name, name or func.__name__, next(self._counter)
        )

        self._pending.add(future)
        self._nursery.start_soon(self._run, func, args, future, name=task_name)

        return future

    async def _run(self, func, args, future: Future) -> None:
        self._pending.discard(future)
        if future.done():
            return

        try:
            result = await func(*args)
        except Exception as ex:
            if not future.done():
                future.set_exception(ex)
        except BaseException:
            future.cancel()
            raise
        else:
            if not future.done():
                future.set_result(result)

    async def __aenter__(self):
        if self._nursery_manager is not None:
            raise RuntimeError(f"Executor {self._name!r} is already running")
        if self._shutdown:
            raise ExecutorShutdownError(f"Executor {self._name!r} is shut down")

        self._nursery_manager = open_nursery()
        self._nursery = await self._nursery_manager.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_value, traceback):
        self.shutdown()
        try:
            return await self._nursery_manager.__aexit__(
                exc_type, exc_value, traceback
            )
        finally:
            self._nursery = None
            self._nursery_manager = None
