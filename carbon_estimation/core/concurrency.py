"""
Fan-out/fan-in execution of independent remote calls.

Each group of independent engine requests is submitted to a thread pool and
joined before the pipeline moves on. The first failure cancels every sibling
that has not started yet and is re-raised to the caller.

Author: Diego Bengochea
"""

import time
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Any, Callable, Dict, Mapping, Optional, TypeVar

from tqdm import tqdm

from shared_utils import get_logger

from .exceptions import RemoteCallError

K = TypeVar('K')


def run_concurrently(
    tasks: Mapping[K, Callable[[], Any]],
    max_workers: Optional[int] = None,
    timeout: Optional[float] = None,
    description: str = 'Remote calls',
    show_progress: bool = False
) -> Dict[K, Any]:
    """
    Run independent callables concurrently and collect their results.

    Args:
        tasks: Mapping from task key to zero-argument callable
        max_workers: Thread pool size (default: one thread per task)
        timeout: Seconds to wait for the whole group, None waits forever
        description: Label used in logs and the progress bar
        show_progress: Display a tqdm progress bar

    Returns:
        Dict mapping each task key to its result

    Raises:
        RemoteCallError: If the group does not finish within the timeout
        Exception: The first exception raised by any task
    """
    logger = get_logger('carbon_estimation.concurrency')

    if not tasks:
        return {}

    workers = max_workers or len(tasks)
    logger.debug(f"{description}: submitting {len(tasks)} tasks on {workers} workers")

    executor = ThreadPoolExecutor(max_workers=workers)
    try:
        futures = {executor.submit(task): key for key, task in tasks.items()}

        progress = tqdm(total=len(futures), desc=description, disable=not show_progress)
        pending = set(futures)
        deadline = None if timeout is None else time.monotonic() + timeout
        try:
            while pending:
                remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
                done, pending = wait(pending, timeout=remaining, return_when=FIRST_EXCEPTION)
                if not done:
                    raise RemoteCallError(
                        f"timed out after {timeout} seconds with {len(pending)} tasks pending",
                        operation=description,
                    )
                progress.update(len(done))
                for future in done:
                    error = future.exception()
                    if error is not None:
                        logger.error(f"{description}: task {futures[future]!r} failed: {error}")
                        raise error
        finally:
            progress.close()
            for future in pending:
                future.cancel()

        return {key: future.result() for future, key in futures.items()}
    finally:
        executor.shutdown(wait=False, cancel_futures=True)
