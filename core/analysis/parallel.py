"""
Parallel Fan-out Helper

Runs independent read-only branches concurrently and joins them. If any
branch fails, pending siblings are cancelled and the first failure (in
submission order) is re-raised unchanged, so callers never see partial
results.
"""

import logging
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


def run_in_parallel(
    tasks: Dict[str, Callable[[], Any]],
    max_workers: Optional[int] = None,
    name: str = "analytics"
) -> Dict[str, Any]:
    """
    Execute named zero-argument callables concurrently.

    Args:
        tasks: Mapping of branch name to callable
        max_workers: Thread limit; one thread per task when None
        name: Thread name prefix, used in log messages

    Returns:
        Mapping of branch name to its result, in the order of `tasks`

    Raises:
        Exception: The first exception raised by any branch

    Example:
        >>> run_in_parallel({"a": lambda: 1, "b": lambda: 2})
        {'a': 1, 'b': 2}
    """
    if not tasks:
        return {}

    workers = max_workers or len(tasks)
    executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix=name)
    try:
        futures = {branch: executor.submit(fn) for branch, fn in tasks.items()}
        done, pending = wait(futures.values(), return_when=FIRST_EXCEPTION)

        for branch, future in futures.items():
            if future in done and future.exception() is not None:
                for sibling in pending:
                    sibling.cancel()
                logger.error(f"{name} branch '{branch}' failed: {future.exception()}")
                raise future.exception()

        return {branch: future.result() for branch, future in futures.items()}
    finally:
        executor.shutdown(wait=True, cancel_futures=True)
