"""Error handling helpers for best-effort operations.

Used where a failure should degrade gracefully instead of aborting the request:
image compression falls back to the original bytes, a direct JSON parse falls
back to the brace scanner, and so on.
"""

from typing import Callable, TypeVar

from src.utils.logger import logger

T = TypeVar("T")


def _log_error(operation_name: str, exception: Exception, log_level: str = "warning") -> None:
    """Log error with appropriate level.

    Args:
        operation_name: Description for logging
        exception: Exception that occurred
        log_level: Logging level ("debug", "warning", "error"). Default: "warning".
    """
    msg = f"{operation_name}: {exception}"
    if log_level == "debug":
        logger.debug(msg)
    elif log_level == "error":
        logger.error(msg)
    else:
        logger.warning(msg)


def safe_execute_sync(
    func: Callable[[], T],
    operation_name: str,
    log_level: str = "warning",
    default_return=None,
    reraise: bool = False,
):
    """Safely execute a sync operation with consistent error logging.

    Args:
        func: Callable to execute (no args).
        operation_name: Description for logging (e.g., "Image compression").
        log_level: Logging level ("debug", "warning", "error"). Default: "warning".
        default_return: Value to return on exception. Default: None.
        reraise: If True, re-raise exception after logging. Default: False.

    Returns:
        Result of func if successful, default_return on exception if reraise=False.

    Raises:
        Exception: Original exception if reraise=True.

    Example:
        >>> data = safe_execute_sync(lambda: json.loads(text), "Direct JSON parse", log_level="debug")
    """
    try:
        return func()
    except Exception as e:
        _log_error(operation_name, e, log_level)
        if reraise:
            raise
        return default_return
