"""Higher-order functional tools."""
import functools
import logging
from time import perf_counter
from typing import Any, Callable, Dict, NamedTuple, Optional, Tuple

LOG = logging.getLogger(__name__)


class Result(NamedTuple):
    """Wraps the possible outcomes of a function call, that can either be a value or an exception."""

    error: Optional[Exception]
    value: Optional[Any] = None

    @property
    def has_error(self) -> bool:
        return self.error is not None


def call_safe(
    func: Callable, args: Tuple = None, kwargs: Dict = None, exception_message: str = None
) -> Optional[Any]:
    """
    Call the given function with the given arguments, and if it fails, log the given exception_message.
    If logging.DEBUG is set for the logger, then we also log the traceback.

    :param func: function to call
    :param args: arguments to pass
    :param kwargs: keyword arguments to pass
    :param exception_message: message to log on exception
    :return: whatever the func returns
    """
    result = call_safe_with_result(func, args, kwargs, exception_message)
    if result.has_error:
        return None
    return result.value


def call_safe_with_result(
    func: Callable, args: Tuple = None, kwargs: Dict = None, exception_message: str = None
) -> Result:
    """Similar as call_safe, but returns a Result object that contains the value returned by func or the raised
    exception."""
    if exception_message is None:
        exception_message = "error calling function %s" % func.__name__
    if args is None:
        args = ()
    if kwargs is None:
        kwargs = {}

    try:
        value = func(*args, **kwargs)
        return Result(value=value, error=None)
    except Exception as e:
        if LOG.isEnabledFor(logging.DEBUG):
            LOG.exception(exception_message)
        else:
            LOG.warning("%s: %s", exception_message, e)
        return Result(error=e)


def log_duration(name=None, min_ms=500):
    """Function decorator to log the duration of function invocations."""

    def wrapper(f):
        @functools.wraps(f)
        def wrapped(*args, **kwargs):
            start_time = perf_counter()
            try:
                return f(*args, **kwargs)
            finally:
                end_time = perf_counter()
                func_name = name or f.__name__
                duration = (end_time - start_time) * 1000
                if duration > min_ms:
                    LOG.info('Execution of "%s" took %.2fms', func_name, duration)

        return wrapped

    return wrapper
