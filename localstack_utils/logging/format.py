"""Log record formatting of the localstack-utils CLI."""
import logging
from functools import lru_cache

PACKAGE_PREFIX = "localstack_utils."
MAX_THREAD_NAME_LEN = 12
MAX_NAME_LEN = 24

LOG_FORMAT = (
    "%(asctime)s.%(msecs)03d %(ls_level)5s --- "
    f"[%(ls_thread){MAX_THREAD_NAME_LEN}s] %(ls_name)-{MAX_NAME_LEN}s : %(message)s"
)
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

# level names that do not fit into five characters
SHORT_LEVEL_NAMES = {
    logging.CRITICAL: "FATAL",
    logging.WARNING: "WARN",
}


class DefaultFormatter(logging.Formatter):
    def __init__(self, fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT):
        super().__init__(fmt=fmt, datefmt=datefmt)


class AddFormattedAttributes(logging.Filter):
    """
    Adds the attributes ``LOG_FORMAT`` refers to: ``ls_level`` (at most five characters), ``ls_name`` (see
    ``short_logger_name``) and ``ls_thread`` (the tail of the thread name, e.g., ``-log-watcher``).
    """

    def filter(self, record):
        record.ls_level = SHORT_LEVEL_NAMES.get(record.levelno, record.levelname)
        record.ls_name = short_logger_name(record.name)
        record.ls_thread = record.threadName[-MAX_THREAD_NAME_LEN:]
        return True


@lru_cache(maxsize=256)
def short_logger_name(name: str, length: int = MAX_NAME_LEN) -> str:
    """
    Shortens a logger name to at most ``length`` characters. Loggers of this package are named relative to
    it, then leading parts are reduced to their first letter until the name fits, e.g.,
    ``docker.utils.socket`` with length=12 turns into ``d.u.socket``. The last part is never abbreviated,
    but cut off if it alone is too long.
    """
    if name.startswith(PACKAGE_PREFIX):
        name = name[len(PACKAGE_PREFIX) :]

    parts = name.split(".")
    for i in range(len(parts) - 1):
        if len(".".join(parts)) <= length:
            break
        parts[i] = parts[i][0]

    return ".".join(parts)[:length]
