import logging
import os
from typing import Optional, Union

from localstack_utils.constants import (
    DEFAULT_PORT_EDGE,
    FALSE_STRINGS,
    LOG_LEVELS,
    TRACE_LOG_LEVELS,
    TRUE_STRINGS,
)

# environment variables read on every call, so tests and callers can change them at runtime
ENV_CONFIG_USE_SSL = "USE_SSL"
ENV_CONFIG_EDGE_PORT = "EDGE_PORT"

# values that disable a flag checked with `is_env_config_set`
DISABLED_FLAG_VALUES = ("false", "0", "")


def eval_log_type(env_var_name: str) -> Union[str, bool]:
    """Get the log type from environment variable"""
    ls_log = os.environ.get(env_var_name, "").lower().strip()
    return ls_log if ls_log in LOG_LEVELS else False


def parse_boolean_env(env_var_name: str) -> Optional[bool]:
    """Parse the value of the given env variable and return True/False, or None if it is not a boolean value."""
    value = os.environ.get(env_var_name, "").lower().strip()
    if value in TRUE_STRINGS:
        return True
    if value in FALSE_STRINGS:
        return False
    return None


def is_env_true(env_var_name: str) -> bool:
    """Whether the given environment variable has a truthy value."""
    return os.environ.get(env_var_name, "").lower().strip() in TRUE_STRINGS


def is_env_not_false(env_var_name: str) -> bool:
    """Whether the given environment variable is empty or has a truthy value."""
    return os.environ.get(env_var_name, "").lower().strip() not in FALSE_STRINGS


def is_env_config_set(env_var_name: str) -> bool:
    """
    Whether the given environment variable is set to anything other than ``false``, ``0`` or an empty
    string. Unlike ``is_env_true``, any other value (e.g., ``yes``) enables the flag.
    """
    value = os.environ.get(env_var_name)
    return value is not None and value.strip() not in DISABLED_FLAG_VALUES


def use_ssl() -> bool:
    return is_env_config_set(ENV_CONFIG_USE_SSL)


def get_protocol() -> str:
    return "https" if use_ssl() else "http"


def get_edge_port() -> int:
    """
    Returns the edge port through which LocalStack multiplexes all service APIs. Can be overridden with
    ``EDGE_PORT``, a blank value counts as not set.
    """
    value = os.environ.get(ENV_CONFIG_EDGE_PORT)
    if value is None or not value.strip():
        return DEFAULT_PORT_EDGE
    return int(value)


# whether to enable debug output
DEBUG = is_env_true("DEBUG")

# log level, one of LOG_LEVELS, takes precedence over DEBUG
LS_LOG = eval_log_type("LS_LOG")

# timeout and retries for creating the Docker SDK client
DOCKER_SDK_DEFAULT_TIMEOUT_SECONDS = int(os.environ.get("DOCKER_SDK_DEFAULT_TIMEOUT_SECONDS") or 60)
DOCKER_SDK_DEFAULT_RETRIES = int(os.environ.get("DOCKER_SDK_DEFAULT_RETRIES") or 0)


def is_trace_logging_enabled():
    if LS_LOG:
        log_level = str(LS_LOG).upper()
        return log_level.lower() in TRACE_LOG_LEVELS
    return False


# set log levels immediately, but will be overwritten later by setup_logging
if DEBUG:
    logging.getLogger("localstack_utils").setLevel(logging.DEBUG)
