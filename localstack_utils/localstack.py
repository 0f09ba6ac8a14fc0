"""
Lifecycle management of the LocalStack Docker container: starts (or adopts) the container, waits until it is
ready, and exposes the endpoints of its services.
"""
import contextlib
import contextvars
import logging
import threading
from enum import Enum
from typing import Iterator, NamedTuple, Optional

from localstack_utils import constants
from localstack_utils.container.configuration import LocalstackDockerConfiguration
from localstack_utils.container.container import LocalstackContainer
from localstack_utils.container.ports import PortMapExtractor, extract_port_map
from localstack_utils.endpoints import EndpointResolver
from localstack_utils.exceptions import (
    AlreadyStartedError,
    ContainerNotReadyError,
    NotReadyReason,
    StartupError,
)
from localstack_utils.utils.container_utils.container_client import ContainerClient
from localstack_utils.utils.docker_utils import get_default_docker_client
from localstack_utils.utils.functions import call_safe, log_duration

LOG = logging.getLogger(__name__)


class StartupOutcome(Enum):
    STARTED = "started"
    """a new container was started and became ready"""
    ADOPTED = "adopted"
    """starting a new container failed, an already running container is used instead"""


class StartupResult(NamedTuple):
    outcome: StartupOutcome
    container: LocalstackContainer
    error: Optional[Exception] = None
    """the error that caused a running container to be adopted"""

    @property
    def adopted(self) -> bool:
        return self.outcome == StartupOutcome.ADOPTED


class Localstack(EndpointResolver):
    """
    Manages a single LocalStack container. While a container is started (or adopted), the instance is locked
    and further calls to ``startup`` fail until ``stop`` is called.
    """

    def __init__(
        self,
        docker_client: Optional[ContainerClient] = None,
        port_map_extractor: PortMapExtractor = extract_port_map,
    ):
        super().__init__()
        self._docker_client = docker_client
        self.port_map_extractor = port_map_extractor
        self._mutex = threading.Lock()
        self._locked = False

    @property
    def docker_client(self) -> ContainerClient:
        if self._docker_client is None:
            self._docker_client = get_default_docker_client()
        return self._docker_client

    @property
    def is_locked(self) -> bool:
        return self._locked

    def _lock(self):
        with self._mutex:
            if self._locked:
                raise AlreadyStartedError()
            self._locked = True

    def _unlock(self):
        with self._mutex:
            self._locked = False

    @log_duration()
    def startup(
        self,
        configuration: Optional[LocalstackDockerConfiguration] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> StartupResult:
        """
        Starts a new LocalStack container and blocks until it is ready.

        If the container cannot be started (e.g., because a container with the same name is already running,
        or the edge port is taken), the running container named ``configuration.container_name`` is used
        instead, unless ``configuration.ignore_docker_run_errors`` is disabled.

        :param configuration: how to start the container, the defaults if not given
        :param cancel_event: aborts waiting for the container when set
        :return: whether a container was started or adopted
        :raises AlreadyStartedError: if this instance already manages a container
        :raises StartupError: if neither starting nor adopting a container succeeded
        """
        configuration = configuration or LocalstackDockerConfiguration()
        self._lock()

        self.external_host_name = configuration.external_host_name
        self.container = None
        self.port_map = None

        created = None
        try:
            created = LocalstackContainer.create(configuration, self.docker_client)
            self.container = created
            self.container.start()
            self._load_port_map(configuration)
            LOG.info("Waiting for LocalStack container to be ready...")
            self.container.wait_for_log_token(
                constants.READY_TOKEN,
                timeout=configuration.ready_timeout,
                cancel_event=cancel_event,
            )
        except Exception as e:
            cancelled = (
                isinstance(e, ContainerNotReadyError) and e.reason == NotReadyReason.CANCELLED
            )
            if cancelled or not configuration.ignore_docker_run_errors:
                LOG.error("Could not start the LocalStack container: %s", e)
                self._release(created)
                raise StartupError() from e
            LOG.warning(
                "Could not start the LocalStack container (%s), using the running container %s",
                e,
                configuration.container_name,
            )
            self._adopt_running(configuration, created)
            return StartupResult(StartupOutcome.ADOPTED, self.container, e)

        LOG.info("LocalStack container %s is ready", self.container.container_id)
        return StartupResult(StartupOutcome.STARTED, self.container)

    def attach(
        self, configuration: Optional[LocalstackDockerConfiguration] = None
    ) -> StartupResult:
        """Uses the running container named ``configuration.container_name`` without starting a new one."""
        configuration = configuration or LocalstackDockerConfiguration()
        self._lock()

        self.external_host_name = configuration.external_host_name
        self.container = None
        self.port_map = None
        try:
            self.container = LocalstackContainer.get_running(
                configuration.container_name, self.docker_client
            )
            self._load_port_map(configuration)
        except Exception as e:
            self._unlock()
            raise StartupError(
                f"Could not use the running container {configuration.container_name}"
            ) from e
        return StartupResult(StartupOutcome.ADOPTED, self.container)

    def _adopt_running(
        self,
        configuration: LocalstackDockerConfiguration,
        created: Optional[LocalstackContainer],
    ):
        try:
            self.container = LocalstackContainer.get_running(
                configuration.container_name, self.docker_client
            )
            self._load_port_map(configuration)
        except Exception as e:
            LOG.error("Could not use the running container %s: %s", configuration.container_name, e)
            # the running container is left alone, it was not started by this instance
            self._release(created)
            raise StartupError() from e

        if created is not None and created.container_id != self.container.container_id:
            call_safe(created.stop, exception_message="error removing the unused container")

    def _load_port_map(self, configuration: LocalstackDockerConfiguration):
        text = self.container.execute_command(["cat", configuration.port_config_filename])
        self.port_map = self.port_map_extractor(text)

    def _release(self, created: Optional[LocalstackContainer]):
        """Discards the container created by a failed startup (if any) and unlocks the instance."""
        try:
            if created is not None:
                call_safe(created.stop, exception_message="error stopping the LocalStack container")
        finally:
            self.container = None
            self.port_map = None
            self._unlock()

    def stop(self):
        """Stops the container (if any) and releases the lock. Calling it repeatedly has no further effect."""
        try:
            if self.container is not None:
                self.container.stop()
        finally:
            self._unlock()

    def is_running(self) -> bool:
        if self.container is None:
            return False
        return self.container.is_running()


_current: contextvars.ContextVar[Optional[Localstack]] = contextvars.ContextVar(
    "localstack", default=None
)


def get_localstack() -> Localstack:
    """Returns the instance bound to the current context, created on first use."""
    instance = _current.get()
    if instance is None:
        instance = Localstack()
        _current.set(instance)
    return instance


@contextlib.contextmanager
def use_localstack(instance: Localstack) -> Iterator[Localstack]:
    """Binds the given instance to the current context, so ``get_localstack`` returns it within the block."""
    token = _current.set(instance)
    try:
        yield instance
    finally:
        _current.reset(token)


def get_default_region() -> str:
    return constants.DEFAULT_REGION
