import logging
import os
import threading
import time
from typing import Dict, List, Optional, Pattern, Union

from localstack_utils import config
from localstack_utils.container.configuration import LocalstackDockerConfiguration
from localstack_utils.container.logs import wait_for_log_token
from localstack_utils.exceptions import ContainerNotReadyError, NotReadyReason, PortNotMappedError
from localstack_utils.utils.container_utils.container_client import (
    CancellableStream,
    ContainerClient,
    DockerContainerStatus,
    NoSuchContainer,
    PortMappings,
)
from localstack_utils.utils.docker_utils import get_default_docker_client
from localstack_utils.utils.strings import to_str
from localstack_utils.utils.sync import poll_condition

LOG = logging.getLogger(__name__)


def _build_environment(configuration: LocalstackDockerConfiguration) -> Dict[str, str]:
    env_vars = {"LOCALSTACK_HOSTNAME": configuration.external_host_name}
    # forward the host settings that change the endpoints the container serves
    for name in (config.ENV_CONFIG_USE_SSL, config.ENV_CONFIG_EDGE_PORT):
        value = os.environ.get(name)
        if value is not None:
            env_vars[name] = value
    env_vars.update(configuration.environment_variables)
    return env_vars


def _build_port_mappings(configuration: LocalstackDockerConfiguration) -> PortMappings:
    ports = PortMappings()
    edge_port = config.get_edge_port()
    ports.add(edge_port, None if configuration.randomize_ports else edge_port)
    for mapping in configuration.port_mappings:
        ports.add(mapping.internal, mapping.external)
    return ports


class LocalstackContainer:
    """
    Handle of a single LocalStack container. The handle is owned by the ``Localstack`` instance that created or
    adopted it.
    """

    container_id: str
    docker_client: ContainerClient

    def __init__(
        self,
        container_id: str,
        docker_client: Optional[ContainerClient] = None,
        started: bool = True,
    ):
        self.container_id = container_id
        self.docker_client = docker_client or get_default_docker_client()
        self.started = started
        self._port_bindings: Optional[Dict] = None

    @classmethod
    def create(
        cls,
        configuration: LocalstackDockerConfiguration,
        docker_client: Optional[ContainerClient] = None,
    ) -> "LocalstackContainer":
        """Creates (but does not start) a container according to the given configuration."""
        docker_client = docker_client or get_default_docker_client()
        image = configuration.full_image_name

        if configuration.pull_new_image or not docker_client.has_image(image):
            LOG.info("Pulling image %s", image)
            docker_client.pull_image(image)

        ports = _build_port_mappings(configuration)
        LOG.debug(
            "Creating container %s from image %s with ports %s",
            configuration.container_name,
            image,
            ports,
        )
        container_id = docker_client.create_container(
            image,
            name=configuration.container_name,
            remove=True,
            detach=True,
            ports=ports,
            env_vars=_build_environment(configuration),
        )
        return cls(container_id, docker_client, started=False)

    @classmethod
    def get_running(
        cls, container_name: str, docker_client: Optional[ContainerClient] = None
    ) -> "LocalstackContainer":
        """Returns a handle of the running container with the given name or id."""
        docker_client = docker_client or get_default_docker_client()
        if docker_client.get_container_status(container_name) != DockerContainerStatus.UP:
            raise NoSuchContainer(container_name, message=f"No running container {container_name}")
        container_id = docker_client.get_container_id(container_name)
        LOG.info("Using running LocalStack container %s", container_id)
        return cls(container_id, docker_client)

    def start(self):
        self.docker_client.start_container(self.container_id)
        self.started = True
        LOG.info("Started LocalStack container %s", self.container_id)

    def is_running(self) -> bool:
        status = self.docker_client.get_container_status(self.container_id)
        return status == DockerContainerStatus.UP

    def stop(self, timeout: int = 10):
        """Stops the container, or removes it if it was created but never started."""
        try:
            if not self.started:
                # auto-removal only kicks in for containers that have been running
                LOG.info("Removing LocalStack container %s", self.container_id)
                self.docker_client.remove_container(self.container_id, force=True)
                return
            LOG.info("Stopping LocalStack container %s", self.container_id)
            self.docker_client.stop_container(self.container_id, timeout=timeout)
        except NoSuchContainer:
            # auto-removed containers disappear once they are stopped
            LOG.debug("Container %s does not exist anymore", self.container_id)

    def execute_command(self, command: List[str]) -> str:
        stdout, _ = self.docker_client.exec_in_container(self.container_id, command)
        return to_str(stdout)

    def get_external_port_for(self, internal_port: int) -> int:
        """Returns the host port the given internal TCP port is published on."""
        key = f"{internal_port}/tcp"
        if self._port_bindings is None or not self._port_bindings.get(key):
            # ports assigned by docker are only known after the container has started
            self._port_bindings = self.docker_client.get_port_bindings(self.container_id)
        for binding in self._port_bindings.get(key) or []:
            if binding.get("HostPort"):
                return int(binding["HostPort"])
        raise PortNotMappedError(internal_port)

    def stream_logs(self) -> CancellableStream:
        return self.docker_client.stream_container_logs(self.container_id)

    def get_logs(self) -> str:
        return self.docker_client.get_container_logs(self.container_id, safe=True)

    def wait_for_log_token(
        self,
        pattern: Union[str, Pattern],
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> str:
        """
        Blocks until a line of the container output matches the given pattern.

        :raises ContainerNotReadyError: on timeout, cancellation, or if the container exits before
        """
        start_time = time.monotonic()
        status = None

        def unpaused_or_cancelled():
            nonlocal status
            status = self.docker_client.get_container_status(self.container_id)
            if cancel_event is not None and cancel_event.is_set():
                return True
            return status != DockerContainerStatus.PAUSED

        if not poll_condition(unpaused_or_cancelled, timeout=timeout, interval=0.5):
            raise ContainerNotReadyError(NotReadyReason.TIMEOUT)
        if cancel_event is not None and cancel_event.is_set():
            raise ContainerNotReadyError(NotReadyReason.CANCELLED)
        if status in (DockerContainerStatus.DOWN, DockerContainerStatus.NON_EXISTENT):
            # an exited container will never print the token
            raise ContainerNotReadyError(NotReadyReason.STREAM_CLOSED)
        if timeout is not None:
            timeout = max(timeout - (time.monotonic() - start_time), 0)

        return wait_for_log_token(
            self.stream_logs(), pattern, timeout=timeout, cancel_event=cancel_event
        )

    def __repr__(self):
        return f"LocalstackContainer({self.container_id!r})"
