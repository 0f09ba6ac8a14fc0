import logging
from time import sleep
from typing import Dict, List, Optional, Tuple, Union

import docker
from docker import DockerClient
from docker.errors import APIError, ContainerError, DockerException, ImageNotFound, NotFound
from docker.models.containers import Container

from localstack_utils.utils.container_utils.container_client import (
    CancellableStream,
    ContainerClient,
    ContainerException,
    DockerContainerStatus,
    DockerNotAvailable,
    NoSuchContainer,
    NoSuchImage,
    PortMappings,
)
from localstack_utils.utils.strings import to_str

LOG = logging.getLogger(__name__)


class SdkDockerClient(ContainerClient):
    """
    Class for managing Docker using the Python Docker SDK.
    """

    docker_client: Optional[DockerClient]

    def __init__(self):
        try:
            self.docker_client = self._create_client()
            logging.getLogger("urllib3").setLevel(logging.INFO)
        except DockerNotAvailable:
            self.docker_client = None

    def client(self):
        if self.docker_client:
            return self.docker_client
        # if the initialization failed before, try to initialize on-demand
        self.docker_client = self._create_client()
        return self.docker_client

    @staticmethod
    def _create_client():
        from localstack_utils.config import (
            DOCKER_SDK_DEFAULT_RETRIES,
            DOCKER_SDK_DEFAULT_TIMEOUT_SECONDS,
        )

        for attempt in range(0, DOCKER_SDK_DEFAULT_RETRIES + 1):
            try:
                return docker.from_env(timeout=DOCKER_SDK_DEFAULT_TIMEOUT_SECONDS)
            except DockerException as e:
                LOG.debug("Creating Docker SDK client failed: %s", e, exc_info=e)
                if attempt < DOCKER_SDK_DEFAULT_RETRIES:
                    # wait for a second before retrying
                    sleep(1)
                else:
                    # we are out of attempts
                    raise DockerNotAvailable("Docker not available") from e

    def get_container_status(self, container_name: str) -> DockerContainerStatus:
        try:
            container = self.client().containers.get(container_name)
            if container.status == "running":
                return DockerContainerStatus.UP
            elif container.status == "paused":
                return DockerContainerStatus.PAUSED
            else:
                return DockerContainerStatus.DOWN
        except NotFound:
            return DockerContainerStatus.NON_EXISTENT
        except APIError as e:
            raise ContainerException() from e

    def stop_container(self, container_name: str, timeout: int = 10) -> None:
        LOG.debug("Stopping container: %s", container_name)
        try:
            container = self.client().containers.get(container_name)
            container.stop(timeout=timeout)
        except NotFound:
            raise NoSuchContainer(container_name)
        except APIError as e:
            raise ContainerException() from e

    def remove_container(self, container_name: str, force=True) -> None:
        LOG.debug("Removing container: %s", container_name)
        try:
            container = self.client().containers.get(container_name)
            container.remove(force=force)
        except NotFound:
            if not force:
                raise NoSuchContainer(container_name)
        except APIError as e:
            raise ContainerException() from e

    def pull_image(self, docker_image: str) -> None:
        LOG.debug("Pulling Docker image: %s", docker_image)
        try:
            self.client().images.pull(docker_image)
        except ImageNotFound:
            raise NoSuchImage(docker_image)
        except APIError as e:
            raise ContainerException() from e

    def has_image(self, docker_image: str) -> bool:
        try:
            self.client().images.get(docker_image)
            return True
        except ImageNotFound:
            return False
        except APIError as e:
            raise ContainerException() from e

    def get_container_logs(self, container_name_or_id: str, safe: bool = False) -> str:
        try:
            container = self.client().containers.get(container_name_or_id)
            return to_str(container.logs())
        except NotFound:
            if safe:
                return ""
            raise NoSuchContainer(container_name_or_id)
        except APIError as e:
            if safe:
                return ""
            raise ContainerException() from e

    def stream_container_logs(self, container_name_or_id: str) -> CancellableStream:
        try:
            container = self.client().containers.get(container_name_or_id)
            return container.logs(stream=True, follow=True)
        except NotFound:
            raise NoSuchContainer(container_name_or_id)
        except APIError as e:
            raise ContainerException() from e

    def inspect_container(self, container_name_or_id: str) -> Dict[str, Union[Dict, str]]:
        try:
            return self.client().containers.get(container_name_or_id).attrs
        except NotFound:
            raise NoSuchContainer(container_name_or_id)
        except APIError as e:
            raise ContainerException() from e

    def start_container(self, container_name_or_id: str) -> None:
        LOG.debug("Starting container %s", container_name_or_id)
        try:
            container = self.client().containers.get(container_name_or_id)
            container.start()
        except NotFound:
            raise NoSuchContainer(container_name_or_id)
        except APIError as e:
            raise ContainerException(str(e)) from e

    def create_container(
        self,
        image_name: str,
        *,
        name: Optional[str] = None,
        entrypoint: Optional[str] = None,
        remove: bool = False,
        detach: bool = False,
        command: Optional[Union[List[str], str]] = None,
        ports: Optional[PortMappings] = None,
        env_vars: Optional[Dict[str, str]] = None,
        labels: Optional[Dict[str, str]] = None,
    ) -> str:
        LOG.debug("Creating container with attributes: %s", locals())
        try:
            kwargs = {}
            if ports:
                kwargs["ports"] = ports.to_dict()
            if labels:
                kwargs["labels"] = labels

            def create_container():
                return self.client().containers.create(
                    image=image_name,
                    command=command,
                    auto_remove=bool(remove),
                    name=name,
                    entrypoint=entrypoint,
                    environment=env_vars,
                    detach=bool(detach),
                    **kwargs,
                )

            try:
                container = create_container()
            except ImageNotFound:
                LOG.debug("Image not found. Pulling image %s", image_name)
                self.pull_image(image_name)
                container = create_container()
            return container.id
        except ImageNotFound:
            raise NoSuchImage(image_name)
        except APIError as e:
            # e.g., 409 Conflict if a container with the given name already exists
            raise ContainerException(str(e)) from e

    def exec_in_container(
        self,
        container_name_or_id: str,
        command: Union[List[str], str],
        env_vars: Optional[Dict[str, Optional[str]]] = None,
        user: Optional[str] = None,
    ) -> Tuple[bytes, bytes]:
        LOG.debug("Executing command in container %s: %s", container_name_or_id, command)
        try:
            container: Container = self.client().containers.get(container_name_or_id)
            result = container.exec_run(
                cmd=command,
                environment=env_vars,
                user=user or "",
                stdout=True,
                stderr=True,
                demux=True,
            )
            return_code = result[0]
            if isinstance(result[1], bytes):
                stdout = result[1]
                stderr = b""
            else:
                stdout, stderr = result[1]
            stdout = stdout or b""
            stderr = stderr or b""
            if return_code != 0:
                raise ContainerException(
                    f"Exec command returned with exit code {return_code}", stdout, stderr
                )
            return stdout, stderr
        except (ContainerError, NotFound):
            raise NoSuchContainer(container_name_or_id)
        except APIError as e:
            raise ContainerException() from e
