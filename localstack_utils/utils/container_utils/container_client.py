import logging
from abc import ABCMeta, abstractmethod
from enum import Enum, unique
from typing import Dict, List, Optional, Protocol, Tuple, Union

LOG = logging.getLogger(__name__)


@unique
class DockerContainerStatus(Enum):
    DOWN = -1
    NON_EXISTENT = 0
    UP = 1
    PAUSED = 2


class ContainerException(Exception):
    def __init__(self, message=None, stdout=None, stderr=None) -> None:
        self.message = message or "Error during the communication with the docker daemon"
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(self.message)


class NoSuchContainer(ContainerException):
    def __init__(self, container_name_or_id: str, message=None, stdout=None, stderr=None) -> None:
        message = message or f"Docker container {container_name_or_id} not found"
        super().__init__(message, stdout, stderr)
        self.container_name_or_id = container_name_or_id


class NoSuchImage(ContainerException):
    def __init__(self, image_name: str, message=None, stdout=None, stderr=None) -> None:
        message = message or f"Docker image {image_name} not found"
        super().__init__(message, stdout, stderr)
        self.image_name = image_name


class DockerNotAvailable(ContainerException):
    def __init__(self, message=None, stdout=None, stderr=None) -> None:
        message = message or "Docker not available"
        super().__init__(message, stdout, stderr)


class CancellableStream(Protocol):
    """Describes a generator that can be closed. Borrowed from ``docker.types.daemon``."""

    def __iter__(self):
        raise NotImplementedError

    def __next__(self):
        raise NotImplementedError

    def close(self):
        raise NotImplementedError


class PortMappings:
    """Maps container ports to host ports. A host port of ``None`` lets Docker pick a random free port."""

    def __init__(self):
        self.mappings: Dict[Tuple[int, str], Optional[int]] = {}

    def add(self, port: int, mapped: Optional[int] = None, protocol: str = "tcp"):
        """
        Publish the given container port.

        :param port: the port inside the container
        :param mapped: the host port, or None for a random host port
        :param protocol: tcp or udp
        """
        if port is None or int(port) <= 0:
            raise ValueError("Unable to add mapping for invalid port: %s" % port)
        if mapped is not None and int(mapped) <= 0:
            raise ValueError("Unable to add mapping to invalid host port: %s" % mapped)
        protocol = str(protocol or "tcp").lower()
        self.mappings[(int(port), protocol)] = int(mapped) if mapped is not None else None

    def to_dict(self) -> Dict[str, Optional[int]]:
        """Returns the mappings in the format of the ``ports`` argument of the Docker SDK."""
        result = {}
        for (container_port, protocol), host_port in self.mappings.items():
            key = f"{container_port}/{protocol}"
            result[key] = host_port
        return result

    def __repr__(self):
        return f"<PortMappings: {self.to_dict()}>"


class ContainerClient(metaclass=ABCMeta):
    @abstractmethod
    def get_container_status(self, container_name: str) -> DockerContainerStatus:
        """Returns the status of the container with the given name"""
        pass

    @abstractmethod
    def stop_container(self, container_name: str, timeout: int = 10):
        """Stops container with given name
        :param container_name: Container identifier (name or id) of the container to be stopped
        :param timeout: Timeout after which SIGKILL is sent to the container.
        """
        pass

    @abstractmethod
    def remove_container(self, container_name: str, force=True) -> None:
        """Removes the container with the given name, e.g., one that was created but never started"""
        pass

    @abstractmethod
    def pull_image(self, docker_image: str) -> None:
        """Pulls an image with a given name from a docker registry"""
        pass

    @abstractmethod
    def has_image(self, docker_image: str) -> bool:
        """Whether the given image (name and tag) is available locally"""
        pass

    @abstractmethod
    def get_container_logs(self, container_name_or_id: str, safe: bool = False) -> str:
        """Get all logs of a given container"""
        pass

    @abstractmethod
    def stream_container_logs(self, container_name_or_id: str) -> CancellableStream:
        """Returns a blocking generator you can iterate over to retrieve log output as it happens."""
        pass

    @abstractmethod
    def inspect_container(self, container_name_or_id: str) -> Dict[str, Union[Dict, str]]:
        """Get detailed attributes of a container.

        :return: Dict containing docker attributes as returned by the daemon
        """
        pass

    def get_container_id(self, container_name: str) -> str:
        """Get the id of a container by a given name"""
        return self.inspect_container(container_name)["Id"]

    def get_port_bindings(self, container_name_or_id: str) -> Dict[str, Optional[List[Dict]]]:
        """
        Returns the port bindings of a running container, as reported in ``NetworkSettings.Ports``, e.g.,
        ``{"4566/tcp": [{"HostIp": "0.0.0.0", "HostPort": "4566"}]}``.
        """
        attrs = self.inspect_container(container_name_or_id)
        return (attrs.get("NetworkSettings") or {}).get("Ports") or {}

    @abstractmethod
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
        """Creates a container with the given image

        :return: Container ID
        """
        pass

    @abstractmethod
    def exec_in_container(
        self,
        container_name_or_id: str,
        command: Union[List[str], str],
        env_vars: Optional[Dict[str, Optional[str]]] = None,
        user: Optional[str] = None,
    ) -> Tuple[bytes, bytes]:
        """Execute a given command in a container

        :return: A tuple (stdout, stderr)
        """
        pass

    @abstractmethod
    def start_container(self, container_name_or_id: str) -> None:
        """Start a given, already created container"""
        pass
