import itertools
import threading
from typing import Dict, List, Optional, Tuple, Union

import pytest

from localstack_utils import constants
from localstack_utils.testing.config import (
    TEST_AWS_ACCESS_KEY_ID,
    TEST_AWS_REGION_NAME,
    TEST_AWS_SECRET_ACCESS_KEY,
)
from localstack_utils.utils.container_utils.container_client import (
    ContainerClient,
    ContainerException,
    DockerContainerStatus,
    NoSuchContainer,
    PortMappings,
)

PORT_CONFIG = """
import os

DEFAULT_SERVICE_PORTS = {
    'apigateway': '{proto}://{host}:4567',
    'kinesis': '{proto}://{host}:4568',
    'dynamodb': '{proto}://{host}:4569',
    's3': '{proto}://{host}:4572',
    'sns': '{proto}://{host}:4575',
    'sqs': '{proto}://{host}:4576',
    'lambda': '{proto}://{host}:4574',
}
"""


class FakeLogStream:
    """A log stream that yields the given chunks, and then optionally blocks until it is closed."""

    def __init__(self, chunks=(), block: bool = False):
        self.chunks = list(chunks)
        self.block = block
        self.closed = threading.Event()

    def __iter__(self):
        return self

    def __next__(self):
        if self.closed.is_set():
            raise StopIteration
        if self.chunks:
            return self.chunks.pop(0)
        if self.block:
            self.closed.wait()
        raise StopIteration

    def close(self):
        self.closed.set()


class FakeDockerClient(ContainerClient):
    """In-memory container client, which keeps containers as plain dicts."""

    def __init__(self):
        self.images = {f"{constants.DOCKER_IMAGE_NAME}:{constants.DEFAULT_IMAGE_TAG}"}
        self.pulled_images: List[str] = []
        self.containers: Dict[str, dict] = {}
        self.files = {constants.PORT_CONFIG_FILENAME: PORT_CONFIG}
        self.log_chunks: List[Union[str, bytes]] = [b"Starting LocalStack\n", b"Ready.\n"]
        self.block_logs = False
        self.streams: List[FakeLogStream] = []
        self.start_error: Optional[Exception] = None
        self.stop_error: Optional[Exception] = None
        self.inspect_calls = 0
        self._ids = itertools.count(1)
        self._random_ports = itertools.count(49153)

    def add_running_container(self, name: str, ports: Dict[int, int]) -> str:
        container_id = f"running{next(self._ids)}"
        self.containers[container_id] = {
            "id": container_id,
            "name": name,
            "image": constants.DOCKER_IMAGE_NAME,
            "status": "running",
            "remove": True,
            "env_vars": {},
            "ports": {
                f"{port}/tcp": [{"HostIp": "0.0.0.0", "HostPort": str(host_port)}]
                for port, host_port in ports.items()
            },
        }
        return container_id

    def _get(self, container_name_or_id: str) -> dict:
        for container in self.containers.values():
            if container_name_or_id in (container["id"], container["name"]):
                return container
        raise NoSuchContainer(container_name_or_id)

    def get_container_status(self, container_name: str) -> DockerContainerStatus:
        try:
            container = self._get(container_name)
        except NoSuchContainer:
            return DockerContainerStatus.NON_EXISTENT
        if container["status"] == "running":
            return DockerContainerStatus.UP
        return DockerContainerStatus.DOWN

    def stop_container(self, container_name: str, timeout: int = 10):
        if self.stop_error:
            raise self.stop_error
        container = self._get(container_name)
        if container["status"] != "running":
            # like docker, stopping a container that never ran leaves it in place
            return
        container["status"] = "exited"
        if container["remove"]:
            del self.containers[container["id"]]

    def remove_container(self, container_name: str, force=True) -> None:
        try:
            container = self._get(container_name)
        except NoSuchContainer:
            if not force:
                raise
            return
        del self.containers[container["id"]]

    def pull_image(self, docker_image: str) -> None:
        self.pulled_images.append(docker_image)
        self.images.add(docker_image)

    def has_image(self, docker_image: str) -> bool:
        return docker_image in self.images

    def get_container_logs(self, container_name_or_id: str, safe: bool = False) -> str:
        return "".join(
            c.decode("utf-8") if isinstance(c, bytes) else c for c in self.log_chunks
        )

    def stream_container_logs(self, container_name_or_id: str) -> FakeLogStream:
        self._get(container_name_or_id)
        stream = FakeLogStream(self.log_chunks, block=self.block_logs)
        self.streams.append(stream)
        return stream

    def inspect_container(self, container_name_or_id: str) -> Dict[str, Union[Dict, str]]:
        self.inspect_calls += 1
        container = self._get(container_name_or_id)
        return {
            "Id": container["id"],
            "Name": f"/{container['name']}",
            "NetworkSettings": {
                "Ports": container["ports"] if container["status"] == "running" else {}
            },
        }

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
        if name and any(c["name"] == name for c in self.containers.values()):
            raise ContainerException(f'409 Conflict: the container name "/{name}" is already in use')
        container_id = f"created{next(self._ids)}"
        self.containers[container_id] = {
            "id": container_id,
            "name": name or container_id,
            "image": image_name,
            "status": "created",
            "remove": remove,
            "env_vars": dict(env_vars or {}),
            "port_mappings": ports,
            "ports": {},
        }
        return container_id

    def exec_in_container(
        self,
        container_name_or_id: str,
        command: Union[List[str], str],
        env_vars: Optional[Dict[str, Optional[str]]] = None,
        user: Optional[str] = None,
    ) -> Tuple[bytes, bytes]:
        self._get(container_name_or_id)
        if command[0] == "cat" and command[1] in self.files:
            return self.files[command[1]].encode("utf-8"), b""
        raise ContainerException("Exec command returned with exit code 1", b"", b"no such file")

    def start_container(self, container_name_or_id: str) -> None:
        if self.start_error:
            raise self.start_error
        container = self._get(container_name_or_id)
        container["status"] = "running"
        mappings: PortMappings = container.get("port_mappings")
        if mappings:
            for (port, protocol), host_port in mappings.mappings.items():
                host_port = host_port or next(self._random_ports)
                container["ports"][f"{port}/{protocol}"] = [
                    {"HostIp": "0.0.0.0", "HostPort": str(host_port)}
                ]


@pytest.fixture(autouse=True)
def set_boto_test_credentials_and_region(monkeypatch):
    """
    Automatically sets the default credentials and region for all unit tests.
    """
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", TEST_AWS_ACCESS_KEY_ID)
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", TEST_AWS_SECRET_ACCESS_KEY)
    monkeypatch.setenv("AWS_DEFAULT_REGION", TEST_AWS_REGION_NAME)


@pytest.fixture
def docker_client() -> FakeDockerClient:
    return FakeDockerClient()
