import functools
import logging

from localstack_utils.utils.container_utils.container_client import ContainerClient

LOG = logging.getLogger(__name__)


def create_docker_client() -> ContainerClient:
    from localstack_utils.utils.container_utils.docker_sdk_client import SdkDockerClient

    LOG.debug("Using SdkDockerClient")
    return SdkDockerClient()


@functools.lru_cache()
def get_default_docker_client() -> ContainerClient:
    """
    Returns the Docker client shared by all callers that do not pass their own. The client is only
    created on first use, so importing this package does not require a Docker daemon.
    """
    return create_docker_client()
