import dataclasses
from typing import Dict, NamedTuple, Optional, Tuple

from localstack_utils import constants


class PortMapping(NamedTuple):
    """Publishes the ``internal`` container port on the ``external`` host port."""

    internal: int
    external: int


@dataclasses.dataclass(frozen=True)
class LocalstackDockerConfiguration:
    """
    Describes how the LocalStack container is started.

    Attributes:
        external_host_name:       host name under which the container is reachable, used in endpoint URLs
        pull_new_image:           pull the image even if it is already available locally
        randomize_ports:          publish the edge port on a random host port instead of the same port
        image_name:               the Docker image, without tag
        image_tag:                the image tag, ``latest`` if not set
        environment_variables:    additional environment variables passed to the container
        port_mappings:            additional internal -> external port mappings
        container_name:           name of the container, also used to find an already running container
        ignore_docker_run_errors: adopt an already running container if starting a new one fails
        ready_timeout:            seconds to wait for the ready marker, ``None`` waits forever
        port_config_filename:     file inside the container listing the services and their ports
    """

    external_host_name: str = constants.LOCALHOST
    pull_new_image: bool = False
    randomize_ports: bool = False
    image_name: str = constants.DOCKER_IMAGE_NAME
    image_tag: Optional[str] = None
    environment_variables: Dict[str, str] = dataclasses.field(default_factory=dict)
    port_mappings: Tuple[PortMapping, ...] = ()
    container_name: str = constants.DEFAULT_CONTAINER_NAME
    ignore_docker_run_errors: bool = True
    ready_timeout: Optional[float] = None
    port_config_filename: str = constants.PORT_CONFIG_FILENAME

    def __post_init__(self):
        # copy the mutable inputs, so later changes by the caller are not reflected here
        object.__setattr__(self, "environment_variables", dict(self.environment_variables or {}))
        object.__setattr__(
            self, "port_mappings", tuple(PortMapping(*m) for m in self.port_mappings or ())
        )

    @property
    def full_image_name(self) -> str:
        return f"{self.image_name}:{self.image_tag or constants.DEFAULT_IMAGE_TAG}"

    def replace(self, **changes) -> "LocalstackDockerConfiguration":
        return dataclasses.replace(self, **changes)
