from localstack_utils.container.configuration import LocalstackDockerConfiguration, PortMapping
from localstack_utils.container.container import LocalstackContainer

__all__ = ["LocalstackContainer", "LocalstackDockerConfiguration", "PortMapping"]
