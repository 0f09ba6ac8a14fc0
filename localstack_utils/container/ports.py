"""
Parses the service port configuration of the localstack-client library bundled in the LocalStack image.
The file contains one entry per service, e.g.::

    'sqs': '{proto}://{host}:4576',

Only the service names are used: LocalStack serves all APIs through a single edge port, so every service
is mapped to that port.
"""
import logging
import re
from types import MappingProxyType
from typing import Callable, Dict, Mapping, Optional, Pattern

from localstack_utils import config

LOG = logging.getLogger(__name__)

# group 1 is the service name, group 2 the (legacy) per-service port
DEFAULT_PORT_PATTERN = re.compile(
    r"'(\w+)': '(?:\{proto\}|\w+)://(?:\{host\}|[^:'/]+):\{?(\d+)\}?'"
)

PortMapExtractor = Callable[[str], Mapping[str, int]]


def extract_port_map(
    text: str, edge_port: Optional[int] = None, pattern: Pattern = DEFAULT_PORT_PATTERN
) -> Mapping[str, int]:
    """
    Extracts all services listed in the given port configuration and maps each of them to the edge port.

    :param text: the contents of the port configuration file
    :param edge_port: the port to map the services to, by default ``config.get_edge_port()``
    :param pattern: the pattern matching one service entry, the service name has to be the first group
    :return: an immutable mapping from service name to port
    """
    if edge_port is None:
        edge_port = config.get_edge_port()

    ports: Dict[str, int] = {}
    for match in pattern.finditer(text or ""):
        ports[match.group(1)] = edge_port

    if not ports:
        LOG.warning("No service ports found in the LocalStack port configuration")
    else:
        LOG.debug("Mapped services %s to edge port %s", sorted(ports), edge_port)

    return MappingProxyType(ports)
