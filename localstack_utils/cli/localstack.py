import contextlib
import json
import logging
from typing import Dict, Optional, Tuple

import click

from localstack_utils import __version__, constants
from localstack_utils.container.configuration import LocalstackDockerConfiguration, PortMapping
from localstack_utils.exceptions import LocalstackUtilsError
from localstack_utils.localstack import Localstack
from localstack_utils.utils.container_utils.container_client import ContainerException

from .console import console


def _setup_cli_logging(debug: bool):
    from localstack_utils.logging.setup import setup_logging, setup_logging_from_config

    if debug:
        setup_logging(logging.DEBUG)
    else:
        setup_logging_from_config()


@contextlib.contextmanager
def _handle_errors():
    try:
        yield
    except (LocalstackUtilsError, ContainerException) as e:
        cause = f" ({e.__cause__})" if e.__cause__ else ""
        raise click.ClickException(f"{e}{cause}") from e


def _parse_env_vars(ctx, param, values) -> Dict[str, str]:
    env_vars = {}
    for value in values:
        key, sep, env_value = value.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {value!r}")
        env_vars[key] = env_value
    return env_vars


def _parse_port_mappings(ctx, param, values) -> Tuple[PortMapping, ...]:
    mappings = []
    for value in values:
        internal, sep, external = value.partition(":")
        try:
            mappings.append(PortMapping(int(internal), int(external)))
        except ValueError:
            raise click.BadParameter(f"expected INTERNAL:EXTERNAL, got {value!r}")
    return tuple(mappings)


@click.group(name="localstack-utils", help="Manage a LocalStack container for local testing")
@click.version_option(version=__version__, message="%(version)s")
@click.option("--debug", is_flag=True, help="Enable CLI debugging mode")
def localstack(debug):
    _setup_cli_logging(debug)


@localstack.command(
    name="start", help="Start LocalStack, or use the container that is already running"
)
@click.option("--image-tag", type=str, default=None, help="Tag of the LocalStack image")
@click.option("--pull", is_flag=True, default=False, help="Pull the image before starting")
@click.option(
    "--randomize-ports", is_flag=True, default=False, help="Publish the edge port on a random port"
)
@click.option(
    "--host",
    type=str,
    default=constants.LOCALHOST,
    help="Host name under which the container is reachable",
)
@click.option(
    "-e",
    "--env",
    "env_vars",
    multiple=True,
    callback=_parse_env_vars,
    help="Environment variable passed to the container (KEY=VALUE)",
)
@click.option(
    "-p",
    "--publish",
    "port_mappings",
    multiple=True,
    callback=_parse_port_mappings,
    help="Additional port mapping (INTERNAL:EXTERNAL)",
)
@click.option(
    "-t",
    "--timeout",
    type=float,
    default=None,
    help="The amount of time in seconds to wait for the container to become ready",
)
@click.option(
    "--no-adopt",
    is_flag=True,
    default=False,
    help="Fail instead of using an already running container",
)
def cmd_start(
    image_tag: Optional[str],
    pull: bool,
    randomize_ports: bool,
    host: str,
    env_vars: Dict[str, str],
    port_mappings: Tuple[PortMapping, ...],
    timeout: Optional[float],
    no_adopt: bool,
):
    configuration = LocalstackDockerConfiguration(
        external_host_name=host,
        pull_new_image=pull,
        randomize_ports=randomize_ports,
        image_tag=image_tag,
        environment_variables=env_vars,
        port_mappings=port_mappings,
        ignore_docker_run_errors=not no_adopt,
        ready_timeout=timeout,
    )
    instance = Localstack()
    with _handle_errors():
        with console.status("Starting LocalStack"):
            result = instance.startup(configuration)

    if result.adopted:
        console.print(
            f"using running container: {result.container.container_id} "
            f"(start failed: {result.error})"
        )
    else:
        console.print(f"container started: {result.container.container_id}")
    print_endpoints(instance, "table")


@localstack.command(name="endpoints", help="Print the service endpoints of the running container")
@click.option(
    "--host",
    type=str,
    default=constants.LOCALHOST,
    help="Host name under which the container is reachable",
)
@click.option("--format", type=click.Choice(["table", "plain", "json"]), default="table")
def cmd_endpoints(host: str, format: str):
    instance = Localstack()
    with _handle_errors():
        instance.attach(LocalstackDockerConfiguration(external_host_name=host))
        print_endpoints(instance, format)


@localstack.command(name="stop", help="Stop the running LocalStack container")
def cmd_stop():
    instance = Localstack()
    with _handle_errors():
        result = instance.attach()
        instance.stop()
    console.print(f"container stopped: {result.container.container_id}")


@localstack.command(name="wait", help="Wait on the LocalStack container to become ready")
@click.option(
    "-t",
    "--timeout",
    type=float,
    help="The amount of time in seconds to wait before raising a timeout error",
    default=None,
)
def cmd_wait(timeout: Optional[float] = None):
    from localstack_utils.container.container import LocalstackContainer

    container = LocalstackContainer(constants.DEFAULT_CONTAINER_NAME)
    with _handle_errors():
        container.wait_for_log_token(constants.READY_TOKEN, timeout=timeout)
    console.print("container ready")


def collect_endpoints(instance: Localstack) -> Dict[str, str]:
    endpoints = {}
    for service in sorted(instance.port_map or {}):
        if service == "s3":
            endpoints[service] = instance.get_endpoint_s3()
        else:
            endpoints[service] = instance.endpoint_for_service(service)
    return endpoints


def print_endpoints(instance: Localstack, format: str):
    with _handle_errors():
        endpoints = collect_endpoints(instance)

    if format == "json":
        console.print(json.dumps(endpoints), soft_wrap=True)
    elif format == "plain":
        for service, endpoint in endpoints.items():
            console.print(f"{service}={endpoint}")
    else:
        print_endpoints_table(endpoints)


def print_endpoints_table(endpoints: Dict[str, str]):
    from rich.table import Table

    grid = Table(show_header=True)
    grid.add_column("Service")
    grid.add_column("Endpoint")

    for service, endpoint in endpoints.items():
        grid.add_row(service, endpoint)

    console.print(grid)
