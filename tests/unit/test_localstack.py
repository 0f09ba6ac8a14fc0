import threading

import pytest

from localstack_utils import constants
from localstack_utils.container.configuration import LocalstackDockerConfiguration
from localstack_utils.exceptions import (
    AlreadyStartedError,
    ContainerNotReadyError,
    NotReadyReason,
    PortMapUnresolvedError,
    StartupError,
    UnknownServiceError,
)
from localstack_utils.localstack import (
    Localstack,
    StartupOutcome,
    get_default_region,
    get_localstack,
    use_localstack,
)
from localstack_utils.utils.container_utils.container_client import (
    ContainerException,
    DockerContainerStatus,
    NoSuchContainer,
)


@pytest.fixture
def localstack(docker_client):
    instance = Localstack(docker_client=docker_client)
    yield instance
    if instance.is_locked:
        instance.stop()


class TestStartup:
    def test_startup(self, localstack, docker_client):
        result = localstack.startup()

        assert result.outcome == StartupOutcome.STARTED
        assert not result.adopted
        assert result.error is None
        assert result.container is localstack.container
        assert localstack.is_running()
        assert localstack.is_locked
        assert localstack.get_service_port("s3") == 4566
        assert localstack.get_endpoint_sqs() == "http://localhost:4566"
        assert localstack.get_endpoint_s3() == "http://localhost.localstack.cloud:4566"
        # the log stream is closed once the ready marker was found
        assert all(stream.closed.is_set() for stream in docker_client.streams)

    def test_startup_with_configuration(self, localstack, docker_client):
        configuration = LocalstackDockerConfiguration(
            external_host_name="docker.local", randomize_ports=True, ready_timeout=5
        )
        localstack.startup(configuration)

        env_vars = docker_client.containers[localstack.container.container_id]["env_vars"]
        assert env_vars["LOCALSTACK_HOSTNAME"] == "docker.local"
        assert localstack.get_endpoint_sqs() == "http://docker.local:49153"

    def test_startup_with_custom_extractor(self, docker_client):
        texts = []

        def extractor(text):
            texts.append(text)
            return {"custom": 4566}

        localstack = Localstack(docker_client=docker_client, port_map_extractor=extractor)
        localstack.startup()
        try:
            assert "DEFAULT_SERVICE_PORTS" in texts[0]
            assert localstack.endpoint_for_service("custom") == "http://localhost:4566"
            with pytest.raises(UnknownServiceError):
                localstack.get_endpoint_s3()
        finally:
            localstack.stop()

    def test_startup_twice(self, localstack, docker_client):
        localstack.startup()
        container = localstack.container

        with pytest.raises(AlreadyStartedError):
            localstack.startup()

        assert localstack.container is container
        assert localstack.is_running()
        assert len(docker_client.containers) == 1

    def test_concurrent_startup(self, localstack, docker_client):
        docker_client.block_logs = True
        docker_client.log_chunks = [b"starting\n"]
        cancel_event = threading.Event()
        errors = []

        def _start():
            try:
                localstack.startup(cancel_event=cancel_event)
            except Exception as e:
                errors.append(e)

        thread = threading.Thread(target=_start)
        thread.start()
        try:
            assert poll(lambda: localstack.is_locked)
            with pytest.raises(AlreadyStartedError):
                localstack.startup()
        finally:
            cancel_event.set()
            thread.join()

        assert isinstance(errors[0], StartupError)
        assert not localstack.is_locked

    def test_stop_releases_lock(self, localstack, docker_client):
        localstack.startup()
        localstack.stop()

        assert not localstack.is_locked
        assert not localstack.is_running()
        # stopping again has no effect
        localstack.stop()

        result = localstack.startup()
        assert result.outcome == StartupOutcome.STARTED

    def test_stop_releases_lock_on_error(self, localstack, docker_client):
        localstack.startup()
        docker_client.stop_error = ContainerException("daemon unavailable")

        with pytest.raises(ContainerException):
            localstack.stop()
        assert not localstack.is_locked

        docker_client.stop_error = None
        localstack.stop()

    def test_stop_without_container(self):
        localstack = Localstack()
        localstack.stop()
        assert not localstack.is_running()
        assert not localstack.is_locked


class TestStartupFailure:
    def test_adopt_running_container(self, localstack, docker_client):
        container_id = docker_client.add_running_container("localstack-main", {4566: 4566})

        result = localstack.startup()

        assert result.outcome == StartupOutcome.ADOPTED
        assert result.adopted
        assert isinstance(result.error, ContainerException)
        assert result.container.container_id == container_id
        assert localstack.is_locked
        assert localstack.get_endpoint_sqs() == "http://localhost:4566"
        assert list(docker_client.containers) == [container_id]

    def test_adopt_without_running_container(self, localstack, docker_client):
        docker_client.start_error = ContainerException("port is already allocated")

        with pytest.raises(StartupError) as e:
            localstack.startup()

        assert isinstance(e.value.__cause__, NoSuchContainer)
        assert not localstack.is_locked
        # the container that could not be started is removed
        assert not docker_client.containers

    def test_adoption_failure_keeps_running_container(self, localstack, docker_client):
        container_id = docker_client.add_running_container("localstack-main", {4566: 4566})
        del docker_client.files[constants.PORT_CONFIG_FILENAME]

        with pytest.raises(StartupError) as e:
            localstack.startup()

        assert isinstance(e.value.__cause__, ContainerException)
        assert docker_client.get_container_status(container_id) == DockerContainerStatus.UP
        assert list(docker_client.containers) == [container_id]
        assert localstack.container is None
        assert not localstack.is_running()
        assert not localstack.is_locked

        # stopping the instance does not touch the running container either
        localstack.stop()
        assert docker_client.get_container_status(container_id) == DockerContainerStatus.UP

    def test_start_error_not_ignored_removes_created_container(self, localstack, docker_client):
        docker_client.start_error = ContainerException("port is already allocated")
        configuration = LocalstackDockerConfiguration(ignore_docker_run_errors=False)

        with pytest.raises(StartupError) as e:
            localstack.startup(configuration)

        assert e.value.__cause__ is docker_client.start_error
        assert not docker_client.containers
        assert not localstack.is_locked

        # the name is free again, so the next startup succeeds
        docker_client.start_error = None
        assert localstack.startup(configuration).outcome == StartupOutcome.STARTED

    def test_errors_not_ignored(self, localstack, docker_client):
        container_id = docker_client.add_running_container("localstack-main", {4566: 4566})
        configuration = LocalstackDockerConfiguration(ignore_docker_run_errors=False)

        with pytest.raises(StartupError) as e:
            localstack.startup(configuration)

        assert isinstance(e.value.__cause__, ContainerException)
        assert not localstack.is_locked
        assert docker_client.get_container_status(container_id) == DockerContainerStatus.UP

    def test_ready_timeout(self, localstack, docker_client):
        docker_client.block_logs = True
        docker_client.log_chunks = [b"starting\n"]
        configuration = LocalstackDockerConfiguration(
            ready_timeout=0.3, ignore_docker_run_errors=False
        )

        with pytest.raises(StartupError) as e:
            localstack.startup(configuration)

        cause = e.value.__cause__
        assert isinstance(cause, ContainerNotReadyError)
        assert cause.reason == NotReadyReason.TIMEOUT
        assert not localstack.is_locked
        assert not docker_client.containers

    def test_ready_timeout_adopts_started_container(self, localstack, docker_client):
        docker_client.block_logs = True
        docker_client.log_chunks = [b"starting\n"]

        result = localstack.startup(LocalstackDockerConfiguration(ready_timeout=0.3))

        assert result.adopted
        assert isinstance(result.error, ContainerNotReadyError)
        assert localstack.is_running()

    def test_cancelled_startup_is_not_adopted(self, localstack, docker_client):
        cancel_event = threading.Event()
        cancel_event.set()

        with pytest.raises(StartupError) as e:
            localstack.startup(cancel_event=cancel_event)

        assert e.value.__cause__.reason == NotReadyReason.CANCELLED
        assert not localstack.is_locked

    def test_port_map_not_resolved_before_startup(self, localstack):
        with pytest.raises(PortMapUnresolvedError):
            localstack.get_endpoint_sqs()


class TestAttach:
    def test_attach(self, localstack, docker_client):
        container_id = docker_client.add_running_container("localstack-main", {4566: 4566})

        result = localstack.attach()

        assert result.adopted
        assert result.container.container_id == container_id
        assert localstack.get_endpoint_kinesis() == "http://localhost:4566"
        with pytest.raises(AlreadyStartedError):
            localstack.attach()

    def test_attach_without_running_container(self, localstack):
        with pytest.raises(StartupError):
            localstack.attach()
        assert not localstack.is_locked


class TestCurrentInstance:
    def test_get_localstack_returns_same_instance(self):
        assert get_localstack() is get_localstack()

    def test_use_localstack(self, docker_client):
        instance = Localstack(docker_client=docker_client)
        previous = get_localstack()

        with use_localstack(instance) as bound:
            assert bound is instance
            assert get_localstack() is instance

        assert get_localstack() is previous

    def test_independent_instances(self, docker_client):
        first = Localstack(docker_client=docker_client)
        second = Localstack(docker_client=docker_client)
        first.startup()
        try:
            assert first.is_locked
            assert not second.is_locked
        finally:
            first.stop()


def test_get_default_region():
    assert get_default_region() == "us-east-1"


def poll(condition, timeout: float = 5) -> bool:
    from localstack_utils.utils.sync import poll_condition

    return poll_condition(condition, timeout=timeout, interval=0.01)
