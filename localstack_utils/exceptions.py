from enum import Enum
from typing import Optional


class LocalstackUtilsError(Exception):
    """Base class for errors raised when managing the LocalStack container."""


class AlreadyStartedError(LocalstackUtilsError, RuntimeError):
    def __init__(self, message: str = None) -> None:
        super().__init__(message or "A docker instance is starting or already started.")


class StartupError(LocalstackUtilsError):
    """
    The LocalStack container could not be started (and no running container could be adopted). The
    underlying error is available as ``__cause__``.
    """

    def __init__(self, message: str = None) -> None:
        super().__init__(message or "Could not start the localstack docker container.")


class PortMapUnresolvedError(LocalstackUtilsError, RuntimeError):
    def __init__(self, message: str = None) -> None:
        super().__init__(message or "Service to port mapping has not been determined yet.")


class UnknownServiceError(LocalstackUtilsError, ValueError):
    def __init__(self, service_name: str, message: str = None) -> None:
        super().__init__(message or f"Unknown port mapping for service: {service_name}")
        self.service_name = service_name


class ContainerNotStartedError(LocalstackUtilsError, RuntimeError):
    def __init__(self, message: str = None) -> None:
        super().__init__(message or "Container not started")


class PortNotMappedError(LocalstackUtilsError, ValueError):
    def __init__(self, port: int, message: str = None) -> None:
        super().__init__(message or f"Port {port} is not mapped to a host port")
        self.port = port


class NotReadyReason(Enum):
    TIMEOUT = "timeout"
    STREAM_CLOSED = "stream_closed"
    CANCELLED = "cancelled"


class ContainerNotReadyError(LocalstackUtilsError):
    """The ready marker did not appear in the container logs."""

    def __init__(self, reason: NotReadyReason, message: Optional[str] = None) -> None:
        if not message:
            if reason == NotReadyReason.TIMEOUT:
                message = "Timeout while waiting for the container to become ready"
            elif reason == NotReadyReason.CANCELLED:
                message = "Cancelled while waiting for the container to become ready"
            else:
                message = "Container log stream ended before the container became ready"
        super().__init__(message)
        self.reason = reason
