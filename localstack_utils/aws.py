"""Creates boto3 clients for the services of a LocalStack container."""
import threading
from typing import Optional

import boto3
from botocore.client import BaseClient
from botocore.config import Config

from localstack_utils import constants
from localstack_utils.localstack import Localstack, get_localstack
from localstack_utils.services import ServiceName, ServiceNameOrStr, service_key

# boto3 client creation is not thread safe
_create_client_lock = threading.Lock()


def create_session(region_name: Optional[str] = None) -> boto3.Session:
    """Returns a boto3 session using the credentials accepted by LocalStack."""
    return boto3.Session(
        aws_access_key_id=constants.TEST_AWS_ACCESS_KEY_ID,
        aws_secret_access_key=constants.TEST_AWS_SECRET_ACCESS_KEY,
        region_name=region_name or constants.DEFAULT_REGION,
    )


def create_client(
    service_name: ServiceNameOrStr,
    localstack: Optional[Localstack] = None,
    region_name: Optional[str] = None,
    config: Optional[Config] = None,
    **kwargs,
) -> BaseClient:
    """
    Returns a boto3 client for the given service of a running LocalStack container.

    :param service_name: the service, e.g. ``ServiceName.SQS`` or ``"sqs"``
    :param localstack: the instance managing the container, ``get_localstack()`` if not set
    :param region_name: the region of the client, ``us-east-1`` if not set
    :param config: additional botocore configuration
    :param kwargs: passed on to ``Session.client``
    """
    localstack = localstack or get_localstack()
    key = service_key(service_name)
    if key == ServiceName.S3.value:
        endpoint_url = localstack.get_endpoint_s3()
    else:
        endpoint_url = localstack.endpoint_for_service(key)

    # the container serves a self-signed certificate if USE_SSL is set
    kwargs.setdefault("verify", False)
    with _create_client_lock:
        return create_session(region_name).client(
            service_name=key,
            endpoint_url=endpoint_url,
            config=config or Config(),
            **kwargs,
        )
