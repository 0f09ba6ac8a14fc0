"""Resolves the URLs under which the services of a LocalStack container are reachable from the host."""
import logging
from typing import TYPE_CHECKING, Mapping, Optional

from localstack_utils import config, constants
from localstack_utils.exceptions import (
    ContainerNotStartedError,
    PortMapUnresolvedError,
    UnknownServiceError,
)
from localstack_utils.services import ServiceName, ServiceNameOrStr, service_key

if TYPE_CHECKING:
    from localstack_utils.container.container import LocalstackContainer

LOG = logging.getLogger(__name__)


class EndpointResolver:
    port_map: Optional[Mapping[str, int]]
    container: Optional["LocalstackContainer"]
    external_host_name: str

    def __init__(
        self,
        port_map: Optional[Mapping[str, int]] = None,
        container: Optional["LocalstackContainer"] = None,
        external_host_name: str = constants.LOCALHOST,
    ):
        self.port_map = port_map
        self.container = container
        self.external_host_name = external_host_name

    def get_service_port(self, service_name: ServiceNameOrStr) -> int:
        """Returns the port inside the container that serves the given service."""
        if self.port_map is None:
            raise PortMapUnresolvedError()
        key = service_key(service_name)
        if key not in self.port_map:
            raise UnknownServiceError(key)
        return self.port_map[key]

    def endpoint_for_port(self, port: int) -> str:
        if self.container is None:
            raise ContainerNotStartedError()
        external_port = self.container.get_external_port_for(port)
        return f"{config.get_protocol()}://{self.external_host_name}:{external_port}"

    def endpoint_for_service(self, service_name: ServiceNameOrStr) -> str:
        return self.endpoint_for_port(self.get_service_port(service_name))

    def get_endpoint_s3(self) -> str:
        """
        Returns the S3 endpoint using the ``localhost.localstack.cloud`` domain, which resolves to the
        loopback address for any subdomain, so virtual-host style bucket addressing works.
        """
        endpoint = self.endpoint_for_service(ServiceName.S3)
        if constants.LOCALHOST_HOSTNAME in endpoint:
            return endpoint
        return endpoint.replace(constants.LOCALHOST, constants.LOCALHOST_HOSTNAME)

    def get_endpoint_kinesis(self) -> str:
        return self.endpoint_for_service(ServiceName.KINESIS)

    def get_endpoint_lambda(self) -> str:
        return self.endpoint_for_service(ServiceName.LAMBDA)

    def get_endpoint_dynamodb(self) -> str:
        return self.endpoint_for_service(ServiceName.DYNAMO)

    def get_endpoint_dynamodb_streams(self) -> str:
        return self.endpoint_for_service(ServiceName.DYNAMO_STREAMS)

    def get_endpoint_api_gateway(self) -> str:
        return self.endpoint_for_service(ServiceName.API_GATEWAY)

    def get_endpoint_elasticsearch(self) -> str:
        return self.endpoint_for_service(ServiceName.ELASTICSEARCH)

    def get_endpoint_elasticsearch_service(self) -> str:
        return self.endpoint_for_service(ServiceName.ELASTICSEARCH_SERVICE)

    def get_endpoint_firehose(self) -> str:
        return self.endpoint_for_service(ServiceName.FIREHOSE)

    def get_endpoint_sns(self) -> str:
        return self.endpoint_for_service(ServiceName.SNS)

    def get_endpoint_sqs(self) -> str:
        return self.endpoint_for_service(ServiceName.SQS)

    def get_endpoint_redshift(self) -> str:
        return self.endpoint_for_service(ServiceName.REDSHIFT)

    def get_endpoint_cloudwatch(self) -> str:
        return self.endpoint_for_service(ServiceName.CLOUDWATCH)

    def get_endpoint_cloudwatch_logs(self) -> str:
        return self.endpoint_for_service(ServiceName.CLOUDWATCH_LOGS)

    def get_endpoint_ses(self) -> str:
        return self.endpoint_for_service(ServiceName.SES)

    def get_endpoint_route53(self) -> str:
        return self.endpoint_for_service(ServiceName.ROUTE53)

    def get_endpoint_cloudformation(self) -> str:
        return self.endpoint_for_service(ServiceName.CLOUDFORMATION)

    def get_endpoint_ssm(self) -> str:
        return self.endpoint_for_service(ServiceName.SSM)

    def get_endpoint_secretsmanager(self) -> str:
        return self.endpoint_for_service(ServiceName.SECRETSMANAGER)

    def get_endpoint_ec2(self) -> str:
        return self.endpoint_for_service(ServiceName.EC2)

    def get_endpoint_stepfunctions(self) -> str:
        return self.endpoint_for_service(ServiceName.STEPFUNCTIONS)

    def get_endpoint_iam(self) -> str:
        return self.endpoint_for_service(ServiceName.IAM)

    def get_endpoint_sts(self) -> str:
        return self.endpoint_for_service(ServiceName.STS)

    def get_endpoint_kms(self) -> str:
        return self.endpoint_for_service(ServiceName.KMS)

    @staticmethod
    def get_edge_port() -> int:
        return config.get_edge_port()

    @staticmethod
    def get_default_region() -> str:
        return constants.DEFAULT_REGION
