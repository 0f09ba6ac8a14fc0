from enum import Enum
from typing import Union


class ServiceName(str, Enum):
    """Identifiers of the services emulated by LocalStack, as they appear in its port configuration."""

    API_GATEWAY = "apigateway"
    KINESIS = "kinesis"
    DYNAMO = "dynamodb"
    DYNAMO_STREAMS = "dynamodbstreams"
    ELASTICSEARCH = "elasticsearch"
    S3 = "s3"
    FIREHOSE = "firehose"
    LAMBDA = "lambda"
    SNS = "sns"
    SQS = "sqs"
    REDSHIFT = "redshift"
    ELASTICSEARCH_SERVICE = "es"
    SES = "ses"
    ROUTE53 = "route53"
    CLOUDFORMATION = "cloudformation"
    CLOUDWATCH = "cloudwatch"
    SSM = "ssm"
    SECRETSMANAGER = "secretsmanager"
    STEPFUNCTIONS = "stepfunctions"
    CLOUDWATCH_LOGS = "logs"
    STS = "sts"
    IAM = "iam"
    KMS = "kms"
    EC2 = "ec2"

    def __str__(self):
        return self.value


ServiceNameOrStr = Union[ServiceName, str]


def service_key(service_name: ServiceNameOrStr) -> str:
    """Returns the plain string key of the given service name."""
    if isinstance(service_name, ServiceName):
        return service_name.value
    return str(service_name)
