import re

# backend service ports, all services are multiplexed through the edge port
DEFAULT_PORT_EDGE = 4566

# host name for localhost
LOCALHOST = "localhost"
# wildcard domain *.localhost.localstack.cloud, which resolves to 127.0.0.1
LOCALHOST_HOSTNAME = "localhost.localstack.cloud"

# AWS region us-east-1
AWS_REGION_US_EAST_1 = "us-east-1"
DEFAULT_REGION = AWS_REGION_US_EAST_1

# Credentials accepted by LocalStack
TEST_AWS_ACCESS_KEY_ID = "test"
TEST_AWS_SECRET_ACCESS_KEY = "test"

# name of LocalStack Docker image
DOCKER_IMAGE_NAME = "localstack/localstack"
DEFAULT_IMAGE_TAG = "latest"

# name of the main LocalStack container, used to find an already running instance
DEFAULT_CONTAINER_NAME = "localstack-main"

# marker printed by the LocalStack container once all services are up
READY_MARKER_OUTPUT = "Ready."
READY_TOKEN = re.compile(re.escape(READY_MARKER_OUTPUT))

# config file of the bundled localstack-client library, lists the default port of each service
PORT_CONFIG_FILENAME = (
    "/opt/code/localstack/.venv/lib/python3.8/site-packages/localstack_client/config.py"
)

# strings to indicate truthy/falsy values
TRUE_STRINGS = ("1", "true", "True")
FALSE_STRINGS = ("0", "false", "False")
# strings with valid log levels for LS_LOG
LOG_LEVELS = ("trace-internal", "trace", "debug", "info", "warn", "error", "warning")
TRACE_LOG_LEVELS = ("trace", "trace-internal")
