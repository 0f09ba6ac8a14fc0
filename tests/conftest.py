import pytest

from localstack_utils import config


@pytest.fixture(autouse=True)
def clear_localstack_environment(monkeypatch):
    """Removes host settings that change the endpoints, so tests do not depend on the environment."""
    monkeypatch.delenv(config.ENV_CONFIG_USE_SSL, raising=False)
    monkeypatch.delenv(config.ENV_CONFIG_EDGE_PORT, raising=False)
