"""Global configuration and fixtures for all pytest-based tests"""

import pytest

from topicq.framework.broker import Broker


@pytest.fixture(name="broker")
def fixture_broker():
    """An isolated broker whose topics are stopped after the test"""
    broker = Broker(default_capacity=5)
    yield broker
    broker.shut_down()
