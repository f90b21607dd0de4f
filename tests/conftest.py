import pytest

from turing_machine import parse_description

from .machines import BINARY_INCREMENT, SUCCESSOR


@pytest.fixture
def successor_config():
    return parse_description(SUCCESSOR)


@pytest.fixture
def increment_config():
    return parse_description(BINARY_INCREMENT)
