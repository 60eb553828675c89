"""Shared fixtures."""

import pytest

from tests.fakes import FakeEntropyProvider, MOCK_PRIVATE_KEY, SOURCE_ENTROPY


@pytest.fixture
def provider():
    return FakeEntropyProvider(SOURCE_ENTROPY)


@pytest.fixture
def mock_key_provider():
    return FakeEntropyProvider({"primary": MOCK_PRIVATE_KEY})
