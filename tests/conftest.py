import pytest

from tests.fixtures.auth import make_codec, make_hasher


@pytest.fixture
def hasher():
    return make_hasher()


@pytest.fixture
def codec():
    return make_codec()
