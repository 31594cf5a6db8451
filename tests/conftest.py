import pytest

from . import samples


@pytest.fixture
def single_output():
    return samples.single_output()


@pytest.fixture
def concurrent_output():
    return samples.concurrent_output()
