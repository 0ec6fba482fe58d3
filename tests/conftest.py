import pytest

from tests.fake.fake_transport import FakeTransport
from echoline.core.models.config import FramingConfig


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def framing():
    return FramingConfig(delimiter=b"\n", max_frame_size=64)
