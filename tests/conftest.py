import pytest

from dynamap.adapter import Adapter
from dynamap.connection import Connection
from .fakes import FakeDynamo, MockTime

PATCH_METHOD = 'dynamap.connection.Connection._make_api_call'


@pytest.fixture
def dynamo(mocker):
    fake = FakeDynamo()
    mocker.patch(PATCH_METHOD, side_effect=fake)
    return fake


@pytest.fixture
def mock_time():
    return MockTime()


@pytest.fixture
def adapter(dynamo, mock_time):
    return Adapter(Connection(), time_module=mock_time)


@pytest.fixture
def models(adapter, monkeypatch):
    """
    Routes every test model through the test adapter
    """
    from .models import Document, Thread, User
    for model_cls in (User, Thread, Document):
        monkeypatch.setattr(model_cls, '_adapter', adapter)
    return adapter
