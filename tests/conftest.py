import pathlib
import site

import pytest
from d1db.client import D1Client
from d1db.options import D1Options
from d1db.transport import Transport

HERE = pathlib.Path(pathlib.Path(__file__).resolve()).parent
site.addsitedir(HERE)


@pytest.fixture
def options():
    return D1Options(
        account_id='test-account',
        api_token='test-token',
        database_id='test-database',
    )


@pytest.fixture
def cn(options, fake_session):
    """Client wired to the fake HTTP session."""
    client = D1Client(options, transport=Transport(options, session=fake_session))
    yield client
    client.close()


pytest_plugins = [
    'tests.fixtures.mocks',
    'tests.fixtures.values',
]
