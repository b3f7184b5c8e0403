"""Special pytest fixture configuration file.

This file automatically provides all fixtures defined in it to all
pytest tests in this directory and sub directories.
"""
import pytest


@pytest.fixture
def mock_services(mocker):
    """Replace the authorizer and datastore used by the routes."""
    authorization = mocker.patch('tosapi.routes.authorization')
    datastore = mocker.patch('tosapi.routes.datastore')
    return (authorization.current_authorizer.return_value,
            datastore.current_session.return_value)
