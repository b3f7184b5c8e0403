"""Tests for the Cloud Functions and WSGI entry-points."""

import json

from flask import Request
from werkzeug.test import EnvironBuilder, run_wsgi_app

import main
import wsgi
from tosapi.domain import VerifiedIdentity

IDENTITY = VerifiedIdentity('111', 'one@example.com', True, '1234', 500, {})


def test_cloud_function(mocker, mock_services):
    authorizer, store = mock_services
    authorizer.authorize.return_value = IDENTITY
    store.get_current_response.return_value = {'accepted': True,
                                               'userid': '111'}
    mocker.patch.object(main, '__flask_app__', None)
    environ = EnvironBuilder(
        path='/v1/user/response', method='GET',
        query_string={'appid': 'FireCloud', 'tosversion': '1'},
        headers={'Authorization': 'Bearer token'}
    ).get_environ()

    response = main.tos(Request(environ))

    assert response.status_code == 200
    assert json.loads(response.get_data()) == {'accepted': True,
                                               'userid': '111'}


def test_cloud_function_error(mocker, mock_services):
    mocker.patch.object(main, '__flask_app__', None)
    environ = EnvironBuilder(path='/v1/user/response',
                             method='GET').get_environ()
    response = main.tos(Request(environ))
    assert response.status_code == 401


def test_wsgi(mocker, mock_services):
    _, store = mock_services
    store.health_check_query.return_value = [{}]
    mocker.patch.object(wsgi, '__flask_app__', None)
    environ = EnvironBuilder(path='/status', method='GET').get_environ()
    app_iter, status, headers = run_wsgi_app(wsgi.application, environ)
    assert status == '200 OK'
    assert json.loads(b''.join(app_iter)) == {
        'ok': True, 'systems': {'datastore': {'ok': True}}
    }


def test_cloud_function_unexpected_error(mocker, mock_services):
    """Errors outside the controller still get a JSON body."""
    mocker.patch('tosapi.routes.user_response.handle_request',
                 side_effect=RuntimeError('kaboom'))
    mocker.patch.object(main, '__flask_app__', None)
    environ = EnvironBuilder(
        path='/v1/user/response', method='GET',
        headers={'Authorization': 'Bearer token'}
    ).get_environ()

    response = main.tos(Request(environ))

    assert response.status_code == 500
    assert 'reason' in json.loads(response.get_data())
