"""Provides the HTTP routes of the TOS API."""

import logging
from http import HTTPStatus

from flask import Blueprint, Response, current_app, jsonify, request

from .controllers import status, user_response
from .services import authorization, datastore

logger = logging.getLogger(__name__)

blueprint = Blueprint('tosapi', __name__, url_prefix='')

# Every method is routed to the controller so that unsupported methods are
# rejected by the same validation as everything else.
USER_RESPONSE_METHODS = ['GET', 'POST', 'PUT', 'PATCH', 'DELETE']


@blueprint.route('/v1/user/response', methods=USER_RESPONSE_METHODS)
@blueprint.route('/user/response', methods=USER_RESPONSE_METHODS)
def user_response_endpoint() -> Response:
    """Read or record a user's response to a terms of service."""
    data = user_response.handle_request(
        request,
        authorization.current_authorizer(),
        datastore.current_session()
    )
    return jsonify(data), HTTPStatus.OK


@blueprint.route('/v1/status', methods=['GET'])
@blueprint.route('/status', methods=['GET'])
def status_endpoint() -> Response:
    """Report the health of the service."""
    reporter: status.StatusReporter = \
        current_app.extensions['status_reporter']
    result = reporter.check_health(datastore.current_session())
    code = HTTPStatus.OK if result.ok else HTTPStatus.INTERNAL_SERVER_ERROR
    return jsonify(result.to_dict()), code
