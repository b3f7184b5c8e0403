"""Application factory for the TOS API."""

import logging
from typing import Optional

from flask import Flask, Response, current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from . import routes
from .app_logging import setup_logger
from .controllers.status import StatusCache, StatusReporter
from .services import authorization, datastore

logger = logging.getLogger(__name__)


def create_app() -> Flask:
    """Initialize and configure the TOS API application."""
    app = Flask('tosapi')
    app.config.from_pyfile('config.py')
    setup_logger(app.config['LOGLEVEL'])

    authorization.init_app(app)
    datastore.init_app(app)
    app.extensions['authorizer'] = authorization.get_authorizer(app)
    app.extensions['datastore'] = datastore.get_datastore_client(app)
    app.extensions['status_reporter'] = StatusReporter(
        StatusCache(ttl=app.config['STATUS_CACHE_TTL'])
    )

    app.register_blueprint(routes.blueprint)
    app.before_request(handle_preflight)
    app.after_request(add_cors_headers)
    register_error_handlers(app)
    return app


def register_error_handlers(app: Flask) -> None:
    """Register error handlers for the Flask app."""
    app.errorhandler(HTTPException)(jsonify_exception)


def jsonify_exception(error: HTTPException) -> Response:
    """Render exceptions as JSON."""
    exc_resp = error.get_response()
    reason = error.description or error.name
    if exc_resp.status_code >= 500:
        logger.error('Error %s: %s', exc_resp.status_code, reason)
    else:
        logger.warning('Error %s: %s', exc_resp.status_code, reason)
    response: Response = jsonify(reason=reason)
    response.status_code = exc_resp.status_code
    return response


def handle_preflight() -> Optional[Response]:
    """Answer CORS preflight requests before any validation happens."""
    if request.method == 'OPTIONS':
        return Response(status=204)
    return None


def add_cors_headers(response: Response) -> Response:
    config = current_app.config
    response.headers['Access-Control-Allow-Origin'] = \
        request.headers.get('Origin', '*')
    response.headers['Access-Control-Allow-Methods'] = \
        ', '.join(config['CORS_ALLOWED_METHODS'])
    response.headers['Access-Control-Allow-Headers'] = \
        ', '.join(config['CORS_ALLOWED_HEADERS'])
    if 'Origin' in request.headers:
        response.headers.add('Vary', 'Origin')
    return response
