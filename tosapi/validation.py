"""
Validation of inbound user-response requests.

Each check raises :class:`.ResponseError` on the first problem it finds, and
the checks are meant to be applied in the order they are defined here:
URL, method, content type, authorization header, and finally the inputs.
"""

import logging
import math
import re
from typing import Any, List, Optional

from werkzeug.wrappers import Request

from .domain import RequestInfo
from .exceptions import ResponseError

logger = logging.getLogger(__name__)

USER_RESPONSE_PATHS = ('/v1/user/response', '/user/response')
ALLOWED_METHODS = ('GET', 'POST', 'OPTIONS')

# Leading numeric prefix accepted by JavaScript's parseFloat.
_FLOAT_PREFIX = re.compile(
    r'^\s*[+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)'
)


def validate_request_url(request: Request) -> None:
    if request.path not in USER_RESPONSE_PATHS:
        raise ResponseError(404)


def validate_request_method(request: Request) -> None:
    if request.method not in ALLOWED_METHODS:
        raise ResponseError(405)


def validate_content_type(request: Request) -> None:
    if request.method == 'POST':
        content_type = request.headers.get('Content-Type')
        if not content_type or not content_type.startswith('application/json'):
            raise ResponseError(415)


def require_authorization_header(request: Request) -> Optional[str]:
    """Get the raw Authorization header for reads and writes."""
    if request.method in ('GET', 'POST'):
        auth_header = request.headers.get('Authorization')
        if not auth_header:
            raise ResponseError(401)
        return auth_header
    return None


def parse_float(value: Any) -> float:
    """Parse ``value`` the way JavaScript's ``parseFloat`` does."""
    if value is None:
        return math.nan
    match = _FLOAT_PREFIX.match(str(value))
    if not match:
        return math.nan
    return float(match.group(0).strip().replace('Infinity', 'inf'))


def is_number(value: Any) -> bool:
    """Finite int or float; bools are not numbers here."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # Integers beyond the float range.
        return False


def validate_inputs(request: Request) -> RequestInfo:
    """
    Extract and type-check ``appid``, ``tosversion`` and ``accepted``.

    Field-level problems are collected and reported together, in the order
    accepted, appid, tosversion.

    Raises
    ------
    ResponseError
        400 if the body or any field is invalid, 405 for unsupported
        methods.

    """
    input_errors: List[str] = []
    accepted: Any = None

    if request.method == 'GET':
        appid = request.args.get('appid')
        tosversion = parse_float(request.args.get('tosversion'))
        if math.isnan(tosversion):
            logger.warning('error parsing tosversion value: %s',
                           request.args.get('tosversion'))
    elif request.method == 'POST':
        body = request.get_json(force=True, silent=True)
        if not isinstance(body, dict):
            raise ResponseError(400, 'Request body must be valid JSON.')
        appid = body.get('appid')
        tosversion = body.get('tosversion')
        accepted = body.get('accepted')
        if not isinstance(accepted, bool):
            input_errors.append('accepted must be a Boolean.')
    else:
        # validate_request_method runs first, so this should not happen.
        raise ResponseError(405)

    if not isinstance(appid, str):
        input_errors.append('appid must be a String.')
    if not is_number(tosversion):
        input_errors.append('tosversion must be a Number.')

    if input_errors:
        raise ResponseError(400, ' '.join(input_errors))
    if accepted is not None:
        return RequestInfo(appid, tosversion, bool(accepted))
    return RequestInfo(appid, tosversion)
