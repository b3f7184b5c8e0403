"""
Controller for reading and writing a user's response to a terms of service.

A request passes through validation, authorization and finally a datastore
read (GET) or write (POST). Any stage may raise a :class:`.ResponseError`,
which ends processing of the request.
"""

import logging
from typing import Any, Dict

from werkzeug.wrappers import Request

from .. import validation
from ..domain import RequestInfo, VerifiedIdentity
from ..exceptions import ResponseError

logger = logging.getLogger(__name__)


def handle_request(request: Request, authorizer: Any,
                   datastore: Any) -> Dict[str, Any]:
    """
    Handle a user-response request.

    Parameters
    ----------
    request : :class:`werkzeug.wrappers.Request`
    authorizer
        Anything with ``authorize(auth_header) -> VerifiedIdentity``, e.g.
        :class:`.GoogleOAuthAuthorizer`.
    datastore
        Anything with ``get_current_response(userid, appid, tosversion)``
        and ``create_response(identity, reqinfo)``, e.g.
        :class:`.GoogleDatastoreClient`.

    Returns
    -------
    dict
        The current (GET) or newly created (POST) user response.

    """
    validation.validate_request_url(request)
    validation.validate_request_method(request)
    validation.validate_content_type(request)
    auth_header = validation.require_authorization_header(request)
    reqinfo = validation.validate_inputs(request)
    logger.debug('Valid %s request for %s/%s', request.method,
                 reqinfo.appid, reqinfo.tosversion)

    identity = authorizer.authorize(auth_header)
    logger.debug('Authorized user %s', identity.user_id)

    if request.method == 'GET':
        return _read(identity, reqinfo, datastore)
    elif request.method == 'POST':
        return _write(identity, reqinfo, datastore)
    raise ResponseError(405)


def _read(identity: VerifiedIdentity, reqinfo: RequestInfo,
          datastore: Any) -> Dict[str, Any]:
    try:
        return dict(datastore.get_current_response(
            identity.user_id, reqinfo.appid, reqinfo.tosversion
        ))
    except Exception as e:
        raise ResponseError.prefixed(e, 'Error reading user response') from e


def _write(identity: VerifiedIdentity, reqinfo: RequestInfo,
           datastore: Any) -> Dict[str, Any]:
    try:
        return dict(datastore.create_response(identity, reqinfo))
    except Exception as e:
        raise ResponseError.prefixed(e, 'Error writing user response') from e
