"""
Google Cloud Datastore integration for applications, TOS and user responses.

Entities are arranged in a single hierarchy within one namespace::

    Application/{appid}
        TermsOfService/{tosversion}
            TOSResponse/{auto id}

User responses are append-only; the current response of a user is the one
with the most recent ``timestamp``.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any, Dict, List, Optional

from flask import current_app
from google.api_core.exceptions import GoogleAPICallError
from google.cloud import datastore
from google.cloud.datastore.query import PropertyFilter
from pytz import UTC

from ..domain import RequestInfo, VerifiedIdentity
from ..exceptions import ResponseError

logger = logging.getLogger(__name__)

KIND_APPLICATION = 'Application'
KIND_TOS = 'TermsOfService'
KIND_USER_RESPONSE = 'TOSResponse'

TOO_MANY_RESULTS = 'unexpected: returned too many results'


def tos_version_id(tosversion: float) -> str:
    """Key name of a TOS version; ``1.0`` and ``1`` are the same version."""
    if float(tosversion).is_integer():
        return str(int(tosversion))
    return str(tosversion)


def _timestamp() -> str:
    """Current time as an ISO-8601 string that sorts chronologically."""
    return datetime.now(UTC).isoformat(timespec='milliseconds') \
        .replace('+00:00', 'Z')


def _storage_error(error: Exception) -> ResponseError:
    """Give storage failures a status code, 500 unless they carry one."""
    if isinstance(error, ResponseError):
        return error
    code = getattr(error, 'code', None)
    if isinstance(error, GoogleAPICallError) and isinstance(code, int):
        return ResponseError(code, error.message, cause=error)
    return ResponseError(500, str(error), cause=error)


class GoogleDatastoreClient:
    """Reads and writes TOS data in Google Cloud Datastore."""

    def __init__(self, client: Optional[datastore.Client] = None,
                 namespace: str = 'app', project: Optional[str] = None,
                 status_check_appid: str = 'FireCloud') -> None:
        self.namespace = namespace
        self.project = project
        self.status_check_appid = status_check_appid
        self._client = client
        self._client_lock = threading.Lock()

    @property
    def client(self) -> datastore.Client:
        """The Datastore client, created on first use."""
        with self._client_lock:
            if self._client is None:
                self._client = datastore.Client(project=self.project,
                                                namespace=self.namespace)
        return self._client

    def application_key(self, appid: str) -> datastore.Key:
        return self.client.key(KIND_APPLICATION, appid,
                               namespace=self.namespace)

    def tos_key(self, appid: str, tosversion: float) -> datastore.Key:
        return self.client.key(KIND_APPLICATION, appid,
                               KIND_TOS, tos_version_id(tosversion),
                               namespace=self.namespace)

    def _fetch_by_key(self, kind: str, key: datastore.Key) -> List[Any]:
        query = self.client.query(kind=kind)
        query.add_filter(filter=PropertyFilter('__key__', '=', key))
        return list(query.fetch())

    def _single(self, kind: str, key: datastore.Key,
                missing: str) -> datastore.Entity:
        try:
            hits = self._fetch_by_key(kind, key)
        except Exception as e:
            raise _storage_error(e) from e
        if len(hits) == 1:
            return hits[0]
        elif not hits:
            raise ResponseError(400, missing)
        # Keys are unique, so this should never happen.
        raise ResponseError(500, TOO_MANY_RESULTS)

    def application_exists(self, appid: str) -> datastore.Entity:
        """Get the application ``appid``, or fail with a 400."""
        return self._single(KIND_APPLICATION, self.application_key(appid),
                            f'Application {appid} does not exist.')

    def tos_exists(self, appid: str, tosversion: float) -> datastore.Entity:
        """Get the terms of service ``appid/tosversion``, or fail with a 400."""
        return self._single(
            KIND_TOS, self.tos_key(appid, tosversion),
            f'TermsOfService {appid}/{tos_version_id(tosversion)} '
            'does not exist.'
        )

    def get_current_response(self, userid: str, appid: str,
                             tosversion: float) -> datastore.Entity:
        """
        Get the most recent response of a user to a terms of service.

        Raises
        ------
        ResponseError
            404 if the user never responded, 403 if the most recent
            response declined the terms, 500 on storage failures.

        """
        query = self.client.query(kind=KIND_USER_RESPONSE,
                                  ancestor=self.tos_key(appid, tosversion))
        query.add_filter(filter=PropertyFilter('userid', '=', str(userid)))
        query.order = ['-timestamp']
        try:
            hits = list(query.fetch(limit=1))
        except Exception as e:
            raise _storage_error(e) from e

        if not hits:
            raise ResponseError(404)
        elif len(hits) > 1:
            # The query is limited to one result; this should never happen.
            raise ResponseError(500, TOO_MANY_RESULTS)
        if not hits[0].get('accepted'):
            raise ResponseError(403, 'user declined TOS')
        return hits[0]

    def create_response(self, identity: VerifiedIdentity,
                        reqinfo: RequestInfo) -> Dict[str, Any]:
        """
        Record a new response of a user to a terms of service.

        The application and the terms of service must both exist; they are
        looked up concurrently, and nothing is written unless both are
        found.
        """
        client = self.client
        with ThreadPoolExecutor(max_workers=2) as executor:
            application = executor.submit(self.application_exists,
                                          reqinfo.appid)
            tos = executor.submit(self.tos_exists, reqinfo.appid,
                                  reqinfo.tosversion)
            application.result()
            tos.result()

        key = client.key(KIND_APPLICATION, reqinfo.appid,
                         KIND_TOS, tos_version_id(reqinfo.tosversion),
                         KIND_USER_RESPONSE, namespace=self.namespace)
        entity = datastore.Entity(key=key)
        entity.update({
            'userid': str(identity.user_id),
            'email': identity.email,
            'timestamp': _timestamp(),
            'accepted': reqinfo.accepted
        })
        try:
            client.put(entity)
        except Exception as e:
            raise _storage_error(e) from e
        logger.debug('Saved response of user %s to %s/%s', identity.user_id,
                     reqinfo.appid, reqinfo.tosversion)
        return dict(entity)

    def health_check_query(self) -> List[Any]:
        """Look up the application used as a health probe."""
        return self._fetch_by_key(
            KIND_APPLICATION, self.application_key(self.status_check_appid)
        )


def init_app(app: object = None) -> None:
    """Set default configuration parameters for an application instance."""
    config = app.config if app is not None else current_app.config
    config.setdefault('GCP_PROJECT', None)
    config.setdefault('DATASTORE_NAMESPACE', 'app')
    config.setdefault('STATUS_CHECK_APPID', 'FireCloud')


def get_datastore_client(app: object = None) -> GoogleDatastoreClient:
    """Build a client for the configured project and namespace."""
    config = app.config if app is not None else current_app.config
    return GoogleDatastoreClient(
        namespace=config.get('DATASTORE_NAMESPACE', 'app'),
        project=config.get('GCP_PROJECT'),
        status_check_appid=config.get('STATUS_CHECK_APPID', 'FireCloud')
    )


def current_session() -> GoogleDatastoreClient:
    """Get/create the :class:`.GoogleDatastoreClient` for this application."""
    extensions = current_app.extensions
    if 'datastore' not in extensions:
        extensions['datastore'] = get_datastore_client()
    return extensions['datastore']
