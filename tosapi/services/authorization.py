"""
Authorizes users against Google's OAuth tokeninfo endpoint.

The bearer token supplied by the client is sent to the tokeninfo endpoint,
which responds with the claims for that token. The claims are then checked
against our policy: the token must belong to a verified email address, must
not have expired, and must carry either an audience or an email address that
is on one of the configured allow-lists.
"""

import json
import logging
import math
import re
from typing import Any, Dict, Iterable, List, Optional

import requests
from flask import current_app

from ..domain import VerifiedIdentity
from ..exceptions import ResponseError

logger = logging.getLogger(__name__)

DEFAULT_TOKENINFO_URL = 'https://www.googleapis.com/oauth2/v2/tokeninfo'

BEARER_PREFIX = re.compile(r'^bearer ', re.IGNORECASE)

USER_INFO_KEYS = ('email', 'verified_email', 'user_id', 'audience',
                  'expires_in')
"""Keys that must be present in the tokeninfo claims, checked in order."""

_session: Optional[requests.Session] = None


def _persistent_session() -> requests.Session:
    """Get the process-wide session so connections to Google are reused."""
    global _session
    if _session is None:
        _session = requests.Session()
    return _session


def _js_typeof(value: Any) -> str:
    if isinstance(value, bool):
        return 'boolean'
    if isinstance(value, (int, float)):
        return 'number'
    if isinstance(value, str):
        return 'string'
    return 'object'


def to_number(value: Any) -> float:
    """Coerce ``value`` to a number, or NaN if it does not look like one."""
    if isinstance(value, bool):
        return float(value)
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        if not value.strip():
            return 0.0
        try:
            return float(value.strip())
        except ValueError:
            return math.nan
    return math.nan


def _format_number(value: float) -> str:
    if value.is_integer():
        return str(int(value))
    return str(value)


def _claim_text(value: Any) -> Optional[str]:
    """Text of a string or numeric claim; ``None`` for anything else."""
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        return None
    if isinstance(value, float) and math.isfinite(value):
        return _format_number(value)
    return str(value)


def _render_claim(value: Any) -> str:
    text = _claim_text(value)
    return text if text is not None else json.dumps(value)


class GoogleOAuthAuthorizer:
    """Verifies bearer tokens and enforces the audience/email policy."""

    def __init__(self, audience_prefixes: Optional[Iterable[Any]] = None,
                 email_suffixes: Optional[Iterable[Any]] = None,
                 tokeninfo_url: str = DEFAULT_TOKENINFO_URL,
                 session: Optional[requests.Session] = None) -> None:
        self.audience_prefixes: List[str] = \
            [str(prefix) for prefix in audience_prefixes or []]
        self.email_suffixes: List[str] = \
            [str(suffix) for suffix in email_suffixes or []]
        self.tokeninfo_url = tokeninfo_url
        self.session = session or _persistent_session()

    def call_tokeninfo_api(self, token: str) -> Any:
        """Ask Google for the claims associated with ``token``."""
        response = self.session.post(
            self.tokeninfo_url,
            params={'access_token': token},
            headers={'Authorization': f'Bearer {token}'}
        )
        response.raise_for_status()
        return response.json()

    def validate_audience_or_email(self, audience: Optional[str],
                                   email: Optional[str]) -> bool:
        """Claims that are not strings or numbers never match."""
        if audience is not None and any(
                audience.startswith(prefix)
                for prefix in self.audience_prefixes):
            return True
        return email is not None and any(
            email.endswith(suffix) for suffix in self.email_suffixes
        )

    def validate_claims(self, claims: Any) -> VerifiedIdentity:
        """
        Check the tokeninfo claims against our authorization policy.

        Raises
        ------
        ResponseError
            401 on the first policy violation.

        """
        if claims is None:
            raise ResponseError(401, 'OAuth response is null')
        if not isinstance(claims, dict):
            raise ResponseError(
                401, f'OAuth response is not an object: {_js_typeof(claims)}'
            )

        for key in USER_INFO_KEYS:
            if key not in claims:
                raise ResponseError(401, f'OAuth token does not include {key}')

        verified = claims['verified_email']
        if not isinstance(verified, bool):
            raise ResponseError(
                401, 'OAuth token verified_email must be a Boolean.'
            )
        elif not verified:
            raise ResponseError(401, 'OAuth token verified_email must be true.')

        expires = to_number(claims['expires_in'])
        if not math.isfinite(expires):
            raise ResponseError(401, 'OAuth token expires_in must be a number.')
        elif expires <= 0:
            raise ResponseError(
                401,
                f'OAuth token has expired (expires_in: {_format_number(expires)})'
            )

        audience = _claim_text(claims['audience'])
        email = _claim_text(claims['email'])
        if not self.validate_audience_or_email(audience, email):
            raise ResponseError(
                401,
                'OAuth token must have an acceptable audience '
                f'({_render_claim(claims["audience"])}) '
                f'or email ({_render_claim(claims["email"])})'
            )

        return VerifiedIdentity(
            user_id=str(claims['user_id']),
            email=email,
            verified_email=verified,
            audience=audience,
            expires_in=expires,
            claims=claims
        )

    def authorize(self, auth_header: Optional[str]) -> VerifiedIdentity:
        """
        Verify the bearer token in ``auth_header`` and check its claims.

        Parameters
        ----------
        auth_header : str
            Raw value of the request's Authorization header. A leading
            ``Bearer `` (any case) is removed; anything else is sent to
            Google as-is.

        Returns
        -------
        :class:`.VerifiedIdentity`

        Raises
        ------
        ResponseError
            401 if the header is missing or the claims fail our policy;
            otherwise the status reported by Google, or 400.

        """
        if not auth_header:
            raise ResponseError(401)
        token = BEARER_PREFIX.sub('', auth_header, count=1)
        try:
            claims = self.call_tokeninfo_api(token)
            return self.validate_claims(claims)
        except Exception as e:
            status_code = _status_code(e)
            if status_code and not isinstance(e, ResponseError):
                logger.error('Tokeninfo API responded with error: %s',
                             _error_body(e))
            message = _error_message(e)
            raise ResponseError(status_code or 400,
                                f'Error authorizing user: {message}',
                                cause=e) from e


def _status_code(error: Exception) -> Optional[int]:
    if isinstance(error, ResponseError):
        return error.code
    response = getattr(error, 'response', None)
    if response is not None:
        return response.status_code
    return None


def _error_body(error: Exception) -> Any:
    response = getattr(error, 'response', None)
    if response is None:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def _error_message(error: Exception) -> str:
    """Prefer Google's error description, then the error's own message."""
    if isinstance(error, ResponseError):
        return error.description
    body = _error_body(error)
    if isinstance(body, dict) and body.get('error_description'):
        return str(body['error_description'])
    if str(error):
        return str(error)
    return repr(error)


def load_oauth_config(path: Optional[str]) -> Dict[str, List[str]]:
    """
    Load the allow-lists from a JSON file.

    The file is rendered at deploy time; when it is missing we fall back to
    empty allow-lists, which means that nobody is authorized.
    """
    empty: Dict[str, List[str]] = {'audiencePrefixes': [], 'emailSuffixes': []}
    if not path:
        return empty
    try:
        with open(path) as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning('Could not load OAuth config from %s: %s', path, e)
        return empty
    return {
        'audiencePrefixes': list(data.get('audiencePrefixes') or []),
        'emailSuffixes': list(data.get('emailSuffixes') or [])
    }


def _split(value: Optional[str]) -> List[str]:
    return [part.strip() for part in (value or '').split(',') if part.strip()]


def init_app(app: object = None) -> None:
    """Set default configuration parameters for an application instance."""
    config = app.config if app is not None else current_app.config
    config.setdefault('TOKENINFO_URL', DEFAULT_TOKENINFO_URL)
    config.setdefault('OAUTH_CONFIG_FILE', None)
    config.setdefault('OAUTH_AUDIENCE_PREFIXES', '')
    config.setdefault('OAUTH_EMAIL_SUFFIXES', '')


def get_authorizer(app: object = None) -> GoogleOAuthAuthorizer:
    """Build an authorizer from the application config."""
    config = app.config if app is not None else current_app.config
    oauth_config = load_oauth_config(config.get('OAUTH_CONFIG_FILE'))
    return GoogleOAuthAuthorizer(
        audience_prefixes=oauth_config['audiencePrefixes']
        + _split(config.get('OAUTH_AUDIENCE_PREFIXES')),
        email_suffixes=oauth_config['emailSuffixes']
        + _split(config.get('OAUTH_EMAIL_SUFFIXES')),
        tokeninfo_url=config.get('TOKENINFO_URL', DEFAULT_TOKENINFO_URL)
    )


def current_authorizer() -> GoogleOAuthAuthorizer:
    """Get/create the :class:`.GoogleOAuthAuthorizer` for this application."""
    extensions = current_app.extensions
    if 'authorizer' not in extensions:
        extensions['authorizer'] = get_authorizer()
    return extensions['authorizer']
