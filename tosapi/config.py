"""Flask configuration for the TOS API."""

import os

GCP_PROJECT = os.environ.get('GCP_PROJECT')
"""Google Cloud project that holds the Datastore."""

DATASTORE_NAMESPACE = os.environ.get('DATASTORE_NAMESPACE', 'app')

TOKENINFO_URL = os.environ.get(
    'TOKENINFO_URL',
    'https://www.googleapis.com/oauth2/v2/tokeninfo'
)

OAUTH_CONFIG_FILE = os.environ.get('OAUTH_CONFIG_FILE')
"""JSON file with ``audiencePrefixes`` and ``emailSuffixes`` allow-lists.

Rendered at deploy time. If it is missing, the allow-lists are empty and
nobody is authorized."""

OAUTH_AUDIENCE_PREFIXES = os.environ.get('OAUTH_AUDIENCE_PREFIXES', '')
"""Comma-separated audience prefixes, added to those from the config file."""

OAUTH_EMAIL_SUFFIXES = os.environ.get('OAUTH_EMAIL_SUFFIXES', '')
"""Comma-separated email suffixes, added to those from the config file."""

STATUS_CHECK_APPID = os.environ.get('STATUS_CHECK_APPID', 'FireCloud')
"""Application looked up by the datastore health check."""

STATUS_CACHE_TTL = int(os.environ.get('STATUS_CACHE_TTL', '60'))

LOGLEVEL = int(os.environ.get('LOGLEVEL', 20))

CORS_ALLOWED_METHODS = ['GET', 'POST']
CORS_ALLOWED_HEADERS = ['Authorization', 'Content-Type', 'Accept', 'Origin',
                        'X-App-ID']
