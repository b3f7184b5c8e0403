"""Web Server Gateway Interface entry-point."""

from tosapi.factory import create_app
import os

__flask_app__ = None


def application(environ, start_response):    # type: ignore
    """WSGI application."""
    global __flask_app__
    if __flask_app__ is None:
        for key, value in environ.items():
            # Request headers are not configuration.
            if key.startswith('HTTP_'):
                continue
            if key.isupper() and isinstance(value, str):
                os.environ[key] = value
        __flask_app__ = create_app()
    return __flask_app__(environ, start_response)
