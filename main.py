"""Google Cloud Functions entry-point."""

from flask import Request, Response

from tosapi.factory import create_app

__flask_app__ = None


def tos(request: Request) -> Response:
    """
    HTTP Cloud Function for the TOS API.

    Cloud Functions hands us a Flask request; it is dispatched through the
    same application that the WSGI entry-point serves.
    """
    global __flask_app__
    if __flask_app__ is None:
        __flask_app__ = create_app()
    with __flask_app__.request_context(request.environ):
        try:
            return __flask_app__.full_dispatch_request()
        except Exception as e:
            # Rendered by the same error handlers as the WSGI entry-point.
            return __flask_app__.handle_exception(e)
