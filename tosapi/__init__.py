"""
API for recording users' acceptance of versioned terms of service.

Clients read or write a user's response to a given version of an
application's terms of service at ``/v1/user/response``. Every such request
carries a Google OAuth access token in its Authorization header; the token
is checked against Google's tokeninfo endpoint, and the resulting claims
must satisfy our policy (verified email, unexpired token, and an audience or
email on the configured allow-lists) before Cloud Datastore is touched.

Responses are stored beneath the terms of service they answer, and a user's
current answer is their most recent one. ``/v1/status`` reports whether the
datastore is reachable.
"""
