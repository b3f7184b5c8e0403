"""Defines the request, identity and status concepts used by the TOS API."""

from typing import Any, Dict, List, NamedTuple, Optional


class RequestInfo(NamedTuple):
    """Normalized inputs of a user-response request."""

    appid: str
    """Application to which the terms of service belong."""

    tosversion: float
    """Version of the terms of service."""

    accepted: Optional[bool] = None
    """Whether the user accepted the terms. Only set for writes."""


class VerifiedIdentity(NamedTuple):
    """
    Identity claims that passed every authorization policy check.

    Only :class:`.GoogleOAuthAuthorizer` creates these, and only after the
    claims returned by the tokeninfo endpoint have been validated.
    """

    user_id: str
    email: Optional[str]
    verified_email: bool
    audience: Optional[str]
    expires_in: float

    claims: Dict[str, Any]
    """The claims exactly as returned by the tokeninfo endpoint."""


class SubsystemStatus(NamedTuple):
    """Health of a single backing system."""

    ok: bool
    messages: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'ok': self.ok}
        if self.messages is not None:
            data['messages'] = self.messages
        return data


class StatusCheckResponse(NamedTuple):
    """Overall health of the TOS API."""

    ok: bool
    systems: Dict[str, SubsystemStatus]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'ok': self.ok,
            'systems': {name: system.to_dict()
                        for name, system in self.systems.items()}
        }
