"""Session authentication for the JSON API."""

from __future__ import annotations

from rest_framework.authentication import SessionAuthentication  # type: ignore


class ApiSessionAuthentication(SessionAuthentication):
    """
    Cookie session authentication.

    DRF answers 403 for unauthenticated requests when the first
    authenticator has no challenge header; advertising one makes missing
    sessions come back as 401.
    """

    def authenticate_header(self, request):  # type: ignore
        return 'Session realm="api"'
