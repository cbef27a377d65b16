"""OAuth 2.0 authorization callback parsing.

Turns the redirect URI the authorization server sent the user back to into
either an authorization code or a structured OAuth error.
"""

from __future__ import annotations

import logging
from urllib.parse import parse_qs, unquote_plus, urlsplit

from pkceflow.auth.client.models.errors import (
    OAuthConnectionException,
    OAuthError,
    OAuthException,
)
from pkceflow.auth.client.models.flow import (
    AuthorizationCode,
    AuthorizationDenied,
    CallbackResult,
    MalformedCallback,
)

logger = logging.getLogger(__name__)


def parse_callback(redirect_uri: str) -> CallbackResult:
    """Classify a redirect URI received from the authorization server.

    Args:
        redirect_uri: Full redirect URI including its query

    Returns:
        AuthorizationCode, AuthorizationDenied or MalformedCallback
    """
    try:
        query_params = parse_qs(urlsplit(redirect_uri).query, keep_blank_values=True)
    except ValueError as e:
        return MalformedCallback(f"Callback URI could not be parsed: {e}")

    def get_single_param(key: str) -> str | None:
        values = query_params.get(key, [])
        return values[0] if values else None

    error = get_single_param("error")
    if error is not None:
        # The error code is form-encoded before being percent-encoded
        # (error=hey%2Bwhat%27s%2Bup); description and uri are encoded once.
        return AuthorizationDenied(
            OAuthError(
                error=unquote_plus(error),
                description=get_single_param("error_description"),
                uri=get_single_param("error_uri"),
            )
        )

    code = get_single_param("code")
    if code is None:
        return MalformedCallback(
            "OAuth 2 authorization callback contained neither 'code' nor 'error'"
        )
    return AuthorizationCode(code)


def extract_authorization_code(redirect_uri: str) -> str:
    """Extract the authorization code from a redirect URI.

    Raises:
        OAuthException: If the authorization server reported an error
        OAuthConnectionException: If the callback is malformed
    """
    match parse_callback(redirect_uri):
        case AuthorizationCode(code=code):
            logger.debug("Authorization callback carried an authorization code")
            return code
        case AuthorizationDenied(error=oauth_error):
            logger.warning(f"Authorization callback contained error: {oauth_error.error}")
            raise OAuthException(oauth_error)
        case MalformedCallback(reason=reason):
            logger.warning(f"Malformed authorization callback: {reason}")
            raise OAuthConnectionException(reason)
