"""Exception hierarchy for OAuth 2.0 authorization code flows.

Two failure kinds matter to callers:

- OAuthException: the authorization server itself refused or reported an
  error (callback ``error=...`` or a token endpoint error body). The user can
  usually do something about it, e.g. retry the login.
- OAuthConnectionException: the flow is malformed, unreachable or returned
  something outside the protocol. An infrastructure fault.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class OAuthError:
    """Structured OAuth 2.0 error (RFC 6749 Section 4.1.2.1 and 5.2)."""

    error: str
    description: str | None = None
    uri: str | None = None

    @property
    def message(self) -> str:
        """Human-readable message, e.g. ``"A!: B! (see http://abc.de)"``."""
        message = self.error
        if self.description:
            message = f"{message}: {self.description}"
        if self.uri:
            message = f"{message} (see {self.uri})"
        return message


class OAuth2Error(Exception):
    """Base exception for all OAuth 2.0 related errors."""

    pass


class OAuthException(OAuth2Error):
    """Raised when the authorization server reports an OAuth error."""

    def __init__(self, oauth_error: OAuthError):
        super().__init__(oauth_error.message)
        self.oauth_error = oauth_error

    @property
    def error(self) -> str:
        return self.oauth_error.error

    @property
    def description(self) -> str | None:
        return self.oauth_error.description

    @property
    def uri(self) -> str | None:
        return self.oauth_error.uri


class OAuthConnectionException(OAuth2Error):
    """Raised when the flow is malformed, unreachable or off-protocol.

    Covers callbacks with neither code nor error, unknown token types,
    malformed response bodies and transport failures.
    """

    pass


class AuthorizationStateError(OAuth2Error):
    """Raised when an authorization attempt is driven out of order."""

    pass
