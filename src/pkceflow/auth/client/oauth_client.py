"""OAuth 2.0 login orchestration.

Coordinates authorization URL dispatch, callback handling and token exchange
into one authorization code + PKCE login.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Protocol

from pkceflow.auth.client.models.flow import AuthorizationParams
from pkceflow.auth.client.models.tokens import AccessTokenResponse
from pkceflow.auth.client.services.flow import AuthorizationAttempt
from pkceflow.auth.client.services.tokens import TokenExchangeService

logger = logging.getLogger(__name__)


class AuthorizationHandler(Protocol):
    """Hands the authorization URL to the user's browser.

    The authorization server sends the browser back to the application's
    custom-scheme redirect URI (e.g. ``appscheme://callback?code=...``).
    Whatever intercepts that URI returns it from ``handle_authorization``.
    """

    async def handle_authorization(self, auth_url: str) -> str:
        """Open ``auth_url`` and wait for the intercepted redirect URI."""
        ...


class ManualAuthorizationHandler:
    """Delegates the browser round trip to an async callable.

    The callable receives the authorization URL and returns the redirect URI,
    e.g. by printing the URL and reading the pasted redirect from stdin.
    """

    def __init__(self, redirect_source: Callable[[str], Awaitable[str]] | None = None):
        self.redirect_source = redirect_source

    async def handle_authorization(self, auth_url: str) -> str:
        if self.redirect_source is None:
            raise NotImplementedError(
                f"No redirect source configured; open {auth_url} and supply "
                "the redirect URI yourself"
            )
        return await self.redirect_source(auth_url)


class OAuth2LoginClient:
    """Runs complete authorization code + PKCE logins."""

    def __init__(
        self,
        authorization_handler: AuthorizationHandler,
        token_service: TokenExchangeService | None = None,
    ):
        self.authorization_handler = authorization_handler
        self._token_service = token_service or TokenExchangeService()

    async def login(self, params: AuthorizationParams) -> AccessTokenResponse:
        """Perform one login attempt.

        Args:
            params: Fresh parameters for this attempt

        Returns:
            AccessTokenResponse: Granted access token and scopes

        Raises:
            OAuthException: If the user or the server denied authorization
            OAuthConnectionException: If the flow broke down
        """
        attempt = AuthorizationAttempt(params)
        auth_url = attempt.start()

        callback_uri = await self.authorization_handler.handle_authorization(auth_url)
        attempt.receive_callback(callback_uri)
        response = await attempt.exchange(self._token_service)
        logger.info(f"Login complete, granted scopes: {' '.join(response.scopes)}")
        return response

    async def close(self) -> None:
        await self._token_service.close()
