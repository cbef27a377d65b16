"""OAuth 2.0 authorization attempt lifecycle.

Drives a single attempt through CREATED -> AWAITING_CALLBACK ->
CALLBACK_RECEIVED -> EXCHANGING -> COMPLETE | FAILED without skipping a
state.
"""

from __future__ import annotations

import logging

from pkceflow.auth.client.models.errors import (
    AuthorizationStateError,
    OAuthConnectionException,
)
from pkceflow.auth.client.models.flow import AuthorizationParams, AuthorizationState
from pkceflow.auth.client.models.tokens import AccessTokenResponse
from pkceflow.auth.client.services.callback import extract_authorization_code
from pkceflow.auth.client.services.tokens import TokenExchangeService

logger = logging.getLogger(__name__)


class AuthorizationAttempt:
    """One login attempt bound to its own AuthorizationParams.

    Attempts share nothing with each other, so several may run at once
    (e.g. logging in multiple accounts).
    """

    def __init__(self, params: AuthorizationParams):
        self.params = params
        self._state = AuthorizationState.CREATED
        self._code: str | None = None

    @property
    def state(self) -> AuthorizationState:
        return self._state

    def start(self) -> str:
        """Return the authorization URL to hand to the user's browser."""
        self._require(AuthorizationState.CREATED)
        url = self.params.authorization_request_url()
        self._state = AuthorizationState.AWAITING_CALLBACK
        logger.info(f"Authorization attempt started for client {self.params.client_id}")
        return url

    def its_for_me(self, callback_uri: str) -> bool:
        return self.params.its_for_me(callback_uri)

    def receive_callback(self, callback_uri: str) -> str:
        """Inspect the redirect and keep the authorization code.

        Raises:
            OAuthException: If the authorization server denied access
            OAuthConnectionException: If the callback is malformed or belongs
                to another attempt (wrong redirect URI or state)
        """
        self._require(AuthorizationState.AWAITING_CALLBACK)
        self._state = AuthorizationState.CALLBACK_RECEIVED
        if not self.params.its_for_me(callback_uri):
            self._state = AuthorizationState.FAILED
            logger.warning(
                f"Rejected redirect not bound to the attempt of client {self.params.client_id}"
            )
            raise OAuthConnectionException(
                "Received a redirect that does not belong to this authorization attempt"
            )
        try:
            self._code = extract_authorization_code(callback_uri)
        except Exception:
            self._state = AuthorizationState.FAILED
            raise
        return self._code

    async def exchange(self, token_service: TokenExchangeService) -> AccessTokenResponse:
        """Exchange the received code for an access token.

        The attempt ends up FAILED on any error, cancellation included.
        """
        self._require(AuthorizationState.CALLBACK_RECEIVED)
        self._state = AuthorizationState.EXCHANGING
        try:
            response = await token_service.retrieve_access_token(self.params, self._code)
            self._state = AuthorizationState.COMPLETE
            return response
        finally:
            self._code = None
            if self._state is not AuthorizationState.COMPLETE:
                self._state = AuthorizationState.FAILED
                logger.warning(
                    f"Token exchange failed for client {self.params.client_id}"
                )

    def _require(self, expected: AuthorizationState) -> None:
        if self._state is not expected:
            raise AuthorizationStateError(
                f"Authorization attempt is {self._state.value}, "
                f"expected {expected.value}"
            )
