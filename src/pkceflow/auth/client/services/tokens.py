"""OAuth 2.0 token exchange service.

Implements the RFC 6749 token endpoint interaction of the authorization code
grant, carrying the PKCE code verifier (RFC 7636).
"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from pkceflow.auth.client.models.errors import (
    OAuthConnectionException,
    OAuthError,
    OAuthException,
)
from pkceflow.auth.client.models.flow import AuthorizationParams
from pkceflow.auth.client.models.tokens import (
    AccessTokenResponse,
    TokenErrorBody,
    TokenRequest,
    TokenSuccessBody,
)

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "pkceflow/0.1.0"


class TokenExchangeService:
    """Exchanges authorization codes for access tokens.

    Issues exactly one request per call and never retries; whether to try
    again is the caller's decision. Cancelling the awaiting task aborts the
    in-flight request.
    """

    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize the token exchange service.

        Args:
            user_agent: Application identifier sent as User-Agent
            timeout: HTTP request timeout in seconds
            http_client: Client to send requests with. Created (and owned)
                by the service if omitted.
        """
        self.user_agent = user_agent
        self.timeout = timeout
        self._owns_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout)

    async def retrieve_access_token(
        self, params: AuthorizationParams, code: str
    ) -> AccessTokenResponse:
        """Exchange an authorization code for an access token.

        Args:
            params: Parameters of the authorization attempt the code belongs to
            code: Authorization code extracted from the callback

        Returns:
            AccessTokenResponse: The bearer token and the granted scopes

        Raises:
            OAuthException: If the token endpoint answered with an error
            OAuthConnectionException: If the endpoint could not be reached or
                answered outside the protocol
        """
        token_request = TokenRequest.from_params(params, code)
        logger.debug(f"Exchanging authorization code at {token_request.token_endpoint}")

        headers = {
            "User-Agent": self.user_agent,
            "Content-Type": "application/x-www-form-urlencoded",
            "Accept-Charset": "UTF-8",
            "Accept": "*/*",
        }

        try:
            response = await self._http_client.post(
                token_request.token_endpoint,
                data=token_request.to_form_data(),
                headers=headers,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise OAuthConnectionException(
                f"HTTP error during token exchange: {e}"
            ) from e

        return self._parse_token_response(response)

    def _parse_token_response(self, response: httpx.Response) -> AccessTokenResponse:
        """Parse a token endpoint response (RFC 6749 Section 5)."""
        if not response.is_success:
            # No gate on "error": whatever the endpoint reports is passed on
            try:
                body = TokenErrorBody.model_validate_json(response.content)
            except ValidationError as e:
                raise OAuthConnectionException(
                    f"Invalid token error response (HTTP {response.status_code}): {e}"
                ) from e

            oauth_error = OAuthError(
                error=body.error or f"HTTP {response.status_code}",
                description=body.error_description,
                uri=body.error_uri,
            )
            logger.warning(
                f"Token exchange failed with {response.status_code}: {oauth_error.message}"
            )
            raise OAuthException(oauth_error)

        try:
            body = TokenSuccessBody.model_validate_json(response.content)
        except ValidationError as e:
            raise OAuthConnectionException(f"Invalid token response format: {e}") from e

        if body.token_type.lower() != "bearer":
            raise OAuthConnectionException(
                "OAuth 2 token endpoint returned an unknown token type "
                f"({body.token_type})"
            )

        scopes = tuple(body.scope.split(" ")) if body.scope else ()
        logger.info("Token exchange successful")
        return AccessTokenResponse(access_token=body.access_token, scopes=scopes)

    async def close(self) -> None:
        """Close the HTTP client if this service created it."""
        if self._owns_client:
            await self._http_client.aclose()

    async def __aenter__(self) -> TokenExchangeService:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
