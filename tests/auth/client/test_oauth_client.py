"""End-to-end login tests against a mocked token endpoint."""

from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from pkceflow.auth.client.models.errors import OAuthConnectionException, OAuthException
from pkceflow.auth.client.models.flow import AuthorizationParams
from pkceflow.auth.client.oauth_client import ManualAuthorizationHandler, OAuth2LoginClient
from pkceflow.auth.client.primitives.pkce import derive_challenge
from pkceflow.auth.client.services.tokens import TokenExchangeService


class TestOAuth2LoginClient:
    def setup_method(self):
        # Arrange
        self.params = AuthorizationParams(
            authorization_endpoint="https://auth.example.com/authorize",
            token_endpoint="https://auth.example.com/token",
            client_id="client-456",
            scopes=["read", "write"],
            redirect_uri="appscheme://callback",
            state="test-state-123",
        )
        self.token_requests: list[httpx.Request] = []

        def token_endpoint(request: httpx.Request) -> httpx.Response:
            self.token_requests.append(request)
            return httpx.Response(
                200,
                json={"access_token": "TOKEN", "token_type": "bearer", "scope": "read"},
            )

        self.token_service = TokenExchangeService(
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(token_endpoint))
        )

    async def test_login(self):
        # Arrange
        seen_urls = []

        async def browser(auth_url: str) -> str:
            seen_urls.append(auth_url)
            return "appscheme://callback?code=auth-code-456&state=test-state-123"

        client = OAuth2LoginClient(ManualAuthorizationHandler(browser), self.token_service)

        # Act
        response = await client.login(self.params)

        # Assert
        assert response.access_token == "TOKEN"
        assert response.scopes == ("read",)

        # Challenge sent to the browser matches the verifier sent to the token endpoint
        challenge = parse_qs(urlparse(seen_urls[0]).query)["code_challenge"][0]
        form = parse_qs(self.token_requests[0].content.decode("utf-8"))
        assert derive_challenge(form["code_verifier"][0]) == challenge
        assert form["code"] == ["auth-code-456"]

    async def test_foreign_redirect_is_rejected(self):
        # Arrange
        async def browser(auth_url: str) -> str:
            return "appscheme://callback?code=auth-code-456&state=someone-else"

        client = OAuth2LoginClient(ManualAuthorizationHandler(browser), self.token_service)

        # Act & Assert
        with pytest.raises(OAuthConnectionException):
            await client.login(self.params)

        assert self.token_requests == []

    async def test_denied_login(self):
        # Arrange
        async def browser(auth_url: str) -> str:
            return "appscheme://callback?error=access_denied&state=test-state-123"

        client = OAuth2LoginClient(ManualAuthorizationHandler(browser), self.token_service)

        # Act & Assert
        with pytest.raises(OAuthException) as exc_info:
            await client.login(self.params)

        assert exc_info.value.error == "access_denied"
        assert self.token_requests == []

    async def test_manual_handler_without_callback(self):
        # Arrange
        handler = ManualAuthorizationHandler()

        # Act & Assert
        with pytest.raises(NotImplementedError) as exc_info:
            await handler.handle_authorization("https://auth.example.com/authorize")

        assert "https://auth.example.com/authorize" in str(exc_info.value)
