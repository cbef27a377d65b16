"""Token exchange models for OAuth 2.0.

Contains the token request parameters, the raw token endpoint bodies and
the typed result handed back to callers.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import BaseModel

from pkceflow.auth.client.models.flow import AuthorizationParams


@dataclass(frozen=True)
class TokenRequest:
    """OAuth 2.0 token exchange request parameters (RFC 6749 Section 4.1.3).

    Includes the PKCE code_verifier (RFC 7636).
    """

    token_endpoint: str
    code: str
    redirect_uri: str
    client_id: str
    code_verifier: str = field(repr=False)
    grant_type: str = "authorization_code"

    @classmethod
    def from_params(cls, params: AuthorizationParams, code: str) -> TokenRequest:
        return cls(
            token_endpoint=params.token_endpoint,
            code=code,
            redirect_uri=params.redirect_uri,
            client_id=params.client_id,
            code_verifier=params.code_verifier,
        )

    def to_form_data(self) -> dict[str, str]:
        """Convert to form data for application/x-www-form-urlencoded request.

        Token requests must use form encoding, not JSON (RFC 6749 Section 4.1.3).
        """
        return {
            "grant_type": self.grant_type,
            "client_id": self.client_id,
            "code": self.code,
            "redirect_uri": self.redirect_uri,
            "code_verifier": self.code_verifier,
        }


class TokenSuccessBody(BaseModel):
    """Successful token endpoint body (RFC 6749 Section 5.1)."""

    access_token: str
    token_type: str
    scope: str | None = None


class TokenErrorBody(BaseModel):
    """Token endpoint error body (RFC 6749 Section 5.2). All fields optional."""

    error: str | None = None
    error_description: str | None = None
    error_uri: str | None = None


@dataclass(frozen=True)
class AccessTokenResponse:
    """Access token granted by the token endpoint."""

    access_token: str = field(repr=False)
    scopes: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "scopes", tuple(self.scopes))
