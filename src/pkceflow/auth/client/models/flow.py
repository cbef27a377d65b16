"""Authorization flow models for OAuth 2.0 with PKCE.

Contains the per-attempt authorization parameters, the attempt lifecycle
states, and the possible outcomes of an authorization callback.
"""

from __future__ import annotations

import random
import re
import secrets
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from urllib.parse import parse_qs, quote, urlencode, urlsplit

from pydantic import BaseModel, ConfigDict, Field

from pkceflow.auth.client.models.errors import OAuthError
from pkceflow.auth.client.primitives.pkce import (
    CODE_CHALLENGE_METHOD,
    derive_challenge,
    generate_verifier,
)

# RFC 3986 scheme followed by a body without whitespace
_URI_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*:\S*$")


class AuthorizationParams(BaseModel):
    """Parameters of one authorization attempt.

    Immutable. Every instance carries its own freshly generated code
    verifier, so the JSON form (``to_json``) is a secret and must never be
    logged. It exists so an in-flight attempt can survive a process restart
    while the user is in the external browser.
    """

    model_config = ConfigDict(frozen=True)

    authorization_endpoint: str
    token_endpoint: str
    client_id: str
    scopes: tuple[str, ...] = ()
    redirect_uri: str
    state: str | None = None
    code_verifier: str = Field(
        default_factory=generate_verifier,
        pattern=r"^[A-Za-z0-9._~-]{43,128}$",
        repr=False,
    )

    @classmethod
    def create(
        cls,
        authorization_endpoint: str,
        token_endpoint: str,
        client_id: str,
        scopes: Sequence[str],
        redirect_uri: str,
        state: str | None = None,
        rng: random.Random | None = None,
    ) -> AuthorizationParams:
        """Build parameters with a verifier drawn from ``rng``."""
        return cls(
            authorization_endpoint=authorization_endpoint,
            token_endpoint=token_endpoint,
            client_id=client_id,
            scopes=tuple(scopes),
            redirect_uri=redirect_uri,
            state=state,
            code_verifier=generate_verifier(rng),
        )

    def with_new_verifier(self, rng: random.Random | None = None) -> AuthorizationParams:
        """Return a copy of these parameters with a fresh code verifier."""
        return self.model_copy(update={"code_verifier": generate_verifier(rng)})

    @property
    def code_challenge(self) -> str:
        return derive_challenge(self.code_verifier)

    def authorization_request_url(self) -> str:
        """Build the URL the user has to open to grant access."""
        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "scope": " ".join(self.scopes),
            "code_challenge": self.code_challenge,
            "code_challenge_method": CODE_CHALLENGE_METHOD,
        }
        if self.state:
            params["state"] = self.state

        separator = "&" if "?" in self.authorization_endpoint else "?"
        query = urlencode(params, safe="", quote_via=quote)
        return f"{self.authorization_endpoint}{separator}{query}"

    def its_for_me(self, candidate_uri: str) -> bool:
        """Check whether a received redirect belongs to this attempt.

        The part before the query must equal ``redirect_uri`` exactly. If a
        state was sent it must come back unchanged; if none was sent, the
        callback must not carry one either.
        """
        if not _URI_PATTERN.match(candidate_uri):
            return False
        try:
            parsed = urlsplit(candidate_uri)
            query_params = parse_qs(parsed.query, keep_blank_values=True)
        except ValueError:
            return False

        base_uri = candidate_uri.split("#", 1)[0].split("?", 1)[0]
        if base_uri != self.redirect_uri:
            return False

        received_states = query_params.get("state")
        if not self.state:
            return received_states is None
        if received_states is None or len(received_states) != 1:
            return False
        return secrets.compare_digest(
            received_states[0].encode("utf-8"), self.state.encode("utf-8")
        )

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, data: str | bytes) -> AuthorizationParams:
        return cls.model_validate_json(data)


class AuthorizationState(Enum):
    """Lifecycle of a single authorization attempt."""

    CREATED = "created"
    AWAITING_CALLBACK = "awaiting_callback"
    CALLBACK_RECEIVED = "callback_received"
    EXCHANGING = "exchanging"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass(frozen=True)
class AuthorizationCode:
    """Callback carried an authorization code."""

    code: str

    def __repr__(self) -> str:
        return "AuthorizationCode(code=<redacted>)"


@dataclass(frozen=True)
class AuthorizationDenied:
    """Callback carried an OAuth error from the authorization server."""

    error: OAuthError


@dataclass(frozen=True)
class MalformedCallback:
    """Callback could not be understood."""

    reason: str


CallbackResult = AuthorizationCode | AuthorizationDenied | MalformedCallback
