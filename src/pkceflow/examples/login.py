"""
Log in to an OAuth 2.0 authorization server from the terminal.

You'll need to set these environment variables (or put them in a .env file):
OAUTH_AUTHORIZATION_ENDPOINT, OAUTH_TOKEN_ENDPOINT, OAUTH_CLIENT_ID,
OAUTH_REDIRECT_URI and optionally OAUTH_SCOPES (space separated).

Open the printed URL, authorize, then paste the URI you were redirected to.
"""

import asyncio
import logging
import os
import secrets

from dotenv import load_dotenv

from pkceflow.auth.client.models.errors import OAuthConnectionException, OAuthException
from pkceflow.auth.client.models.flow import AuthorizationParams
from pkceflow.auth.client.oauth_client import ManualAuthorizationHandler, OAuth2LoginClient


async def ask_for_redirect(auth_url: str) -> str:
    print(f"Open this URL in your browser:\n\n  {auth_url}\n")
    return await asyncio.to_thread(input, "Redirect URI: ")


async def main():
    params = AuthorizationParams(
        authorization_endpoint=os.environ["OAUTH_AUTHORIZATION_ENDPOINT"],
        token_endpoint=os.environ["OAUTH_TOKEN_ENDPOINT"],
        client_id=os.environ["OAUTH_CLIENT_ID"],
        scopes=os.getenv("OAUTH_SCOPES", "").split(),
        redirect_uri=os.environ["OAUTH_REDIRECT_URI"],
        state=secrets.token_urlsafe(16),
    )
    client = OAuth2LoginClient(ManualAuthorizationHandler(ask_for_redirect))
    try:
        response = await client.login(params)
    except OAuthException as e:
        print(f"Authorization denied: {e}")
    except OAuthConnectionException as e:
        print(f"Could not complete login: {e}")
    else:
        print(f"Logged in. Granted scopes: {', '.join(response.scopes) or '(none)'}")
    finally:
        await client.close()


if __name__ == "__main__":
    load_dotenv()
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
