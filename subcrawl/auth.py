"""
Reddit OAuth credential exchange.

Trades the account and application credentials for a bearer token using the
password grant, and decides when a held token should be renewed.
"""

import httpx
import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from subcrawl.errors import AuthError
from subcrawl.models import Credentials, Token, utcnow

ACCESS_TOKEN_URL = 'https://www.reddit.com/api/v1/access_token'

# Renew this long before expiry so requests never race the deadline
RENEWAL_MARGIN = timedelta(minutes=2)


async def exchange(
    client: httpx.AsyncClient,
    credentials: Credentials,
    user_agent: str,
    now: Callable[[], datetime] = utcnow
) -> Token:
    """
    Authenticate with Reddit and get an access token.

    Makes exactly one request; retrying is left to the caller.

    Args:
        client: HTTP client configured by the caller
        credentials: Account and application credentials
        user_agent: User-Agent header value
        now: Clock used to compute the expiry instant

    Returns:
        Fresh Token

    Raises:
        AuthError: On transport failure, non-200 status, or an unusable body
    """
    auth = httpx.BasicAuth(credentials.app_id, credentials.app_secret)
    data = {
        'grant_type': 'password',
        'username': credentials.username,
        'password': credentials.password,
    }

    try:
        response = await client.post(
            ACCESS_TOKEN_URL,
            auth=auth,
            data=data,
            headers={"User-Agent": user_agent}
        )
    except httpx.HTTPError as e:
        logging.error(f"Reddit authentication failed: {e}")
        raise AuthError(f"Token request failed: {e}") from e

    if response.status_code != 200:
        logging.error(f"Reddit authentication failed ({response.status_code})")
        raise AuthError(
            f"Token request returned HTTP {response.status_code}",
            status_code=response.status_code
        )

    try:
        token_data = response.json()
    except ValueError as e:
        raise AuthError("Token response is not valid JSON", status_code=200) from e

    if not isinstance(token_data, dict):
        raise AuthError("Token response is not a JSON object", status_code=200)

    # Rejected credentials come back as 200 with an error field
    if 'error' in token_data:
        logging.error(f"Reddit authentication rejected: {token_data['error']}")
        raise AuthError(f"Token request rejected: {token_data['error']}", status_code=200)

    access_token = token_data.get('access_token')
    expires_in = token_data.get('expires_in')
    if not isinstance(access_token, str) or not access_token:
        raise AuthError("Token response has no access_token", status_code=200)
    if isinstance(expires_in, bool) or not isinstance(expires_in, (int, float)) or expires_in <= 0:
        raise AuthError("Token response has no valid expires_in", status_code=200)

    token = Token(
        access_token=access_token,
        expires_at=now() + timedelta(seconds=expires_in)
    )
    logging.debug(f"Reddit authentication successful, token expires in {expires_in}s")
    return token


def should_renew(
    token: Optional[Token],
    now: Callable[[], datetime] = utcnow,
    margin: timedelta = RENEWAL_MARGIN
) -> bool:
    """
    Check whether a new token is needed before the next request.

    Args:
        token: Currently held token, or None if none was obtained yet
        now: Clock
        margin: How long before expiry a token stops being usable

    Returns:
        True if no token is held or it is within the margin of expiry
    """
    if token is None:
        return True

    return now() >= token.expires_at - margin
