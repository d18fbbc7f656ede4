"""Baidu AI platform OAuth token exchange, shared by speech and vision."""
from typing import Optional

import httpx
from pydantic import BaseModel, ValidationError

from marketplace_agent.core.errors import ProviderUnavailableError, UnparsableResponseError

BAIDU_TOKEN_URL = "https://aip.baidubce.com/oauth/2.0/token"


class BaiduTokenResponse(BaseModel):
    access_token: Optional[str] = None
    expires_in: Optional[int] = None
    error: Optional[str] = None
    error_description: Optional[str] = None


class BaiduTokenClient:
    """Exchanges an API key/secret pair for an access token (client credentials grant)."""

    def __init__(self, client: httpx.Client, token_url: str = BAIDU_TOKEN_URL, timeout: float = 30):
        self.client = client
        self.token_url = token_url
        self.timeout = timeout

    def fetch(self, provider: str, api_key: str, secret_key: str) -> str:
        try:
            response = self.client.get(
                self.token_url,
                params={
                    "grant_type": "client_credentials",
                    "client_id": api_key,
                    "client_secret": secret_key,
                },
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            raise ProviderUnavailableError(provider, f"token request failed: {e}") from e

        if response.status_code != 200:
            raise ProviderUnavailableError(
                provider, f"token request HTTP {response.status_code}", status_code=response.status_code
            )

        try:
            token = BaiduTokenResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise UnparsableResponseError(provider, f"bad token response: {e}") from e

        if not token.access_token:
            raise UnparsableResponseError(provider, f"no access token: {token.error_description or token.error}")
        return token.access_token
