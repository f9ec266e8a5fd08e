"""Host identity provider: "who am I" and user directory search."""
import logging
from typing import Optional

import httpx

from ptoflow.core.config import settings
from ptoflow.core.errors import IdentityError
from ptoflow.schemas.user_schema import IdentityAccount


logger = logging.getLogger("uvicorn.error")

MIN_QUERY_LENGTH = 2


class IdentityProvider:
    async def get_current_user(self, authorization: Optional[str]) -> IdentityAccount:
        raise NotImplementedError

    async def search_users(self, query: str) -> list[IdentityAccount]:
        raise NotImplementedError

    async def find_user_by_email(self, email: str) -> Optional[IdentityAccount]:
        """Exact (case-insensitive) email match first, else the first search hit."""
        accounts = await self.search_users(email)
        if not accounts:
            return None
        wanted = email.lower()
        for account in accounts:
            if (account.email_address or "").lower() == wanted:
                return account
        return accounts[0]


class AtlassianIdentityClient(IdentityProvider):
    """Jira-compatible REST directory (``/rest/api/3``)."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_token: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.base_url = (base_url if base_url is not None else settings.IDENTITY_BASE_URL).rstrip("/")
        self.api_token = api_token if api_token is not None else settings.IDENTITY_API_TOKEN
        self.timeout = timeout or settings.IDENTITY_TIMEOUT
        self._client = client

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def _get(self, path: str, *, params: Optional[dict] = None, authorization: Optional[str] = None) -> httpx.Response:
        headers = {"Accept": "application/json"}
        if authorization:
            headers["Authorization"] = authorization
        if self._client is not None:
            return await self._client.get(self._url(path), params=params, headers=headers, timeout=self.timeout)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.get(self._url(path), params=params, headers=headers)

    async def get_current_user(self, authorization: Optional[str]) -> IdentityAccount:
        if not authorization:
            raise IdentityError("Not authenticated")
        try:
            response = await self._get("/rest/api/3/myself", authorization=authorization)
        except httpx.HTTPError as exc:
            raise IdentityError(f"Failed to fetch current user: {exc}") from exc
        if response.status_code != 200:
            raise IdentityError(f"Failed to fetch current user: {response.status_code}")
        return IdentityAccount.model_validate(response.json())

    async def search_users(self, query: str) -> list[IdentityAccount]:
        if not query or len(query.strip()) < MIN_QUERY_LENGTH:
            return []
        authorization = f"Bearer {self.api_token}" if self.api_token else None
        try:
            response = await self._get("/rest/api/3/user/search", params={"query": query}, authorization=authorization)
            if response.status_code != 200:
                raise IdentityError(f"Failed to search users: {response.status_code}")
            return [IdentityAccount.model_validate(item) for item in response.json()]
        except (httpx.HTTPError, IdentityError, ValueError) as exc:
            logger.warning("Identity user search for %r failed: %s", query, exc)
            return []
