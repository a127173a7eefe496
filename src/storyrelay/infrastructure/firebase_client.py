"""Firebase Realtime Database REST client."""

import logging
from typing import Any

import aiohttp
from aiohttp import ClientTimeout

from storyrelay.errors import ProviderError

logger = logging.getLogger(__name__)

SERVER_TIMESTAMP = {".sv": "timestamp"}


class FirebaseClient:
    """Async client for the Realtime Database REST API.

    No retries: every failure is raised to the caller as ProviderError.
    """

    def __init__(
        self,
        database_url: str,
        auth_token: str = "",
        timeout_seconds: int = 30,
    ) -> None:
        """Initialize Firebase client.

        Args:
            database_url: Database root, e.g. https://<project>.firebaseio.com
            auth_token: Database secret or OAuth access token (optional)
            timeout_seconds: Request timeout in seconds
        """
        self.database_url = database_url.rstrip("/")
        self.auth_token = auth_token
        self.timeout = ClientTimeout(total=timeout_seconds)
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def close(self) -> None:
        """Close the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()

    def _url(self, path: str) -> str:
        return f"{self.database_url}/{path.strip('/')}.json"

    def _params(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        params = dict(extra or {})
        if self.auth_token:
            params["auth"] = self.auth_token
        return params

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, str] | None = None,
        json_body: Any = None,
    ) -> Any:
        if not self.database_url:
            raise ProviderError("firebase", "Database URL not configured")

        session = await self._get_session()
        url = self._url(path)
        try:
            async with session.request(
                method, url, params=self._params(params), json=json_body
            ) as response:
                if response.status != 200:
                    body = await response.text()
                    logger.error(f"HTTP {response.status} for {method} {url}: {body}")
                    raise ProviderError(
                        "firebase",
                        f"HTTP {response.status} for {method} {path}",
                        body,
                        upstream_status=response.status,
                    )
                try:
                    return await response.json()
                except ValueError as e:
                    logger.error(f"Malformed JSON for {method} {url}")
                    raise ProviderError(
                        "firebase", f"Malformed JSON response for {method} {path}", str(e)
                    ) from e
        except TimeoutError as e:
            logger.error(f"Timeout on {method} {url}")
            raise ProviderError("firebase", f"Timeout on {method} {path}") from e
        except aiohttp.ClientError as e:
            logger.error(f"Client error on {method} {url}: {e}")
            raise ProviderError("firebase", f"Request to {path} failed", str(e)) from e

    async def push(self, path: str, data: dict[str, Any]) -> str:
        """Append a child with a generated key under ``path``.

        Returns:
            The generated child key
        """
        result = await self._request("POST", path, json_body=data)
        if not isinstance(result, dict) or not isinstance(result.get("name"), str):
            raise ProviderError("firebase", "Push response carried no key", str(result))
        return result["name"]

    async def query_last(
        self, path: str, order_by: str, limit: int = 1
    ) -> dict[str, Any]:
        """Return the last ``limit`` children of ``path`` ordered by a child field.

        The server-side query needs an ``".indexOn": "<order_by>"`` rule on
        ``path``. Without it the database answers 400 "Index not defined" and
        the whole node is fetched and ordered here instead.

        Returns:
            Mapping of child key to child value (empty when nothing is stored)
        """
        try:
            result = await self._request(
                "GET",
                path,
                params={"orderBy": f'"{order_by}"', "limitToLast": str(limit)},
            )
        except ProviderError as e:
            if e.upstream_status != 400 or "Index not defined" not in (e.detail or ""):
                raise
            logger.warning(
                f'No ".indexOn": "{order_by}" rule on {path}, ordering client-side'
            )
            result = self._last_by(await self._request("GET", path), order_by, limit)

        if result is None:
            return {}
        if not isinstance(result, dict):
            raise ProviderError("firebase", "Unexpected query response", str(result))
        return result

    @staticmethod
    def _last_by(children: Any, order_by: str, limit: int) -> Any:
        """Pick the ``limit`` children with the highest ``order_by`` value."""
        if not isinstance(children, dict):
            return children

        def sort_key(item: tuple[str, Any]) -> tuple[float, str]:
            key, value = item
            field_value = value.get(order_by) if isinstance(value, dict) else None
            if not isinstance(field_value, int | float):
                field_value = float("-inf")
            return field_value, key

        ordered = sorted(children.items(), key=sort_key)
        return dict(ordered[-limit:])
