# cloudjobs/adapters/aiohttp_client_adapter.py
import asyncio
import aiohttp
from typing import Any, Dict, Mapping, Optional

from cloudjobs.core.interfaces.http_client import HttpClientPort
from cloudjobs.core.exceptions import JobStatusFetchError, TransientFetchError
from cloudjobs.core.settings import logger


class AioHttpClientAdapter(HttpClientPort):
    def __init__(self, default_timeout: float = 10.0):
        self._session: Optional[aiohttp.ClientSession] = None
        # Per-field timeouts are fixed at init time so callers only pass a total.
        self._default_total: float = default_timeout
        self._default_sock_read: float = default_timeout
        self._default_sock_connect: float = 5.0
        self._default_client_timeout = aiohttp.ClientTimeout(
            total=self._default_total,
            sock_read=self._default_sock_read,
            sock_connect=self._default_sock_connect,
        )

    async def __aenter__(self):
        """Async context manager entry"""
        self._session = aiohttp.ClientSession()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        await self.close()
        return False

    async def get(
        self,
        url: str,
        params: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> Dict[str, Any]:
        if self._session is None:
            raise RuntimeError("HTTP client not initialized. Use 'async with' context manager.")
        if timeout is None:
            client_timeout = self._default_client_timeout
        else:
            # Keep adapter-level sock_read/sock_connect values but apply provided total
            client_timeout = aiohttp.ClientTimeout(
                total=timeout,
                sock_read=self._default_sock_read,
                sock_connect=self._default_sock_connect,
            )

        return await self._fetch_json(url, params=params, timeout=client_timeout)

    async def _fetch_json(self, url: str, **kwargs) -> Dict[str, Any]:
        """
        Fetch JSON from URL.

        Translates HTTP/network errors into JobStatusFetchError; failures worth
        retrying (timeouts, 5xx, connection errors) become TransientFetchError.
        """
        if self._session is None:
            raise RuntimeError("HTTP client not initialized. Use 'async with' context manager.")

        try:
            async with self._session.get(url, **kwargs) as response:
                if response.status >= 400:
                    body = await response.text()
                    error_type = TransientFetchError if response.status >= 500 else JobStatusFetchError
                    logger.error(
                        "HTTP error when requesting job status. URL: %s, Status: %s",
                        url,
                        response.status,
                    )
                    raise error_type(
                        f"The job status endpoint returned an HTTP error: {response.status}",
                        upstream_status=response.status,
                        upstream_body=body[:500],
                    )
                try:
                    return await response.json()
                except aiohttp.ContentTypeError:
                    response_text = await response.text()
                    logger.error(
                        "Invalid JSON response from job status endpoint. URL: %s, Content: %s",
                        url,
                        response_text[:500],
                    )
                    raise JobStatusFetchError(
                        "The response from the job status endpoint was not valid JSON"
                        f": '{response_text[:100]}'",
                        upstream_status=response.status,
                        upstream_body=response_text[:500],
                    )

        except asyncio.TimeoutError:
            logger.error("Timeout when requesting job status. URL: %s", url)
            raise TransientFetchError(
                "The request to the job status endpoint timed out.",
                upstream_status=504,
            )

        except aiohttp.ClientError as client_error:
            logger.error(
                "Connection error when requesting job status. URL: %s, Error: %s",
                url,
                str(client_error),
            )
            raise TransientFetchError(
                "There was a connection error with the job status endpoint.",
                upstream_status=502,
                diagnostic=str(client_error),
            )

    async def close(self) -> None:
        """Close the session"""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None
