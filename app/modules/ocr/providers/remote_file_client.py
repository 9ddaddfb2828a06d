import asyncio
import logging
from typing import Optional
from urllib.parse import quote

import httpx

from app.modules.ocr.exceptions import (
    DocumentTooLargeError,
    RemoteFetchError,
    RemoteFetchTimeoutError,
)

logger = logging.getLogger(__name__)


class RemoteFileClient:
    """
    Downloads document bytes from the remote file store by identifier.
    """

    def __init__(
        self,
        url_template: str,
        timeout_seconds: float = 30.0,
        max_bytes: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url_template = url_template
        self.timeout_seconds = timeout_seconds
        self.max_bytes = max_bytes
        self._transport = transport

    def build_url(self, file_id: str) -> str:
        return self.url_template.format(file_id=quote(file_id, safe=""))

    def _headers(self, access_token: Optional[str]) -> dict:
        headers = {"Accept": "*/*"}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    async def download(self, file_id: str, access_token: Optional[str] = None) -> bytes:
        """
        Fetches the file, bounded by timeout_seconds for the whole transfer.
        """
        try:
            return await asyncio.wait_for(
                self._download(file_id, access_token),
                timeout=self.timeout_seconds,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            raise RemoteFetchTimeoutError(
                f"Timed out after {self.timeout_seconds:g}s while downloading file '{file_id}'"
            )

    async def _download(self, file_id: str, access_token: Optional[str]) -> bytes:
        url = self.build_url(file_id)
        async with httpx.AsyncClient(
            timeout=self.timeout_seconds,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            try:
                async with client.stream("GET", url, headers=self._headers(access_token)) as response:
                    if response.is_error:
                        await response.aread()
                        snippet = response.text[:200].strip()
                        message = f"Remote file store responded with {response.status_code} {response.reason_phrase}"
                        raise RemoteFetchError(f"{message}: {snippet}" if snippet else message)

                    chunks = []
                    received = 0
                    async for chunk in response.aiter_bytes():
                        received += len(chunk)
                        if self.max_bytes is not None and received > self.max_bytes:
                            raise DocumentTooLargeError(
                                f"Remote file '{file_id}' exceeds the {self.max_bytes} byte limit"
                            )
                        chunks.append(chunk)
            except httpx.TimeoutException:
                raise
            except httpx.HTTPError as exc:
                raise RemoteFetchError(f"Failed to download file '{file_id}': {exc}")

        logger.debug(f"Downloaded {received} bytes for file '{file_id}'")
        return b"".join(chunks)
