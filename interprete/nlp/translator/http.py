from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Mapping, Optional

import aiohttp

from interprete.errors import ProviderError
from .base import Translator

logger = logging.getLogger("interprete.translator.http")


class HttpJsonTranslator(Translator):
    """
    Base for providers that answer a single GET with a JSON document.
    The aiohttp session is either injected (and then owned by the caller)
    or created lazily and closed by aclose().
    """

    def __init__(
        self,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        timeout_sec: float = 8.0,
    ) -> None:
        if timeout_sec <= 0:
            raise ValueError("timeout_sec must be > 0")
        self.timeout_sec = float(timeout_sec)
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout_sec)
            )
        return self._session

    async def _get_json(self, url: str, params: Optional[Mapping[str, str]] = None) -> Any:
        session = self._get_session()
        logger.debug("provider_request", extra={"provider": self.name, "url": url})
        try:
            async with session.get(
                url,
                params=params,
                timeout=aiohttp.ClientTimeout(total=self.timeout_sec),
            ) as response:
                if response.status < 200 or response.status >= 300:
                    raise ProviderError(self.name, f"HTTP {response.status}")
                body = await response.text()
        except ProviderError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ProviderError(self.name, f"transport error: {e!r}") from e

        try:
            return json.loads(body)
        except ValueError as e:
            raise ProviderError(self.name, "response is not valid JSON") from e

    async def aclose(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
        self._session = None
