from __future__ import annotations

from typing import Optional

import aiohttp

from interprete.contracts import Lang
from interprete.errors import ProviderError
from .http import HttpJsonTranslator

DEFAULT_MYMEMORY_URL = "https://api.mymemory.translated.net/get"


class MyMemoryTranslator(HttpJsonTranslator):
    def __init__(
        self,
        *,
        base_url: str = DEFAULT_MYMEMORY_URL,
        session: Optional[aiohttp.ClientSession] = None,
        timeout_sec: float = 8.0,
    ) -> None:
        super().__init__(session=session, timeout_sec=timeout_sec)
        self.base_url = base_url

    @property
    def name(self) -> str:
        return "mymemory"

    async def translate(self, text: str, source: Lang, target: Lang) -> str:
        data = await self._get_json(
            self.base_url,
            params={"q": text, "langpair": f"{source.value}|{target.value}"},
        )
        if not isinstance(data, dict):
            raise ProviderError(self.name, "unexpected response shape")
        # MyMemory reports failures inside a 200 body.
        status = data.get("responseStatus")
        if str(status) != "200":
            raise ProviderError(self.name, f"responseStatus {status}")
        payload = data.get("responseData") or {}
        translated = payload.get("translatedText") if isinstance(payload, dict) else None
        if not isinstance(translated, str) or not translated.strip():
            raise ProviderError(self.name, "no translatedText in response")
        return translated
