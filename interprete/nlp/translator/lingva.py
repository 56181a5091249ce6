from __future__ import annotations

from typing import Optional
from urllib.parse import quote

import aiohttp

from interprete.contracts import Lang
from interprete.errors import ProviderError
from .http import HttpJsonTranslator

DEFAULT_LINGVA_URL = "https://lingva.ml/api/v1"


class LingvaTranslator(HttpJsonTranslator):
    """Lingva Translate, a free Google Translate front-end."""

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_LINGVA_URL,
        session: Optional[aiohttp.ClientSession] = None,
        timeout_sec: float = 8.0,
    ) -> None:
        super().__init__(session=session, timeout_sec=timeout_sec)
        self.base_url = base_url.rstrip("/")

    @property
    def name(self) -> str:
        return "lingva"

    async def translate(self, text: str, source: Lang, target: Lang) -> str:
        url = f"{self.base_url}/{source.value}/{target.value}/{quote(text, safe='')}"
        data = await self._get_json(url)
        translation = data.get("translation") if isinstance(data, dict) else None
        if not isinstance(translation, str) or not translation.strip():
            raise ProviderError(self.name, "no translation in response")
        return translation
