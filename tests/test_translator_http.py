from __future__ import annotations

import json
from typing import Any

import aiohttp
import pytest

from interprete.contracts import Lang
from interprete.errors import ProviderError
from interprete.nlp.translator.lingva import LingvaTranslator
from interprete.nlp.translator.mymemory import MyMemoryTranslator


class _FakeResponse:
    def __init__(self, status: int, body: str) -> None:
        self.status = status
        self._body = body

    async def text(self) -> str:
        return self._body

    async def __aenter__(self) -> "_FakeResponse":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        return None


class _FakeSession:
    def __init__(self, status: int = 200, payload: Any = None, raw: str | None = None, exc=None) -> None:
        self.status = status
        self.body = raw if raw is not None else json.dumps(payload)
        self.exc = exc
        self.calls: list[tuple[str, Any]] = []
        self.closed = False

    def get(self, url: str, params=None, timeout=None) -> _FakeResponse:
        self.calls.append((url, params))
        if self.exc is not None:
            raise self.exc
        return _FakeResponse(self.status, self.body)

    async def close(self) -> None:
        self.closed = True


@pytest.mark.asyncio
async def test_lingva_builds_path_url_and_reads_translation() -> None:
    session = _FakeSession(payload={"translation": "hello friend"})
    tr = LingvaTranslator(base_url="https://lingva.test/api/v1/", session=session)
    out = await tr.translate("hola amigo", Lang.ES, Lang.EN)
    assert out == "hello friend"
    assert session.calls[0][0] == "https://lingva.test/api/v1/es/en/hola%20amigo"


@pytest.mark.asyncio
async def test_lingva_missing_translation_field_fails() -> None:
    tr = LingvaTranslator(session=_FakeSession(payload={"info": {}}))
    with pytest.raises(ProviderError) as ei:
        await tr.translate("hola", Lang.ES, Lang.EN)
    assert ei.value.provider == "lingva"


@pytest.mark.asyncio
async def test_lingva_non_success_status_fails() -> None:
    tr = LingvaTranslator(session=_FakeSession(status=503, payload={"translation": "x"}))
    with pytest.raises(ProviderError, match="HTTP 503"):
        await tr.translate("hola", Lang.ES, Lang.EN)


@pytest.mark.asyncio
async def test_lingva_transport_error_fails() -> None:
    tr = LingvaTranslator(session=_FakeSession(exc=aiohttp.ClientConnectionError("refused")))
    with pytest.raises(ProviderError, match="transport error"):
        await tr.translate("hola", Lang.ES, Lang.EN)


@pytest.mark.asyncio
async def test_invalid_json_fails() -> None:
    tr = LingvaTranslator(session=_FakeSession(raw="<html>busy</html>"))
    with pytest.raises(ProviderError, match="JSON"):
        await tr.translate("hola", Lang.ES, Lang.EN)


@pytest.mark.asyncio
async def test_mymemory_sends_langpair_and_reads_payload() -> None:
    session = _FakeSession(payload={"responseStatus": 200, "responseData": {"translatedText": "good morning"}})
    tr = MyMemoryTranslator(base_url="https://mm.test/get", session=session)
    out = await tr.translate("buenos días", Lang.ES, Lang.EN)
    assert out == "good morning"
    url, params = session.calls[0]
    assert url == "https://mm.test/get"
    assert params == {"q": "buenos días", "langpair": "es|en"}


@pytest.mark.asyncio
async def test_mymemory_in_body_status_failure() -> None:
    session = _FakeSession(
        payload={"responseStatus": 403, "responseData": {"translatedText": "QUOTA EXCEEDED"}}
    )
    tr = MyMemoryTranslator(session=session)
    with pytest.raises(ProviderError, match="responseStatus 403"):
        await tr.translate("hola", Lang.ES, Lang.EN)


@pytest.mark.asyncio
async def test_injected_session_is_not_closed() -> None:
    session = _FakeSession(payload={"translation": "x"})
    tr = LingvaTranslator(session=session)
    await tr.aclose()
    assert session.closed is False
