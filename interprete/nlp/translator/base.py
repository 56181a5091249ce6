from __future__ import annotations
from abc import ABC, abstractmethod
from interprete.contracts import Lang

class Translator(ABC):
    """One translation provider. Fails with ProviderError, never retries."""

    @property
    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    async def translate(self, text: str, source: Lang, target: Lang) -> str: ...

    async def aclose(self) -> None:
        return None
