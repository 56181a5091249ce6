from __future__ import annotations

import asyncio
import threading

from interprete.contracts import Lang
from interprete.errors import ProviderError
from .base import Translator


class ArgosTranslator(Translator):
    """Offline neural translation through Argos Translate models."""

    def __init__(self, auto_install: bool = True):
        self.auto_install = auto_install
        self._ready: set[tuple[str, str]] = set()
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return "argos"

    def _ensure_ready(self, from_code: str, to_code: str) -> None:
        with self._lock:
            if (from_code, to_code) in self._ready:
                return

            import argostranslate.package
            import argostranslate.translate

            installed = argostranslate.translate.get_installed_languages()
            have_from = any(l.code == from_code for l in installed)
            have_to = any(l.code == to_code for l in installed)

            if not (have_from and have_to):
                if not self.auto_install:
                    raise RuntimeError("Argos model not installed and auto_install=False")

                argostranslate.package.update_package_index()
                available = argostranslate.package.get_available_packages()

                pkg = None
                for p in available:
                    if p.from_code == from_code and p.to_code == to_code:
                        pkg = p
                        break
                if pkg is None:
                    raise RuntimeError(f"No Argos package found for {from_code}->{to_code}")

                path = pkg.download()
                argostranslate.package.install_from_path(path)

            self._ready.add((from_code, to_code))

    def _translate_blocking(self, text: str, from_code: str, to_code: str) -> str:
        self._ensure_ready(from_code, to_code)
        import argostranslate.translate
        return argostranslate.translate.translate(text, from_code, to_code)

    async def translate(self, text: str, source: Lang, target: Lang) -> str:
        try:
            out = await asyncio.to_thread(self._translate_blocking, text, source.value, target.value)
        except (ImportError, RuntimeError, OSError) as e:
            raise ProviderError(self.name, str(e) or type(e).__name__) from e
        if not out or not out.strip():
            raise ProviderError(self.name, "empty translation")
        return out
