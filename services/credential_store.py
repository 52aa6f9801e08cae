"""In-memory per-provider API key storage."""

from __future__ import annotations

import logging
import threading
from typing import Dict, Optional

from models.provider_catalog import ProviderCatalog

LOGGER = logging.getLogger(__name__)


def mask_key(key: str) -> str:
    """Return a display-safe form of an API key, keeping only the last 4 characters."""
    if len(key) <= 4:
        return "*" * len(key)
    return "*" * (len(key) - 4) + key[-4:]


class CredentialStore:
    """Hold one API key per catalog provider.

    Keys are kept for a future outbound provider call per iteration; the
    simulated training loop never reads them.
    """

    def __init__(self, catalog: ProviderCatalog) -> None:
        self.catalog = catalog
        self._keys: Dict[str, str] = {}
        self._lock = threading.Lock()

    def set_key(self, provider: str, key: Optional[str]) -> bool:
        """Store or clear (empty/None key) the API key for a provider.

        Returns:
            True if a key is now stored for the provider.

        Raises:
            UnknownProviderError: If the provider is not in the catalog.
        """
        self.catalog.get(provider)
        cleaned = (key or "").strip()
        with self._lock:
            if cleaned:
                self._keys[provider] = cleaned
            else:
                self._keys.pop(provider, None)
        LOGGER.info("API key for provider %s %s", provider, "updated" if cleaned else "cleared")
        return bool(cleaned)

    def get_key(self, provider: str) -> Optional[str]:
        self.catalog.get(provider)
        with self._lock:
            return self._keys.get(provider)

    def has_key(self, provider: str) -> bool:
        return self.get_key(provider) is not None

    def masked(self) -> Dict[str, Optional[str]]:
        with self._lock:
            return {
                provider: mask_key(self._keys[provider]) if provider in self._keys else None
                for provider in self.catalog.keys()
            }
