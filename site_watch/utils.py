# File: site_watch/utils.py
"""site_watch.utils: вспомогательные функции для обработки URL."""

from __future__ import annotations

from typing import Collection, List, Sequence
from urllib.parse import urlparse

from site_watch.logger import logger

__all__: Sequence[str] = (
    "is_http_url",
    "remove_duplicates",
)


def is_http_url(url: str) -> bool:
    """Проверяет, что URL использует http(s) и содержит хост."""
    parsed = urlparse(url)
    valid = parsed.scheme in ("http", "https") and bool(parsed.netloc)
    logger.debug("URL valid: %s -> %s", url, valid)
    return valid


def remove_duplicates(urls: Collection[str]) -> List[str]:
    """Удаляет дубликаты из списка URL, сохраняя порядок."""
    unique = list(dict.fromkeys(urls))
    removed = len(urls) - len(unique)
    if removed:
        logger.debug("Removed %d duplicate URLs", removed)
    return unique
