from __future__ import annotations

from typing import Protocol


class StorageBackend(Protocol):
    """Flat string key-value storage shared with other writers."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...

    def keys(self) -> list[str]: ...
