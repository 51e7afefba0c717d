from __future__ import annotations

from typing import Callable, Generic, Hashable, Iterable, Optional, TypeVar

from .errors import DuplicateNameError

I = TypeVar("I", bound=Hashable)


class NameIndex(Generic[I]):
    """Lazily built name -> identity map.

    ``_map`` is ``None`` until the first lookup. A lookup rebuilds it from
    ``scan`` (every ``(name, identity)`` pair of live entities with a
    non-empty name); a repeated name makes the rebuild fail and leaves the
    index unbuilt.
    """

    def __init__(self, kind: str, scan: Callable[[], Iterable[tuple[str, I]]]):
        self.kind = kind
        self._scan = scan
        self._map: Optional[dict[str, I]] = None

    @property
    def built(self) -> bool:
        return self._map is not None

    def invalidate(self) -> None:
        self._map = None

    def rebuild(self) -> dict[str, I]:
        mapping: dict[str, I] = {}
        for name, index in self._scan():
            if not name:
                continue
            if name in mapping:
                self._map = None
                raise DuplicateNameError(self.kind, name)
            mapping[name] = index
        self._map = mapping
        return mapping

    def lookup(self, name: str) -> Optional[I]:
        mapping = self._map if self._map is not None else self.rebuild()
        return mapping.get(name)

    def update(self, old_name: str, new_name: str, index: I) -> None:
        """Patch the map after ``index`` was renamed from ``old_name`` to ``new_name``.

        Renaming onto a name another entity already holds drops the whole map;
        the next lookup rebuilds it and reports the clash.
        """
        if self._map is None:
            return
        self._map.pop(old_name, None)
        if not new_name:
            return
        if new_name in self._map:
            self._map = None
            return
        self._map[new_name] = index

    def __repr__(self) -> str:
        size = "unbuilt" if self._map is None else f"{len(self._map)} names"
        return f"NameIndex({self.kind}, {size})"


__all__ = ["NameIndex"]
