from __future__ import annotations

from typing import Callable, Generic, Iterator, TypeVar

K = TypeVar("K")
V = TypeVar("V")


class EntityRegistry(Generic[K, V]):
    """Identity -> value map with stable, never reused identities.

    Values live in a compacting list; ``_slot`` maps each live identity to
    its position there and is rebuilt lazily after a deletion. Identities
    come from a counter that only restarts on :meth:`empty`.
    """

    def __init__(self, make_key: Callable[[int], K], key_value: Callable[[K], int]):
        self._make_key = make_key
        self._key_value = key_value
        self._last = 0
        self._keys: list[K] = []
        self._values: list[V] = []
        self._slot: dict[int, int] | None = {}

    def add_item(self, value: V) -> K:
        self._last += 1
        key = self._make_key(self._last)
        if self._slot is not None:
            self._slot[self._last] = len(self._values)
        self._keys.append(key)
        self._values.append(value)
        return key

    def _slots(self) -> dict[int, int]:
        if self._slot is None:
            self._slot = {self._key_value(k): i for i, k in enumerate(self._keys)}
        return self._slot

    def __getitem__(self, key: K) -> V:
        slot = self._slots().get(self._key_value(key))
        if slot is None:
            raise KeyError(key)
        return self._values[slot]

    def get(self, key: K) -> V | None:
        slot = self._slots().get(self._key_value(key))
        return None if slot is None else self._values[slot]

    def __contains__(self, key: object) -> bool:
        try:
            return self._key_value(key) in self._slots()  # type: ignore[arg-type]
        except (AttributeError, TypeError):
            return False

    def delete(self, key: K) -> V:
        slot = self._slots().get(self._key_value(key))
        if slot is None:
            raise KeyError(key)
        value = self._values.pop(slot)
        del self._keys[slot]
        self._slot = None
        return value

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[K]:
        return iter(list(self._keys))

    def keys(self) -> list[K]:
        return list(self._keys)

    def values(self) -> list[V]:
        return list(self._values)

    def items(self) -> list[tuple[K, V]]:
        return list(zip(self._keys, self._values))

    def empty(self) -> None:
        self._last = 0
        self._keys.clear()
        self._values.clear()
        self._slot = {}

    def __repr__(self) -> str:
        return f"EntityRegistry({len(self)} items, last={self._last})"


__all__ = ["EntityRegistry"]
