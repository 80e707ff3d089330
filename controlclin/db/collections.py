from typing import Any, Callable, Dict, Generic, Iterator, List, Optional, Type, TypeVar

from sqlmodel import SQLModel

from controlclin.core.logger import logger

T = TypeVar("T", bound=SQLModel)

ChangeListener = Callable[[str, str, SQLModel], None]


class EntityCollection(Generic[T]):
    """
    In-memory list of records of one entity type.

    Records are never mutated in place: every change builds a new object and
    swaps it in at the same index, then notifies subscribers with
    ``(collection_name, action, record)`` where action is ``added``,
    ``replaced`` or ``removed``.
    """

    def __init__(self, name: str, model: Type[T], items: Optional[List[T]] = None):
        self.name = name
        self.model = model
        self._items: List[T] = list(items or [])
        self._listeners: List[ChangeListener] = []

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items))

    def all(self) -> List[T]:
        return list(self._items)

    def get(self, record_id: str) -> Optional[T]:
        for item in self._items:
            if item.id == record_id:
                return item
        return None

    def filter(self, predicate: Callable[[T], bool]) -> List[T]:
        return [item for item in self._items if predicate(item)]

    def first(self, predicate: Callable[[T], bool]) -> Optional[T]:
        for item in self._items:
            if predicate(item):
                return item
        return None

    def add(self, item: T) -> T:
        self._items.append(item)
        self._notify("added", item)
        return item

    def replace(self, item: T) -> T:
        idx = self._index_of(item.id)
        if idx is None:
            raise KeyError(f"{self.name}: record {item.id} not found")
        self._items[idx] = item
        self._notify("replaced", item)
        return item

    def update(self, record_id: str, **changes: Any) -> T:
        current = self.get(record_id)
        if current is None:
            raise KeyError(f"{self.name}: record {record_id} not found")
        merged = {**current.model_dump(), **changes}
        return self.replace(self.model.model_validate(merged))

    def remove(self, record_id: str) -> Optional[T]:
        idx = self._index_of(record_id)
        if idx is None:
            return None
        item = self._items.pop(idx)
        self._notify("removed", item)
        return item

    def remove_where(self, predicate: Callable[[T], bool]) -> int:
        doomed = [item for item in self._items if predicate(item)]
        for item in doomed:
            self.remove(item.id)
        return len(doomed)

    def reset(self, items: List[T]) -> None:
        self._items = list(items)

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dump(self) -> List[Dict[str, Any]]:
        return [item.model_dump(mode="json") for item in self._items]

    def load(self, raw: List[Dict[str, Any]]) -> None:
        self._items = [self.model.model_validate(entry) for entry in raw]

    def _index_of(self, record_id: str) -> Optional[int]:
        for idx, item in enumerate(self._items):
            if item.id == record_id:
                return idx
        return None

    def _notify(self, action: str, item: T) -> None:
        for listener in list(self._listeners):
            try:
                listener(self.name, action, item)
            except Exception:
                logger.exception(f"Change listener failed on {self.name}.{action}")
