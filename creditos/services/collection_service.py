import logging
from typing import Any, Generic, Iterator, List, Optional, Type, TypeVar

from pydantic import BaseModel

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class SubRecordCollection(Generic[T]):
    """Ordered, editable list of small records attached to a client draft.

    Insertion order is kept through every edit. Which records are complete
    enough to persist is decided by the caller through `is_complete()`.
    """

    def __init__(self, record_type: Type[T], items: Optional[List[T]] = None):
        self.record_type = record_type
        self._items: List[T] = list(items or [])

    def append(self) -> None:
        self._items.append(self.record_type())

    def update(self, index: int, field: str, value: Any) -> None:
        if not 0 <= index < len(self._items):
            logger.debug("Ignoring update of %s[%d]: index out of range", self.record_type.__name__, index)
            return
        if field not in self.record_type.model_fields:
            raise ValueError(f"{self.record_type.__name__} has no field '{field}'")
        current = self._items[index].model_dump()
        current[field] = value
        self._items[index] = self.record_type(**current)

    def remove(self, index: int) -> None:
        if not 0 <= index < len(self._items):
            logger.debug("Ignoring removal of %s[%d]: index out of range", self.record_type.__name__, index)
            return
        del self._items[index]

    def items(self) -> List[T]:
        return list(self._items)

    def complete(self) -> List[T]:
        return [item for item in self._items if item.is_complete()]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items))
