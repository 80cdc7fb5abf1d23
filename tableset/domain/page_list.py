from dataclasses import dataclass
from typing import Generic, List, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class PageList(Generic[T]):
    items: List[T]
    total_count: int
    page_size: int = 0
    page_index: int = 1

    @property
    def page_count(self) -> int:
        """Number of pages needed for `total_count` records."""
        if self.page_size <= 0:
            return 0
        return (self.total_count + self.page_size - 1) // self.page_size

    def __len__(self):
        return len(self.items)

    def __iter__(self):
        return iter(self.items)
