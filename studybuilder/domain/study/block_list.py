"""Ordered block list.

An immutable sequence of blocks where order values always run 0..n-1 and ids
are unique. Every operation returns a new list or raises before any change
is made.
"""

import copy
from dataclasses import replace
from typing import Any, Iterable, Iterator, List, Optional, Tuple

from studybuilder.domain.study.errors import BlockNotFound, DuplicateBlockId
from studybuilder.domain.study.models import Block, new_block_id


COPY_SUFFIX = " (copy)"

_EDITABLE_FIELDS = frozenset({
    "name",
    "description",
    "estimated_duration",
    "is_required",
    "settings",
    "template_id",
})


class OrderedBlockList:
    """Immutable ordered collection of blocks."""

    __slots__ = ("_blocks",)

    def __init__(self, blocks: Iterable[Block] = ()):
        items = tuple(blocks)
        seen = set()
        for block in items:
            if block.id in seen:
                raise DuplicateBlockId(block.id)
            seen.add(block.id)
        self._blocks: Tuple[Block, ...] = self._reindexed(items)

    @staticmethod
    def _reindexed(blocks: Tuple[Block, ...]) -> Tuple[Block, ...]:
        return tuple(block.with_order(i) for i, block in enumerate(blocks))

    @classmethod
    def _from_trusted(cls, blocks: Tuple[Block, ...]) -> "OrderedBlockList":
        # Callers guarantee id uniqueness already holds.
        instance = cls.__new__(cls)
        instance._blocks = cls._reindexed(blocks)
        return instance

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._blocks)

    def __iter__(self) -> Iterator[Block]:
        return iter(self._blocks)

    def __getitem__(self, index: int) -> Block:
        return self._blocks[index]

    def __contains__(self, block_id: object) -> bool:
        return any(b.id == block_id for b in self._blocks)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OrderedBlockList):
            return NotImplemented
        return self._blocks == other._blocks

    def __hash__(self):
        return hash(tuple(b.id for b in self._blocks))

    def __repr__(self) -> str:
        return f"OrderedBlockList({list(self.ids())!r})"

    def ids(self) -> List[str]:
        return [b.id for b in self._blocks]

    def to_list(self) -> List[Block]:
        return list(self._blocks)

    def index_of(self, block_id: str) -> int:
        for i, block in enumerate(self._blocks):
            if block.id == block_id:
                return i
        raise BlockNotFound(block_id)

    def get(self, block_id: str) -> Block:
        return self._blocks[self.index_of(block_id)]

    def get_optional(self, block_id: str) -> Optional[Block]:
        for block in self._blocks:
            if block.id == block_id:
                return block
        return None

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def reindex(self) -> "OrderedBlockList":
        """Return a list where every block's order equals its position."""
        if all(b.order == i for i, b in enumerate(self._blocks)):
            return self
        return self._from_trusted(self._blocks)

    def insert(self, block: Block, at_index: Optional[int] = None) -> "OrderedBlockList":
        """Insert a block. Appends by default; the index is clamped to [0, len]."""
        if block.id in self:
            raise DuplicateBlockId(block.id)
        size = len(self._blocks)
        index = size if at_index is None else max(0, min(at_index, size))
        items = self._blocks[:index] + (block,) + self._blocks[index:]
        return self._from_trusted(items)

    def remove(self, block_id: str) -> "OrderedBlockList":
        index = self.index_of(block_id)
        return self._from_trusted(self._blocks[:index] + self._blocks[index + 1:])

    def duplicate(self, block_id: str, new_id: Optional[str] = None) -> "OrderedBlockList":
        """Clone a block right after its source.

        The clone gets a fresh id and its own deep copy of settings.
        """
        index = self.index_of(block_id)
        source = self._blocks[index]
        clone_id = new_id or new_block_id()
        if clone_id in self:
            raise DuplicateBlockId(clone_id)
        clone = replace(
            source,
            id=clone_id,
            name=f"{source.name}{COPY_SUFFIX}",
            settings=copy.deepcopy(source.settings),
        )
        items = self._blocks[:index + 1] + (clone,) + self._blocks[index + 1:]
        return self._from_trusted(items)

    def move(self, block_id: str, to_index: int) -> "OrderedBlockList":
        """Move a block to a new position, clamped to [0, len-1]."""
        from_index = self.index_of(block_id)
        target = max(0, min(to_index, len(self._blocks) - 1))
        if target == from_index:
            return self
        items = list(self._blocks)
        block = items.pop(from_index)
        items.insert(target, block)
        return self._from_trusted(tuple(items))

    def update(self, block_id: str, **changes: Any) -> "OrderedBlockList":
        """Edit block fields in place of the old block."""
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields not editable: {', '.join(sorted(unknown))}")
        index = self.index_of(block_id)
        updated = self._blocks[index].with_changes(**changes)
        items = self._blocks[:index] + (updated,) + self._blocks[index + 1:]
        return self._from_trusted(items)

    def apply_drag(self, active_id: str, over_id: Optional[str]) -> "OrderedBlockList":
        """Apply a drag-end event: move the active block to the slot of the one it was dropped on."""
        if over_id is None or over_id == active_id:
            return self
        return self.move(active_id, self.index_of(over_id))
