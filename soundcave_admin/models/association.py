"""Join records (playlist <-> song) and song-picker selection state."""
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional


@dataclass
class Association:
    """One child placed in a parent at a position (0-based)."""
    id: int
    parent_id: int
    child_id: int
    position: int
    created_at: str = ""
    child: Optional[dict] = None  # embedded child record, if the backend sends one

    @property
    def rank(self) -> int:
        """1-based rank shown in the UI."""
        return self.position + 1

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "parent_id": self.parent_id,
            "child_id": self.child_id,
            "position": self.position,
            "rank": self.rank,
            "created_at": self.created_at,
            "child": self.child,
        }


@dataclass
class SelectionState:
    """Children already in the parent vs. children the user picked to add."""
    existing_child_ids: FrozenSet[int] = frozenset()
    # dict keys as an insertion-ordered set: selection order decides positions
    pending_child_ids: Dict[int, None] = field(default_factory=dict)

    def pending(self) -> List[int]:
        return list(self.pending_child_ids)

    def is_existing(self, child_id: int) -> bool:
        return child_id in self.existing_child_ids

    def is_selected(self, child_id: int) -> bool:
        return child_id in self.existing_child_ids or child_id in self.pending_child_ids
