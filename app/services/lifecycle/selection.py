# ============================================================================
# Bulk Selection
# ============================================================================
from typing import Iterable, List, Set

from app.services.lifecycle.models import EntityId


class SelectionSet:
    """
    Ids chosen for a bulk action. Only ids present in the last rendered list
    can be selected; refreshing the list drops stale ids.
    """

    def __init__(self):
        self._rendered: List[EntityId] = []
        self._visible: Set[EntityId] = set()
        self._selected: Set[EntityId] = set()

    def __len__(self) -> int:
        return len(self._selected)

    def __contains__(self, entity_id: EntityId) -> bool:
        return entity_id in self._selected

    @property
    def ids(self) -> List[EntityId]:
        """Selected ids in rendered-list order"""
        return [entity_id for entity_id in self._rendered if entity_id in self._selected]

    def refresh(self, rendered_ids: Iterable[EntityId]) -> List[EntityId]:
        """Record the newly rendered list and return the ids that were dropped"""
        self._rendered = [str(entity_id) for entity_id in rendered_ids]
        self._visible = visible = set(self._rendered)
        stale = sorted(self._selected - visible)
        self._selected &= visible
        return stale

    def select(self, entity_id: EntityId) -> bool:
        if entity_id not in self._visible:
            return False
        self._selected.add(entity_id)
        return True

    def deselect(self, entity_id: EntityId) -> None:
        self._selected.discard(entity_id)

    def select_all(self, entity_ids: Iterable[EntityId] = None) -> List[EntityId]:
        candidates = self._rendered if entity_ids is None else entity_ids
        for entity_id in candidates:
            self.select(str(entity_id))
        return self.ids

    def replace(self, entity_ids: Iterable[EntityId]) -> List[EntityId]:
        self._selected.clear()
        return self.select_all(entity_ids)

    def clear(self) -> None:
        self._selected.clear()
