"""
Cascading area -> sub-area -> branch selection.

Selecting areas narrows the sub-areas on offer, selecting sub-areas (or, when
none are selected, areas) narrows the branches on offer. Every change prunes
selected children that are no longer on offer.
"""

from collections.abc import Iterable, Sequence
from typing import Optional

from pydantic import BaseModel


class AreaNode(BaseModel):
    id: int
    name: str = ""


class SubAreaNode(BaseModel):
    id: int
    name: str = ""
    area_id: int


class BranchNode(BaseModel):
    id: int
    name: str = ""
    area_id: int
    sub_area_id: Optional[int] = None


class BranchGroup(BaseModel):
    id: str
    label: str
    branches: list[BranchNode]


class HierarchySelection:
    """Multi-select state over the three hierarchy levels"""

    def __init__(
        self,
        areas: Sequence[AreaNode],
        sub_areas: Sequence[SubAreaNode],
        branches: Sequence[BranchNode],
        area_ids: Iterable[int] = (),
        sub_area_ids: Iterable[int] = (),
        branch_ids: Iterable[int] = (),
    ):
        self.areas = list(areas)
        self.sub_areas = list(sub_areas)
        self.branches = list(branches)
        self._sub_area_parent = {s.id: s.area_id for s in self.sub_areas}
        # Selection order is kept so grouped output follows the user's clicks
        self.selected_area_ids: list[int] = _unique(area_ids)
        self.selected_sub_area_ids: list[int] = _unique(sub_area_ids)
        self.selected_branch_ids: list[int] = _unique(branch_ids)
        self.prune()

    # -- available options -------------------------------------------------

    def available_sub_areas(self) -> list[SubAreaNode]:
        if not self.selected_area_ids:
            return list(self.sub_areas)
        selected = set(self.selected_area_ids)
        return [s for s in self.sub_areas if s.area_id in selected]

    def available_branches(self) -> list[BranchNode]:
        if self.selected_sub_area_ids:
            selected = set(self.selected_sub_area_ids)
            return [b for b in self.branches if b.sub_area_id in selected]
        if self.selected_area_ids:
            selected = set(self.selected_area_ids)
            return [b for b in self.branches if self._branch_in_areas(b, selected)]
        return list(self.branches)

    def _branch_in_areas(self, branch: BranchNode, area_ids: set[int]) -> bool:
        if branch.area_id in area_ids:
            return True
        parent = self._sub_area_parent.get(branch.sub_area_id) if branch.sub_area_id else None
        return parent is not None and parent in area_ids

    # -- mutations -----------------------------------------------------------

    def toggle_area(self, area_id: int) -> None:
        self.selected_area_ids = _toggle(self.selected_area_ids, area_id)
        self.prune()

    def toggle_sub_area(self, sub_area_id: int) -> None:
        self.selected_sub_area_ids = _toggle(self.selected_sub_area_ids, sub_area_id)
        self.prune()

    def toggle_branch(self, branch_id: int) -> None:
        self.selected_branch_ids = _toggle(self.selected_branch_ids, branch_id)
        self.prune()

    def clear(self) -> None:
        self.selected_area_ids = []
        self.selected_sub_area_ids = []
        self.selected_branch_ids = []

    def prune(self) -> None:
        """Drop selected children that fell outside their filtered parent set"""
        known_areas = {a.id for a in self.areas}
        self.selected_area_ids = [a for a in self.selected_area_ids if a in known_areas]

        allowed_sub_areas = {s.id for s in self.available_sub_areas()}
        self.selected_sub_area_ids = [s for s in self.selected_sub_area_ids if s in allowed_sub_areas]

        allowed_branches = {b.id for b in self.available_branches()}
        self.selected_branch_ids = [b for b in self.selected_branch_ids if b in allowed_branches]

    # -- presentation ------------------------------------------------------

    def grouped_branches(self) -> list[BranchGroup]:
        """Available branches grouped under each selected sub-area, else each selected area"""
        available = self.available_branches()
        groups: list[BranchGroup] = []

        if self.selected_sub_area_ids:
            names = {s.id: s.name for s in self.sub_areas}
            for sub_area_id in self.selected_sub_area_ids:
                related = [b for b in available if b.sub_area_id == sub_area_id]
                if related:
                    label = names.get(sub_area_id) or f"Sub-Area {sub_area_id}"
                    groups.append(BranchGroup(id=f"subarea-{sub_area_id}", label=label, branches=related))
        elif self.selected_area_ids:
            names = {a.id: a.name for a in self.areas}
            for area_id in self.selected_area_ids:
                related = [b for b in available if self._branch_in_areas(b, {area_id})]
                if related:
                    label = names.get(area_id) or f"Area {area_id}"
                    groups.append(BranchGroup(id=f"area-{area_id}", label=label, branches=related))

        return groups

    def effective_branch_ids(self) -> Optional[list[int]]:
        """
        Branch ids a report filter should use: the explicit branch selection,
        else every available branch under the selected parents, else None (no filter).
        """
        if self.selected_branch_ids:
            return list(self.selected_branch_ids)
        if self.selected_sub_area_ids or self.selected_area_ids:
            return [b.id for b in self.available_branches()]
        return None


def _toggle(selected: list[int], value: int) -> list[int]:
    if value in selected:
        return [v for v in selected if v != value]
    return [*selected, value]


def _unique(values: Iterable[int]) -> list[int]:
    seen: set[int] = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result
