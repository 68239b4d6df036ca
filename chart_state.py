"""
Стан діаграми, яким володіє викликач, та повний конвеєр
список людей -> одиниці/ребра -> видимі -> координати.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from family_model import Edge, Member, PositionedUnit, member_from_dict
from graph_builder import GraphBuilder
from layout_engine import DIRECTION_TB, LayoutEngine
from visibility import filter_visible, hidden_unit_ids

logger = logging.getLogger(__name__)


@dataclass
class FamilyChart:
    units: List[PositionedUnit] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)
    hidden_ids: Set[str] = field(default_factory=set)
    member_to_unit: Dict[str, str] = field(default_factory=dict)

    def get_unit(self, unit_id: str) -> Optional[PositionedUnit]:
        return next((u for u in self.units if u.unit_id == unit_id), None)


def build_family_chart(members: Iterable, collapsed_ids: Iterable[str] = (),
                       direction: str = DIRECTION_TB,
                       builder: Optional[GraphBuilder] = None,
                       engine: Optional[LayoutEngine] = None) -> FamilyChart:
    graph = (builder or GraphBuilder()).build(members)
    collapsed_ids = set(collapsed_ids or ())

    visible_units, visible_edges = filter_visible(graph.units, graph.edges, collapsed_ids)
    positioned, edges = (engine or LayoutEngine()).calculate_layout(visible_units, visible_edges, direction)

    return FamilyChart(
        units=positioned,
        edges=edges,
        hidden_ids=hidden_unit_ids(graph.edges, collapsed_ids),
        member_to_unit=dict(graph.member_to_unit),
    )


class ChartState:
    """
    Стан, що змінюється діями користувача: список людей, згорнуті одиниці,
    вибрана людина, напрямок. Рушій лише читає його через параметри.
    """

    def __init__(self, members: Iterable = (), direction: str = DIRECTION_TB,
                 builder: Optional[GraphBuilder] = None, engine: Optional[LayoutEngine] = None):
        self.builder = builder or GraphBuilder()
        self.engine = engine or LayoutEngine()
        self.direction = direction
        self.members: List[Member] = []
        self.collapsed_ids: List[str] = []
        self.selected_member_id: Optional[str] = None
        self.set_members(members)

    def set_members(self, members: Iterable):
        self.members = [m if isinstance(m, Member) else member_from_dict(m) for m in members]

        # Прибираємо згорнуті id, яких більше немає серед одиниць
        unit_ids = {u.unit_id for u in self.builder.build(self.members).units}
        self.collapsed_ids = [cid for cid in self.collapsed_ids if cid in unit_ids]

        known = {m.id for m in self.members}
        if self.selected_member_id not in known:
            self.selected_member_id = None

    def toggle_collapse(self, unit_id: str) -> bool:
        """Returns True when the unit ends up collapsed."""
        if unit_id in self.collapsed_ids:
            self.collapsed_ids.remove(unit_id)
            return False
        self.collapsed_ids.append(unit_id)
        return True

    def is_collapsed(self, unit_id: str) -> bool:
        return unit_id in self.collapsed_ids

    def expand_all(self):
        self.collapsed_ids.clear()

    def select_member(self, member_id: Optional[str]):
        self.selected_member_id = str(member_id) if member_id is not None else None

    def compute(self) -> FamilyChart:
        chart = build_family_chart(self.members, self.collapsed_ids, self.direction,
                                   builder=self.builder, engine=self.engine)
        logger.debug("Chart: %d visible units, %d hidden", len(chart.units), len(chart.hidden_ids))
        return chart
