"""
Побудова графа сімейних одиниць.

Перетворює плаский список людей (з id партнерів, дітей та батьків) у набір
сімейних одиниць (людина + її партнери) і спрямованих ребер одиниця -> дитина.
"""

import logging
from typing import Dict, Iterable, List, Optional, Union

from family_model import Edge, FamilyGraph, FamilyUnit, Member, member_from_dict

logger = logging.getLogger(__name__)

# Палітра ліній для розрізнення гілок різних партнерів
PARTNER_COLORS = (
    '#db2777',  # Pink-600
    '#7c3aed',  # Violet-600
    '#2563eb',  # Blue-600
    '#059669',  # Emerald-600
    '#d97706',  # Amber-600
    '#dc2626',  # Red-600
)
DEFAULT_STROKE = '#334155'
DEFAULT_STROKE_WIDTH = 1.5
PARTNER_STROKE_WIDTH = 2


def handle_id(member_id: str) -> str:
    return f"handle-{member_id}"


def edge_id(source_unit_id: str, target_unit_id: str) -> str:
    return f"e-{source_unit_id}-{target_unit_id}"


def partner_color(partner_index: int) -> str:
    return PARTNER_COLORS[partner_index % len(PARTNER_COLORS)]


def member_sort_key(member_id: str):
    """Natural order: numeric ids by value ("2" < "10"), then the rest as text."""
    if member_id.isdigit():
        return (0, int(member_id), member_id)
    return (1, 0, member_id)


def _unique(ids: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(ids))


class GraphBuilder:
    """
    Групує партнерів у сімейні одиниці та будує ребра до одиниць дітей.

    stable_order: обходити людей у порядку id, а не у порядку списку,
        щоб ідентифікатори одиниць не змінювались між завантаженнями.
    composite_ids: id одиниці з партнерами має вигляд group-<id>-<id>...
    """

    def __init__(self, stable_order: bool = True, composite_ids: bool = False):
        self.stable_order = stable_order
        self.composite_ids = composite_ids

    def build(self, members: Iterable[Union[Member, dict]]) -> FamilyGraph:
        records = [m if isinstance(m, Member) else member_from_dict(m) for m in members]
        if not records:
            return FamilyGraph()

        member_map: Dict[str, Member] = {}
        for member in records:
            member_map[member.id] = member

        if self.stable_order:
            records = sorted(records, key=lambda m: member_sort_key(m.id))

        units, member_to_unit = self._build_units(records, member_map)
        edges = self._build_edges(units, member_to_unit, member_map)

        logger.debug("Built %d units and %d edges from %d members",
                     len(units), len(edges), len(member_map))
        return FamilyGraph(units=units, edges=edges, member_to_unit=member_to_unit)

    # ==================== ОДИНИЦІ ====================

    def _build_units(self, records: List[Member], member_map: Dict[str, Member]):
        processed = set()
        member_to_unit: Dict[str, str] = {}
        units: List[FamilyUnit] = []

        for member in records:
            if member.id in processed:
                continue

            # Партнер, вже оброблений у іншій одиниці, сюди не потрапляє
            partners: List[Member] = []
            for spouse_id in member.spouses:
                partner = member_map.get(spouse_id)
                if partner is None or partner.id == member.id or partner.id in processed:
                    continue
                if any(p.id == partner.id for p in partners):
                    continue
                partners.append(partner)

            processed.add(member.id)
            processed.update(p.id for p in partners)

            unit_id = self._unit_id(member, partners)
            member_to_unit[member.id] = unit_id
            for p in partners:
                member_to_unit[p.id] = unit_id

            children = list(member.children)
            for p in partners:
                children.extend(p.children)

            units.append(FamilyUnit(
                unit_id=unit_id,
                primary=member,
                partners=partners,
                children=_unique(children),
                label=' & '.join([member.name] + [p.name for p in partners]),
            ))

        return units, member_to_unit

    def _unit_id(self, primary: Member, partners: List[Member]) -> str:
        if self.composite_ids and partners:
            return '-'.join(['group', primary.id] + [p.id for p in partners])
        return primary.id

    # ==================== РЕБРА ====================

    def _build_edges(self, units: List[FamilyUnit], member_to_unit: Dict[str, str],
                     member_map: Dict[str, Member]) -> List[Edge]:
        edges: List[Edge] = []
        seen = set()

        for unit in units:
            for child_id in unit.children:
                child_unit_id = member_to_unit.get(child_id)
                if child_unit_id is None:
                    continue

                eid = edge_id(unit.unit_id, child_unit_id)
                if eid in seen:
                    continue
                seen.add(eid)

                edges.append(self._styled_edge(eid, unit, child_unit_id, member_map.get(child_id)))
                unit.child_unit_ids.append(child_unit_id)

        return edges

    def _styled_edge(self, eid: str, unit: FamilyUnit, child_unit_id: str,
                     child: Optional[Member]) -> Edge:
        edge = Edge(id=eid, source=unit.unit_id, target=child_unit_id,
                    stroke=DEFAULT_STROKE, stroke_width=DEFAULT_STROKE_WIDTH)

        # Окремі точки виходу лише для одиниць з кількома партнерами
        if unit.partner_count > 1:
            edge.source_handle = handle_id(unit.primary.id)
            if child is not None:
                for index, partner in enumerate(unit.partners):
                    if partner.id in child.parents:
                        edge.source_handle = handle_id(partner.id)
                        edge.stroke = partner_color(index)
                        edge.stroke_width = PARTNER_STROKE_WIDTH
                        break

        return edge


def build_family_graph(members, stable_order: bool = True, composite_ids: bool = False) -> FamilyGraph:
    return GraphBuilder(stable_order=stable_order, composite_ids=composite_ids).build(members)
