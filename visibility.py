"""
Згортання / розгортання гілок дерева.

Чисті функції: на вхід одиниці, ребра та набір згорнутих id, на вихід
видимі одиниці та ребра. Стан згортання тримає викликач (див. chart_state).
"""

import logging
from typing import Dict, Iterable, List, Set, Tuple

from family_model import Edge, FamilyUnit

logger = logging.getLogger(__name__)


def _children_index(edges: Iterable[Edge]) -> Dict[str, List[str]]:
    index: Dict[str, List[str]] = {}
    for edge in edges:
        index.setdefault(edge.source, []).append(edge.target)
    return index


def get_descendants(root_id: str, edges: Iterable[Edge]) -> Set[str]:
    """
    Всі одиниці, досяжні від root_id вздовж ребер батьки -> діти (BFS).
    Кожен вузол відвідується один раз, тому цикли в даних не зациклюють обхід.
    Сам root_id до результату не входить, навіть якщо до нього веде цикл.
    """
    children = _children_index(edges)
    seen: Set[str] = set()
    queue = [root_id]

    while queue:
        current = queue.pop(0)
        for child_id in children.get(current, []):
            if child_id not in seen:
                seen.add(child_id)
                queue.append(child_id)

    seen.discard(root_id)
    return seen


def hidden_unit_ids(edges: Iterable[Edge], collapsed_ids: Iterable[str]) -> Set[str]:
    edges = list(edges)
    hidden: Set[str] = set()
    for collapsed_id in collapsed_ids:
        hidden |= get_descendants(collapsed_id, edges)
    # Згорнута одиниця завжди лишається видимою
    return hidden


def filter_visible(units: List[FamilyUnit], edges: List[Edge],
                   collapsed_ids: Iterable[str]) -> Tuple[List[FamilyUnit], List[Edge]]:
    collapsed_ids = set(collapsed_ids or ())
    if not collapsed_ids:
        return list(units), list(edges)

    hidden = hidden_unit_ids(edges, collapsed_ids)
    visible_units = [u for u in units if u.unit_id not in hidden]
    visible_edges = [e for e in edges if e.source not in hidden and e.target not in hidden]

    logger.debug("Collapsed %d units, hiding %d", len(collapsed_ids), len(hidden))
    return visible_units, visible_edges
