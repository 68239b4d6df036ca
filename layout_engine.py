"""
Рушій компонування сімейного дерева.

Шаруватий (Sugiyama) алгоритм над графом сімейних одиниць:
розрив циклів -> ранги (покоління) -> фіктивні вузли для довгих ребер ->
впорядкування в шарі (барицентр) -> координати -> вирівнювання рівнів.
"""

import logging
from typing import Dict, Iterable, List, Optional, Tuple

import networkx as nx

from family_model import (Edge, FamilyUnit, PositionedUnit,
                          POSITION_BOTTOM, POSITION_LEFT, POSITION_RIGHT, POSITION_TOP)

logger = logging.getLogger(__name__)

# --- КОНСТАНТИ РОЗМІРІВ ---
BASE_WIDTH = 260       # ширина картки однієї людини
NODE_HEIGHT = 300
NODE_SEP = 100         # мінімальний проміжок між сусідами в шарі
RANK_SEP = 200         # проміжок між поколіннями
SNAP_TOLERANCE = 10    # має бути меншим за RANK_SEP
ORDERING_PASSES = 24
PLACEMENT_PASSES = 8

DIRECTION_TB = 'TB'
DIRECTION_LR = 'LR'
DUMMY_PREFIX = '__dummy__'


def unit_width(unit: FamilyUnit, base_width: float = BASE_WIDTH) -> float:
    return base_width * (1 + unit.partner_count)


def snap_levels(values: Iterable[float], tolerance: float = SNAP_TOLERANCE) -> Dict[float, float]:
    """
    Групує близькі значення в рівні: кожне значення відображається на перший
    знайдений рівень, що відрізняється менше ніж на tolerance.
    """
    levels: List[float] = []
    snapped: Dict[float, float] = {}
    for value in values:
        if value in snapped:
            continue
        level = next((lvl for lvl in levels if abs(lvl - value) < tolerance), None)
        if level is None:
            levels.append(value)
            level = value
        snapped[value] = level
    return snapped


# ─── Розрив циклів (greedy-FAS) ──────────────────────────────────────────────

def greedy_fas_ordering(graph: nx.DiGraph) -> List[str]:
    """Node ordering for the greedy feedback-arc-set heuristic (deterministic)."""
    active = {n: None for n in graph.nodes}
    out_deg = {n: graph.out_degree(n) for n in graph.nodes}
    in_deg = {n: graph.in_degree(n) for n in graph.nodes}
    head: List[str] = []
    tail: List[str] = []

    def drop(node):
        del active[node]
        for succ in graph.successors(node):
            if succ in active:
                in_deg[succ] -= 1
        for pred in graph.predecessors(node):
            if pred in active:
                out_deg[pred] -= 1

    while active:
        sinks = [n for n in active if out_deg[n] == 0]
        while sinks:
            for sink in sinks:
                drop(sink)
                tail.append(sink)
            sinks = [n for n in active if out_deg[n] == 0]

        sources = [n for n in active if in_deg[n] == 0]
        while sources:
            for source in sources:
                drop(source)
                head.append(source)
            sources = [n for n in active if in_deg[n] == 0]

        if active:
            best = max(active, key=lambda n: out_deg[n] - in_deg[n])
            drop(best)
            head.append(best)

    tail.reverse()
    return head + tail


def remove_cycles(graph: nx.DiGraph) -> nx.DiGraph:
    """Returns an acyclic copy; back edges are reversed, self-loops dropped."""
    dag = nx.DiGraph()
    dag.add_nodes_from(graph.nodes(data=True))

    if nx.is_directed_acyclic_graph(graph):
        dag.add_edges_from((u, v) for u, v in graph.edges() if u != v)
        return dag

    position = {n: i for i, n in enumerate(greedy_fas_ordering(graph))}
    for u, v in graph.edges():
        if u == v:
            continue
        if position[u] > position[v]:
            dag.add_edge(v, u, reversed=True)
        else:
            dag.add_edge(u, v)
    return dag


# ─── Ранги ───────────────────────────────────────────────────────────────────

def assign_ranks(dag: nx.DiGraph) -> Dict[str, int]:
    """
    Найдовший шлях від коренів, після чого кожна одиниця з дітьми (у зворотному
    топологічному порядку) опускається на рівень над найвищою дитиною. Так
    батьки зятя/невістки і їхні предки стають на рівень батьків другого
    партнера, а не лишаються вгорі своєї гілки. Бездітні одиниці не рухаються.
    """
    ranks: Dict[str, int] = {}
    for node in nx.topological_sort(dag):
        preds = list(dag.predecessors(node))
        ranks[node] = max(ranks[p] + 1 for p in preds) if preds else 0

    # Ранги лише зростають, тож предки, оброблені пізніше, лишаються вище
    for node in reversed(list(nx.topological_sort(dag))):
        succs = list(dag.successors(node))
        if succs:
            ranks[node] = min(ranks[s] for s in succs) - 1

    if ranks:
        low = min(ranks.values())
        if low:
            ranks = {n: r - low for n, r in ranks.items()}
    return ranks


# ─── Впорядкування ───────────────────────────────────────────────────────────

def count_crossings(ordering: List[List[str]], graph: nx.DiGraph) -> int:
    total = 0
    for layer_idx in range(len(ordering) - 1):
        tgt_pos = {nid: i for i, nid in enumerate(ordering[layer_idx + 1])}
        pairs: List[Tuple[int, int]] = []
        for sp, src in enumerate(ordering[layer_idx]):
            for nb in graph.successors(src):
                if nb in tgt_pos:
                    pairs.append((sp, tgt_pos[nb]))
        for i in range(len(pairs)):
            for j in range(i + 1, len(pairs)):
                a, b = pairs[i], pairs[j]
                if (a[0] < b[0] and a[1] > b[1]) or (a[0] > b[0] and a[1] < b[1]):
                    total += 1
    return total


class LayoutEngine:
    def __init__(self, base_width: float = BASE_WIDTH, node_height: float = NODE_HEIGHT,
                 node_sep: float = NODE_SEP, rank_sep: float = RANK_SEP,
                 snap_tolerance: float = SNAP_TOLERANCE,
                 ordering_passes: int = ORDERING_PASSES,
                 placement_passes: int = PLACEMENT_PASSES):
        if snap_tolerance >= rank_sep:
            raise ValueError("snap_tolerance must be smaller than rank_sep")
        self.base_width = base_width
        self.node_height = node_height
        self.node_sep = node_sep
        self.rank_sep = rank_sep
        self.snap_tolerance = snap_tolerance
        self.ordering_passes = ordering_passes
        self.placement_passes = placement_passes

    def unit_size(self, unit: FamilyUnit) -> Tuple[float, float]:
        return unit_width(unit, self.base_width), self.node_height

    def calculate_layout(self, units: List[FamilyUnit], edges: List[Edge],
                         direction: str = DIRECTION_TB) -> Tuple[List[PositionedUnit], List[Edge]]:
        """Positions every unit; edges are returned unchanged."""
        if direction not in (DIRECTION_TB, DIRECTION_LR):
            raise ValueError(f"Unsupported layout direction: {direction!r}")
        if not units:
            return [], list(edges)

        horizontal = direction == DIRECTION_LR
        graph = self._build_graph(units, edges, horizontal)
        dag = remove_cycles(graph)
        ranks = assign_ranks(dag)
        layered = self._insert_dummies(dag, ranks)
        ordering = self._order_layers(layered, ranks)
        centers = self._place_in_layers(layered, ordering)
        raw_rank_pos = self._cross_axis_centers(layered, ordering, ranks, units)
        snapped = snap_levels([raw_rank_pos[u.unit_id] for u in units], self.snap_tolerance)

        positioned = []
        for unit in units:
            width, height = self.unit_size(unit)
            along = centers[unit.unit_id]
            across = snapped[raw_rank_pos[unit.unit_id]]
            cx, cy = (across, along) if horizontal else (along, across)
            positioned.append(PositionedUnit(
                unit=unit,
                x=cx - width / 2,
                y=cy - height / 2,
                width=width,
                height=height,
                rank=ranks[unit.unit_id],
                target_position=POSITION_LEFT if horizontal else POSITION_TOP,
                source_position=POSITION_RIGHT if horizontal else POSITION_BOTTOM,
            ))

        logger.debug("Laid out %d units on %d ranks (%s)",
                     len(positioned), len(ordering), direction)
        return positioned, list(edges)

    # ==================== ГРАФ ====================

    def _build_graph(self, units: List[FamilyUnit], edges: List[Edge], horizontal: bool) -> nx.DiGraph:
        graph = nx.DiGraph()
        for unit in units:
            width, height = self.unit_size(unit)
            # size — розмір уздовж шару, thickness — уздовж осі поколінь
            graph.add_node(unit.unit_id,
                           size=height if horizontal else width,
                           thickness=width if horizontal else height)
        for edge in edges:
            if edge.source in graph and edge.target in graph:
                graph.add_edge(edge.source, edge.target)
        return graph

    def _insert_dummies(self, dag: nx.DiGraph, ranks: Dict[str, int]) -> nx.DiGraph:
        layered = nx.DiGraph()
        layered.add_nodes_from(dag.nodes(data=True))
        counter = 0
        for u, v in dag.edges():
            span = ranks[v] - ranks[u]
            if span <= 1:
                layered.add_edge(u, v)
                continue
            prev = u
            for step in range(1, span):
                dummy = f"{DUMMY_PREFIX}{counter}_{step}"
                layered.add_node(dummy, size=0, thickness=0)
                ranks[dummy] = ranks[u] + step
                layered.add_edge(prev, dummy)
                prev = dummy
            layered.add_edge(prev, v)
            counter += 1
        return layered

    def _order_layers(self, layered: nx.DiGraph, ranks: Dict[str, int]) -> List[List[str]]:
        layer_count = max(ranks[n] for n in layered.nodes) + 1
        ordering: List[List[str]] = [[] for _ in range(layer_count)]

        # Початковий порядок — обхід у глибину, щоб брати/сестри йшли поруч
        visited = set()
        for start in sorted(layered.nodes, key=lambda n: ranks[n]):
            stack = [start]
            while stack:
                node = stack.pop()
                if node in visited:
                    continue
                visited.add(node)
                ordering[ranks[node]].append(node)
                stack.extend(reversed(list(layered.successors(node))))

        best = [list(layer) for layer in ordering]
        best_crossings = count_crossings(best, layered)

        for _ in range(self.ordering_passes):
            if best_crossings == 0:
                break
            for idx in range(1, layer_count):
                self._sort_by_barycenter(ordering, idx, ordering[idx - 1], layered.predecessors)
            for idx in range(layer_count - 2, -1, -1):
                self._sort_by_barycenter(ordering, idx, ordering[idx + 1], layered.successors)

            crossings = count_crossings(ordering, layered)
            if crossings >= best_crossings:
                break
            best = [list(layer) for layer in ordering]
            best_crossings = crossings

        return best

    @staticmethod
    def _sort_by_barycenter(ordering: List[List[str]], idx: int, fixed: List[str], neighbours):
        fixed_pos = {n: i for i, n in enumerate(fixed)}

        def key(item):
            pos, node = item
            around = [fixed_pos[nb] for nb in neighbours(node) if nb in fixed_pos]
            # Вузол без сусідів лишається на своєму місці
            return (sum(around) / len(around) if around else float(pos), pos)

        ordering[idx] = [n for _, n in sorted(enumerate(ordering[idx]), key=key)]

    # ==================== КООРДИНАТИ ====================

    def _gap(self, layered: nx.DiGraph, a: str, b: str) -> float:
        return (layered.nodes[a]['size'] + layered.nodes[b]['size']) / 2 + self.node_sep

    def _pack(self, layered: nx.DiGraph, layer: List[str], desired: Dict[str, float]) -> Dict[str, float]:
        """
        Ставить вузли якнайближче до бажаних центрів без перекриттів.
        Середнє лівого та правого проштовхування теж не має перекриттів.
        """
        if not layer:
            return {}
        left = [desired[layer[0]]]
        for i in range(1, len(layer)):
            left.append(max(desired[layer[i]], left[-1] + self._gap(layered, layer[i - 1], layer[i])))

        right = [desired[layer[-1]]]
        for i in range(len(layer) - 2, -1, -1):
            right.append(min(desired[layer[i]], right[-1] - self._gap(layered, layer[i], layer[i + 1])))
        right.reverse()

        return {node: (left[i] + right[i]) / 2 for i, node in enumerate(layer)}

    def _place_in_layers(self, layered: nx.DiGraph, ordering: List[List[str]]) -> Dict[str, float]:
        centers: Dict[str, float] = {}
        for layer in ordering:
            pos = 0.0
            for i, node in enumerate(layer):
                if i:
                    pos += self._gap(layered, layer[i - 1], node)
                centers[node] = pos

        def align(idx, neighbours):
            desired = {}
            for node in ordering[idx]:
                around = [centers[nb] for nb in neighbours(node)]
                desired[node] = sum(around) / len(around) if around else centers[node]
            centers.update(self._pack(layered, ordering[idx], desired))

        # Спершу діти під батьками, потім батьки над дітьми
        for _ in range(self.placement_passes):
            for idx in range(1, len(ordering)):
                align(idx, layered.predecessors)
            for idx in range(len(ordering) - 2, -1, -1):
                align(idx, layered.successors)

        real = [n for n in centers if not n.startswith(DUMMY_PREFIX)]
        left_edge = min(centers[n] - layered.nodes[n]['size'] / 2 for n in real)
        return {n: centers[n] - left_edge for n in real}

    def _rank_centers(self, layered: nx.DiGraph, ordering: List[List[str]]) -> Dict[int, float]:
        default = max(layered.nodes[n]['thickness'] for n in layered.nodes)
        rank_centers: Dict[int, float] = {}
        offset = 0.0
        for idx, layer in enumerate(ordering):
            thickness = max((layered.nodes[n]['thickness'] for n in layer), default=0) or default
            rank_centers[idx] = offset + thickness / 2
            offset += thickness + self.rank_sep
        return rank_centers

    def _cross_axis_centers(self, layered: nx.DiGraph, ordering: List[List[str]],
                            ranks: Dict[str, int], units: List[FamilyUnit]) -> Dict[str, float]:
        """
        Сирий центр кожної одиниці вздовж осі поколінь. Тут усі одиниці рангу
        отримують центр свого рангу; snap_levels у calculate_layout вирівнює
        значення, які розміщення в підкласі зсуне трохи з лінії.
        """
        rank_centers = self._rank_centers(layered, ordering)
        return {u.unit_id: rank_centers[ranks[u.unit_id]] for u in units}


def layout_family(units: List[FamilyUnit], edges: List[Edge], direction: str = DIRECTION_TB,
                  engine: Optional[LayoutEngine] = None) -> Tuple[List[PositionedUnit], List[Edge]]:
    return (engine or LayoutEngine()).calculate_layout(units, edges, direction)
