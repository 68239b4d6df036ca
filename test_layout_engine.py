import unittest

import networkx as nx

from family_model import Edge, FamilyUnit, Member
from layout_engine import (BASE_WIDTH, NODE_HEIGHT, NODE_SEP, RANK_SEP, LayoutEngine,
                           assign_ranks, remove_cycles, snap_levels)


def unit(uid, partners=0):
    return FamilyUnit(unit_id=uid, primary=Member(id=uid),
                      partners=[Member(id=f"{uid}-p{i}") for i in range(partners)])


def edge(source, target):
    return Edge(id=f"e-{source}-{target}", source=source, target=target)


class TestLayout(unittest.TestCase):

    def setUp(self):
        self.engine = LayoutEngine()

    def layout(self, units, edges, direction='TB'):
        positioned, _ = self.engine.calculate_layout(units, edges, direction)
        return {u.unit_id: u for u in positioned}

    def test_empty_input(self):
        positioned, edges = self.engine.calculate_layout([], [])
        self.assertEqual(positioned, [])
        self.assertEqual(edges, [])

    def test_edges_pass_through(self):
        edges = [edge('A', 'B')]
        _, out = self.engine.calculate_layout([unit('A'), unit('B')], edges)
        self.assertEqual(out, edges)

    def test_width_grows_with_partners(self):
        pos = self.layout([unit('A'), unit('B', partners=2)], [])
        self.assertEqual(pos['A'].width, BASE_WIDTH)
        self.assertEqual(pos['B'].width, BASE_WIDTH * 3)
        self.assertEqual(pos['B'].height, NODE_HEIGHT)

    def test_top_left_anchor(self):
        pos = self.layout([unit('A', partners=1), unit('B')], [edge('A', 'B')])
        self.assertEqual(pos['A'].y, 0)
        self.assertEqual(pos['B'].y, NODE_HEIGHT + RANK_SEP)
        # Однаковий центр: батьки над єдиною дитиною
        self.assertAlmostEqual(pos['A'].center[0], pos['B'].center[0])
        self.assertAlmostEqual(min(u.x for u in pos.values()), 0)

    def test_rank_monotonicity(self):
        edges = [edge('A', 'B'), edge('A', 'C'), edge('B', 'D'), edge('C', 'E'),
                 edge('C', 'F'), edge('X', 'F'), edge('A', 'F')]
        units = [unit(u) for u in 'ABCDEFX']
        pos = self.layout(units, edges)
        for e in edges:
            self.assertLess(pos[e.source].rank, pos[e.target].rank)
            self.assertLess(pos[e.source].y, pos[e.target].y)

    def test_same_generation_alignment(self):
        units = [unit('A', partners=1), unit('B', partners=3), unit('C'), unit('D'), unit('E', partners=1)]
        edges = [edge('A', 'B'), edge('A', 'C'), edge('B', 'D'), edge('C', 'E')]
        pos = self.layout(units, edges)
        self.assertEqual(pos['B'].y, pos['C'].y)
        self.assertEqual(pos['D'].y, pos['E'].y)

    def test_in_law_parents_sit_above_their_child(self):
        units = [unit(u) for u in 'ABCX']
        pos = self.layout(units, [edge('A', 'B'), edge('B', 'C'), edge('X', 'C')])
        self.assertEqual(pos['X'].y, pos['B'].y)
        self.assertEqual(pos['X'].rank, 1)

    def test_in_law_ancestor_chain_aligns_with_other_lineage(self):
        # P — батько дружини C, G — його батько
        units = [unit(u) for u in ['A', 'B', 'B2', 'C', 'G', 'P']]
        edges = [edge('A', 'B'), edge('B', 'B2'), edge('B2', 'C'), edge('G', 'P'), edge('P', 'C')]
        pos = self.layout(units, edges)
        self.assertEqual(pos['P'].y, pos['B2'].y)
        self.assertEqual(pos['G'].y, pos['B'].y)
        self.assertEqual(pos['P'].rank, 2)

    def test_nearly_equal_centres_snap_to_one_line(self):
        class DriftingEngine(LayoutEngine):
            def _cross_axis_centers(self, layered, ordering, ranks, units):
                centers = super()._cross_axis_centers(layered, ordering, ranks, units)
                centers['C'] += 4
                return centers

        units = [unit('A'), unit('B'), unit('C')]
        positioned, _ = DriftingEngine().calculate_layout(units, [edge('A', 'B'), edge('A', 'C')])
        pos = {u.unit_id: u for u in positioned}
        self.assertEqual(pos['B'].y, pos['C'].y)

    def test_no_overlap_within_rank(self):
        units = [unit('R', partners=1)] + [unit(f"c{i}", partners=i % 3) for i in range(6)]
        edges = [edge('R', f"c{i}") for i in range(6)]
        pos = self.layout(units, edges)
        row = sorted((u for u in pos.values() if u.rank == 1), key=lambda u: u.x)
        for left, right in zip(row, row[1:]):
            self.assertGreaterEqual(right.x, left.x + left.width + NODE_SEP - 1e-6)

    def test_cycle_does_not_break_layout(self):
        units = [unit(u) for u in 'ABC']
        pos = self.layout(units, [edge('A', 'B'), edge('B', 'C'), edge('C', 'A'), edge('A', 'A')])
        self.assertEqual(set(pos), {'A', 'B', 'C'})

    def test_left_to_right(self):
        units = [unit('A'), unit('B'), unit('C')]
        edges = [edge('A', 'B'), edge('A', 'C')]
        pos = self.layout(units, edges, 'LR')
        self.assertLess(pos['A'].x, pos['B'].x)
        self.assertEqual(pos['B'].x, pos['C'].x)
        self.assertEqual(pos['A'].target_position, 'left')
        self.assertEqual(pos['A'].source_position, 'right')

    def test_anchor_sides_top_to_bottom(self):
        pos = self.layout([unit('A')], [])
        self.assertEqual(pos['A'].target_position, 'top')
        self.assertEqual(pos['A'].source_position, 'bottom')

    def test_deterministic(self):
        units = [unit(u, partners=len(u) % 2) for u in ['A', 'BB', 'C', 'DD', 'E', 'F']]
        edges = [edge('A', 'BB'), edge('A', 'C'), edge('C', 'DD'), edge('BB', 'E'), edge('DD', 'F'), edge('E', 'F')]
        first = [(u.unit_id, u.x, u.y) for u in self.engine.calculate_layout(units, edges)[0]]
        second = [(u.unit_id, u.x, u.y) for u in self.engine.calculate_layout(units, edges)[0]]
        self.assertEqual(first, second)

    def test_unknown_direction(self):
        with self.assertRaises(ValueError):
            self.engine.calculate_layout([unit('A')], [], direction='BT')

    def test_tolerance_must_be_below_rank_sep(self):
        with self.assertRaises(ValueError):
            LayoutEngine(rank_sep=50, snap_tolerance=50)


class TestLayoutHelpers(unittest.TestCase):

    def test_snap_levels(self):
        snapped = snap_levels([100, 105, 300, 309.5, 600], tolerance=10)
        self.assertEqual(snapped, {100: 100, 105: 100, 300: 300, 309.5: 300, 600: 600})

    def test_remove_cycles_gives_dag(self):
        graph = nx.DiGraph([('A', 'B'), ('B', 'C'), ('C', 'A'), ('C', 'C')])
        dag = remove_cycles(graph)
        self.assertTrue(nx.is_directed_acyclic_graph(dag))
        self.assertEqual(set(dag.nodes), {'A', 'B', 'C'})

    def test_longest_path_ranks(self):
        dag = nx.DiGraph([('A', 'B'), ('B', 'C'), ('A', 'C'), ('X', 'C')])
        dag.add_node('lonely')
        ranks = assign_ranks(dag)
        self.assertEqual(ranks, {'A': 0, 'B': 1, 'C': 2, 'X': 1, 'lonely': 0})

    def test_non_root_parents_move_down_to_their_children(self):
        dag = nx.DiGraph([('A', 'B'), ('B', 'B2'), ('B2', 'C'), ('G', 'P'), ('P', 'C'), ('G', 'S')])
        ranks = assign_ranks(dag)
        self.assertEqual(ranks['P'], 2)
        # бездітний брат P тримає G на рівень вище себе
        self.assertEqual(ranks['S'], 1)
        self.assertEqual(ranks['G'], 0)


if __name__ == '__main__':
    unittest.main()
