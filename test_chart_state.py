import unittest

from chart_state import ChartState, build_family_chart
from data_loader import create_test_data


class TestChartState(unittest.TestCase):

    def setUp(self):
        self.state = ChartState(create_test_data())

    def test_toggle_collapse(self):
        self.assertTrue(self.state.toggle_collapse('5'))
        self.assertTrue(self.state.is_collapsed('5'))
        self.assertFalse(self.state.toggle_collapse('5'))
        self.assertFalse(self.state.is_collapsed('5'))

    def test_expand_all(self):
        self.state.toggle_collapse('1')
        self.state.toggle_collapse('5')
        self.state.expand_all()
        self.assertEqual(self.state.collapsed_ids, [])

    def test_compute_hides_collapsed_subtree(self):
        self.state.toggle_collapse('5')
        chart = self.state.compute()
        self.assertEqual(chart.hidden_ids, {'8', '9'})
        self.assertIsNotNone(chart.get_unit('5'))
        self.assertIsNone(chart.get_unit('8'))

    def test_set_members_drops_stale_state(self):
        self.state.toggle_collapse('5')
        self.state.select_member(9)
        self.assertEqual(self.state.selected_member_id, '9')

        self.state.set_members([{'id': 1, 'name': 'Adam', 'spouses': [2]}, {'id': 2, 'name': 'Eve'}])
        self.assertEqual(self.state.collapsed_ids, [])
        self.assertIsNone(self.state.selected_member_id)

    def test_inputs_are_not_mutated(self):
        members = create_test_data()
        before = [(m.id, m.spouses, m.children, m.parents) for m in members]
        build_family_chart(members, collapsed_ids=['1'])
        after = [(m.id, m.spouses, m.children, m.parents) for m in members]
        self.assertEqual(before, after)

    def test_member_to_unit_map(self):
        chart = build_family_chart(create_test_data())
        self.assertEqual(chart.member_to_unit['7'], '5')
        self.assertEqual(chart.member_to_unit['2'], '1')


if __name__ == '__main__':
    unittest.main()
