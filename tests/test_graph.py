import unittest

from critpath.graph import build_network, describe_cycle, topological_order
from critpath.models import Activity


class TestBuildNetwork(unittest.TestCase):
    def test_drops_invalid_activities_silently(self):
        log = []
        network = build_network(
            [
                Activity("A", "Survey", 3),
                Activity("B", "  ", 2),
                Activity("C", "Build", float("inf")),
                Activity("D", "Paint", -1),
                Activity("E", "Inspect", "n/a"),
                Activity("F", "Handover", 1, ["A"]),
            ],
            log,
        )

        self.assertEqual(network.node_ids, ["A", "F"])
        self.assertEqual(network.warnings, [])
        self.assertIn("Validated activities: 2", log)

    def test_insufficient_input(self):
        self.assertIsNone(build_network([Activity("A", "Survey", 3)]))
        self.assertIsNone(build_network([]))

    def test_edges_and_successors(self):
        network = build_network([
            Activity("A", "Survey", 4),
            Activity("B", "Permits", 2, ["A"]),
            Activity("C", "Foundation", 6, ["A"]),
            Activity("D", "Inspection", 1, ["B", "C"]),
        ])

        self.assertEqual(network.edges, [("A", "B"), ("A", "C"), ("B", "D"), ("C", "D")])
        self.assertEqual(network.nodes["A"].successor_ids, ["B", "C"])
        self.assertTrue(network.nodes["D"].is_sink)

    def test_reference_to_dropped_activity_is_pruned(self):
        network = build_network([
            Activity("A", "Survey", 3),
            Activity("B", "Broken", 0),
            Activity("C", "Build", 2, ["A", "B"]),
        ])

        self.assertEqual(network.nodes["C"].predecessor_ids, ["A"])
        self.assertEqual(network.warnings, ["Activity C: removed unknown predecessors (B)."])


class TestTopologicalOrder(unittest.TestCase):
    def test_sources_seeded_in_input_order(self):
        network = build_network([
            Activity("X", "Late source", 1),
            Activity("Y", "Depends on A", 1, ["A"]),
            Activity("A", "Early source", 1),
        ])

        order, has_cycle = topological_order(network)
        self.assertFalse(has_cycle)
        self.assertEqual(order, ["X", "A", "Y"])

    def test_cycle_detection(self):
        network = build_network([
            Activity("A", "First", 1),
            Activity("B", "Second", 1, ["A", "C"]),
            Activity("C", "Third", 1, ["B"]),
        ])

        order, has_cycle = topological_order(network)
        self.assertTrue(has_cycle)
        self.assertEqual(order, ["A"])
        self.assertIn("(B -> C -> B)", describe_cycle(network, order))


if __name__ == "__main__":
    unittest.main()
