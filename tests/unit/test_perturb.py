"""
Unit tests for the perturbation operators
"""

from collections import Counter

import numpy as np
import pytest

from tfnet.network import Network, Vertex, format_network, parse_network
from tfnet.perturb import (OPERATORS, EdgeDeletion, EdgeInsertion, EdgeReplacement,
                           LabelSwitching, PerturbationError, describe_operators,
                           get_operator, make_rng)


def vertex_section(lines):
    return lines[:lines.index("ENDVERTICES") + 1]


@pytest.fixture
def large_network():
    vertices = [Vertex(i, f"GENE{i}") for i in range(1, 51)]
    edges = [(i, (i % 50) + 1) for i in range(1, 51)] + [(i, 1) for i in range(3, 40, 3)]
    return Network(vertices, edges, ["# There are many edges", "# trailing comment"])


@pytest.mark.unit
class TestRegistry:

    def test_registered_operators(self):
        assert set(OPERATORS) == {'label-switch', 'edge-delete', 'edge-insert', 'edge-replace'}
        assert isinstance(get_operator('edge-delete'), EdgeDeletion)

    def test_unknown_operator(self):
        with pytest.raises(PerturbationError, match="available"):
            get_operator('shuffle-everything')

    def test_describe_operators(self):
        lines = describe_operators()
        assert len(lines) == 4
        assert any(line.startswith("edge-insert: pctIns") for line in lines)

    def test_make_rng_seeded(self):
        assert make_rng(3).random() == make_rng(3).random()


@pytest.mark.unit
class TestParameters:

    def test_default_when_empty(self):
        assert LabelSwitching().parse_parameters('') == 1.0
        assert EdgeInsertion().parse_parameters('  ') == 10.0

    def test_plain_and_named_values(self):
        assert EdgeDeletion().parse_parameters('0.3') == 0.3
        assert EdgeDeletion().parse_parameters('pDel=0.25') == 0.25

    def test_percentage_may_exceed_one_hundred(self):
        assert EdgeInsertion().parse_parameters('150') == 150.0

    @pytest.mark.parametrize("operator, text", [
        (EdgeDeletion(), 'abc'),
        (EdgeDeletion(), '1.5'),
        (EdgeReplacement(), '-0.1'),
        (LabelSwitching(), 'nan'),
        (EdgeInsertion(), '-5'),
    ])
    def test_invalid_values(self, operator, text):
        with pytest.raises(PerturbationError):
            operator.parse_parameters(text)


@pytest.mark.unit
class TestLabelSwitching:

    def test_names_permuted_among_ids(self, large_network, rng):
        lines = LabelSwitching().perturb(large_network, 1.0, rng)
        result = parse_network(lines)

        assert result.vertex_ids() == large_network.vertex_ids()
        assert Counter(v.name for v in result.vertices) == \
            Counter(v.name for v in large_network.vertices)
        assert [v.name for v in result.vertices] != [v.name for v in large_network.vertices]

    def test_zero_probability_keeps_names(self, large_network, rng):
        lines = LabelSwitching().perturb(large_network, 0.0, rng)
        assert vertex_section(lines) == vertex_section(format_network(large_network))

    def test_partial_pool_only_moves_pooled_names(self, large_network):
        lines = LabelSwitching().perturb(large_network, 0.3, np.random.default_rng(1))
        result = parse_network(lines)
        moved = [v for v, orig in zip(result.vertices, large_network.vertices) if v != orig]
        assert len(moved) < len(large_network.vertices)

    def test_remainder_passed_through_verbatim(self, network_file, rng):
        network = parse_network(network_file.read_text().splitlines())
        lines = LabelSwitching().perturb(network, 1.0, rng)
        assert lines[lines.index("ENDVERTICES") + 1:] == network.tail


@pytest.mark.unit
class TestEdgeDeletion:

    def test_zero_probability_keeps_everything(self, sample_network, rng):
        lines = EdgeDeletion().perturb(sample_network, 0.0, rng)
        assert lines == format_network(sample_network)

    def test_probability_one_deletes_everything(self, sample_network, rng):
        lines = EdgeDeletion().perturb(sample_network, 1.0, rng)
        result = parse_network(lines)
        assert result.edges == []
        assert not any(line.startswith("EDGES") for line in lines)
        assert vertex_section(lines) == vertex_section(format_network(sample_network))
        assert lines[-1] == "# There are 5 edges"

    def test_survivors_are_a_subset(self, large_network, rng):
        result = parse_network(EdgeDeletion().perturb(large_network, 0.5, rng))
        assert result.edge_set() <= large_network.edge_set()
        assert 0 < len(result.edges) < len(large_network.edges)


@pytest.mark.unit
class TestEdgeInsertion:

    def test_adds_requested_number(self, sample_network, rng):
        result = parse_network(EdgeInsertion().perturb(sample_network, 100.0, rng))
        assert len(result.edges) == 10
        assert sample_network.edge_set() <= result.edge_set()

    def test_no_loops_or_duplicates(self, large_network, rng):
        result = parse_network(EdgeInsertion().perturb(large_network, 200.0, rng))
        assert all(target != regulator for target, regulator in result.edges)
        assert len(result.edge_set()) == len(result.edges) == 3 * len(large_network.edges)
        assert set(result.vertex_ids()) >= {v for edge in result.edges for v in edge}

    def test_rounds_half_up(self, sample_network, rng):
        # 5 edges * 10% = 0.5 -> 1 new edge
        result = parse_network(EdgeInsertion().perturb(sample_network, 10.0, rng))
        assert len(result.edges) == 6

    def test_stops_when_graph_is_full(self, rng):
        network = Network([Vertex(1, "A"), Vertex(2, "B")], [(1, 2)])
        result = parse_network(EdgeInsertion().perturb(network, 500.0, rng))
        assert result.edge_set() == {(1, 2), (2, 1)}

    def test_vertices_and_comments_preserved(self, sample_network, rng):
        lines = EdgeInsertion().perturb(sample_network, 50.0, rng)
        assert vertex_section(lines) == vertex_section(format_network(sample_network))
        assert lines[-1] == "# There are 5 edges"


@pytest.mark.unit
class TestEdgeReplacement:

    def test_preserves_edge_count(self, large_network, rng):
        result = parse_network(EdgeReplacement().perturb(large_network, 0.5, rng))
        assert len(result.edges) == len(large_network.edges)
        assert len(result.edge_set()) == len(large_network.edges)

    def test_zero_probability_is_identity(self, sample_network, rng):
        lines = EdgeReplacement().perturb(sample_network, 0.0, rng)
        assert lines == format_network(sample_network)

    def test_full_replacement(self, sample_network, rng):
        result = parse_network(EdgeReplacement().perturb(sample_network, 1.0, rng))
        assert len(result.edges) == 5
        assert not result.edge_set() & sample_network.edge_set()
        assert all(target != regulator for target, regulator in result.edges)

    def test_saturated_graph_keeps_edges(self, rng):
        network = Network([Vertex(1, "A"), Vertex(2, "B")], [(1, 2), (2, 1)])
        result = parse_network(EdgeReplacement().perturb(network, 1.0, rng))
        assert result.edge_set() == {(1, 2), (2, 1)}

    def test_same_seed_same_output(self, large_network):
        first = EdgeReplacement().perturb(large_network, 0.5, np.random.default_rng(99))
        second = EdgeReplacement().perturb(large_network, 0.5, np.random.default_rng(99))
        assert first == second


@pytest.mark.unit
def test_label_switching_keeps_vertex_section_comments(rng):
    lines = ["VERTICES", "VERTEX 1 A", "# note", "VERTEX 2 B", "VERTEX 3 C", "ENDVERTICES",
             "EDGES 1 (2 )"]
    result = LabelSwitching().perturb(parse_network(lines), 1.0, rng)

    assert result[2] == "# note"
    assert result[-2:] == ["ENDVERTICES", "EDGES 1 (2 )"]
    assert [line.split()[1] for line in result if line.startswith("VERTEX ")] == ["1", "2", "3"]
    assert sorted(line.split()[2] for line in result if line.startswith("VERTEX ")) == ["A", "B", "C"]
