"""
Randomised rewriting of tfnet networks for null-model comparisons

Each operator reads a parsed network and returns the text lines of a
perturbed copy. Operators are looked up by name in OPERATORS.
"""

import logging
import math
import time
from typing import Dict, Iterable, List, Optional, Set

import numpy as np

from .network import Edge, Network, Vertex, format_network, format_vertex_section

logger = logging.getLogger(__name__)


class PerturbationError(ValueError):
    """Unknown operator or invalid operator parameters"""


def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    """Random source for the operators, seeded from the clock by default"""
    if seed is None:
        seed = int(time.time())
    logger.debug(f"Random seed: {seed}")
    return np.random.default_rng(seed)


def _parse_number(text: str, default: float, label: str,
                  low: float = 0.0, high: Optional[float] = 1.0) -> float:
    text = (text or '').strip()
    if not text:
        return default
    if '=' in text:
        text = text.split('=', 1)[1].strip()
    try:
        value = float(text)
    except ValueError:
        raise PerturbationError(f"{label} must be a number, got {text!r}")
    if math.isnan(value) or value < low or (high is not None and value > high):
        bound = f"[{low:g}, {high:g}]" if high is not None else f">= {low:g}"
        raise PerturbationError(f"{label} must be {bound}, got {value:g}")
    return value


def _free_slots(ids: Iterable[int], taken: Iterable[Edge]) -> int:
    """Ordered pairs of distinct vertices not yet used as an edge"""
    distinct = set(ids)
    used = {(a, b) for a, b in taken if a != b and a in distinct and b in distinct}
    n = len(distinct)
    return n * (n - 1) - len(used)


def _random_edge(ids: List[int], rng: np.random.Generator, *taken: Set[Edge]) -> Edge:
    while True:
        a = ids[rng.integers(len(ids))]
        b = ids[rng.integers(len(ids))]
        if a == b:
            continue
        edge = (a, b)
        if any(edge in edges for edges in taken):
            continue
        return edge


class PerturbationOperator:
    """Base class for a named perturbation"""

    name = ''
    help = ''
    default = 0.0

    def parse_parameters(self, text: str) -> float:
        return _parse_number(text, self.default, self.name)

    def perturb(self, network: Network, parameter: float,
                rng: np.random.Generator) -> List[str]:
        raise NotImplementedError

    def run(self, network: Network, text: str, rng: np.random.Generator) -> List[str]:
        """Parse the free-form parameter string and perturb"""
        return self.perturb(network, self.parse_parameters(text), rng)


class LabelSwitching(PerturbationOperator):
    name = 'label-switch'
    help = ("p: probability (0-1, default 1) that a vertex joins the shuffle pool. "
            "Pooled vertices keep their ids but swap names at random.")
    default = 1.0

    def perturb(self, network, parameter, rng):
        vertices = network.vertices
        pooled = [i for i, draw in enumerate(rng.random(len(vertices))) if draw < parameter]

        # Random sort keys decide the new order of the pooled names
        order = np.argsort(rng.random(len(pooled)), kind='stable')
        names = [vertices[pooled[j]].name for j in order]

        relabelled = list(vertices)
        for i, name in zip(pooled, names):
            relabelled[i] = Vertex(vertices[i].id, name)

        logger.info(f"Shuffled names of {len(pooled)} of {len(vertices)} vertices")

        lines = format_vertex_section(network.with_vertices(relabelled))
        lines.extend(network.tail)
        return lines


class EdgeDeletion(PerturbationOperator):
    name = 'edge-delete'
    help = "pDel: probability (0-1, default 0.1) that each edge is deleted."
    default = 0.1

    def perturb(self, network, parameter, rng):
        draws = rng.random(len(network.edges))
        kept = [edge for edge, draw in zip(network.edges, draws) if draw >= parameter]
        logger.info(f"Deleted {len(network.edges) - len(kept)} of {len(network.edges)} edges")
        return format_network(network.with_edges(kept))


class EdgeInsertion(PerturbationOperator):
    name = 'edge-insert'
    help = ("pctIns: number of random edges to add, as a percentage (>= 0, default 10) "
            "of the existing edge count. New edges never duplicate an edge or loop.")
    default = 10.0

    def parse_parameters(self, text):
        return _parse_number(text, self.default, self.name, high=None)

    def perturb(self, network, parameter, rng):
        existing = network.edge_set()
        wanted = int(math.floor(len(network.edges) * parameter / 100.0 + 0.5))

        ids = network.vertex_ids()
        free = _free_slots(ids, existing)
        if wanted > free:
            logger.warning(f"Only {free} edges can be inserted, {wanted} requested")
            wanted = free

        added: Set[Edge] = set()
        new_edges: List[Edge] = []
        while len(new_edges) < wanted:
            edge = _random_edge(ids, rng, existing, added)
            added.add(edge)
            new_edges.append(edge)

        logger.info(f"Inserted {len(new_edges)} edges into {len(network.edges)}")
        return format_network(network.with_edges(network.edges + new_edges))


class EdgeReplacement(PerturbationOperator):
    name = 'edge-replace'
    help = ("pRep: probability (0-1, default 0.1) that each edge is replaced by a random "
            "new edge. The total edge count is preserved.")
    default = 0.1

    def perturb(self, network, parameter, rng):
        existing = network.edge_set()
        ids = network.vertex_ids()
        free = _free_slots(ids, existing)

        replacements: Set[Edge] = set()
        edges: List[Edge] = []
        saturated = 0
        for edge, draw in zip(network.edges, rng.random(len(network.edges))):
            if draw >= parameter:
                edges.append(edge)
            elif len(replacements) < free:
                new_edge = _random_edge(ids, rng, existing, replacements)
                replacements.add(new_edge)
                edges.append(new_edge)
            else:
                saturated += 1
                edges.append(edge)

        if saturated:
            logger.warning(f"No free vertex pairs left, kept {saturated} edges unreplaced")
        logger.info(f"Replaced {len(replacements)} of {len(network.edges)} edges")
        return format_network(network.with_edges(edges))


OPERATORS: Dict[str, PerturbationOperator] = {
    op.name: op for op in (LabelSwitching(), EdgeDeletion(), EdgeInsertion(), EdgeReplacement())
}


def get_operator(name: str) -> PerturbationOperator:
    try:
        return OPERATORS[name]
    except KeyError:
        raise PerturbationError(
            f"Unknown operator {name!r}; available: {', '.join(sorted(OPERATORS))}")


def describe_operators() -> List[str]:
    """One line per registered operator with its parameter documentation"""
    return [f"{name}: {OPERATORS[name].help}" for name in sorted(OPERATORS)]
