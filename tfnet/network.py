"""
Reading and writing the tfnet network text format

    VERTICES
    VERTEX <id> <name>
    ENDVERTICES
    EDGES <target> (<regulator> <regulator> )
    # comments

Edges are kept as (regulated, regulator) pairs throughout.
"""

import logging
import re
from pathlib import Path
from typing import Dict, Iterable, List, NamedTuple, Optional, TextIO, Tuple, Union

logger = logging.getLogger(__name__)

_VERTEX_LINE = re.compile(r'^VERTEX ([0-9]+) ?(.*)$')
_EDGES_LINE = re.compile(r'^EDGES ([0-9]+) \(([0-9 ]*)\)$')

Edge = Tuple[int, int]


class NetworkFormatError(ValueError):
    """Raised when a network file lacks its vertex section markers"""


class Vertex(NamedTuple):
    id: int
    name: str


class Network:
    """A parsed network: vertices, (regulated, regulator) edges and extra lines"""

    def __init__(self, vertices: Optional[List[Vertex]] = None,
                 edges: Optional[List[Edge]] = None,
                 trailer: Optional[List[str]] = None,
                 tail: Optional[List[str]] = None):
        # Vertices in file order, interleaved with unrecognised lines of the vertex section
        self.vertex_block: List[Union[Vertex, str]] = list(vertices or [])
        self.edges: List[Edge] = list(edges or [])
        # Comment and unrecognised lines, re-emitted after the edge section
        self.trailer: List[str] = list(trailer or [])
        # Every line after ENDVERTICES, verbatim
        self.tail: List[str] = list(tail or [])

    @property
    def vertices(self) -> List[Vertex]:
        return [v for v in self.vertex_block if isinstance(v, Vertex)]

    def vertex_ids(self) -> List[int]:
        return [v.id for v in self.vertices]

    def edge_set(self):
        return set(self.edges)

    def _copy(self, vertex_block, edges) -> 'Network':
        network = Network(None, edges, self.trailer, self.tail)
        network.vertex_block = list(vertex_block)
        return network

    def with_edges(self, edges: Iterable[Edge]) -> 'Network':
        """Copy of this network with a different edge list"""
        return self._copy(self.vertex_block, list(edges))

    def with_vertices(self, vertices: Iterable[Vertex]) -> 'Network':
        """Copy with the vertices replaced in order; other vertex section lines stay put"""
        replacements = iter(vertices)
        block = [next(replacements) if isinstance(entry, Vertex) else entry
                 for entry in self.vertex_block]
        return self._copy(block, self.edges)

    def __repr__(self):
        return f"Network({len(self.vertices)} vertices, {len(self.edges)} edges)"


def collate(edges: Iterable[Edge]) -> List[Tuple[int, List[int]]]:
    """Group (target, regulator) edges by target, both in ascending order"""
    grouped: Dict[int, set] = {}
    for target_id, regulator_id in edges:
        grouped.setdefault(target_id, set()).add(regulator_id)
    return [(t, sorted(grouped[t])) for t in sorted(grouped)]


def format_edges_line(target_id: int, regulators: Iterable[int]) -> str:
    return f"EDGES {target_id} (" + ''.join(f"{r} " for r in regulators) + ")"


def format_vertex_section(network: Network) -> List[str]:
    """VERTICES through ENDVERTICES, passing unrecognised lines through in place"""
    lines = ["VERTICES"]
    for entry in network.vertex_block:
        lines.append(f"VERTEX {entry.id} {entry.name}" if isinstance(entry, Vertex) else entry)
    lines.append("ENDVERTICES")
    return lines


def format_network(network: Network) -> List[str]:
    """Render a network as text lines, without line terminators"""
    lines = format_vertex_section(network)

    for target_id, regulators in collate(network.edges):
        if regulators:
            lines.append(format_edges_line(target_id, regulators))

    lines.extend(network.trailer)
    return lines


def parse_network(lines: Iterable[str]) -> Network:
    """Parse network text. Lines that are not vertices or edges are kept."""
    network = Network()
    seen_edges = set()

    it = (line.rstrip('\r\n') for line in lines)

    first = next(it, None)
    if first != "VERTICES":
        raise NetworkFormatError("Expected VERTICES line")

    for line in it:
        if line == "ENDVERTICES":
            break
        match = _VERTEX_LINE.match(line)
        if match:
            network.vertex_block.append(Vertex(int(match.group(1)), match.group(2)))
        else:
            network.vertex_block.append(line)
    else:
        raise NetworkFormatError("Expected ENDVERTICES line")

    for line in it:
        network.tail.append(line)
        match = _EDGES_LINE.match(line)
        if not match:
            network.trailer.append(line)
            continue

        target_id = int(match.group(1))
        for token in match.group(2).split():
            edge = (target_id, int(token))
            if edge not in seen_edges:
                seen_edges.add(edge)
                network.edges.append(edge)

    logger.debug(f"Parsed {network!r}")
    return network


def read_network(path: Union[str, Path]) -> Network:
    """Read a network file from disk"""
    with open(path, 'r') as f:
        return parse_network(f)


def write_network(network: Network, stream: TextIO):
    for line in format_network(network):
        stream.write(line + '\n')
