"""
Network export and summary statistics for tfnet networks
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

import networkx as nx
import pandas as pd

from .network import Network

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ('json', 'graphml', 'csv')


def build_graph(network: Network) -> nx.DiGraph:
    """Directed graph with arcs running regulator -> regulated"""
    graph = nx.DiGraph()
    for vertex in network.vertices:
        graph.add_node(vertex.id, name=vertex.name)

    for target_id, regulator_id in network.edges:
        graph.add_edge(regulator_id, target_id)

    # Endpoints missing from the vertex section get an empty name
    for node, data in graph.nodes(data=True):
        data.setdefault('name', '')
    return graph


def summarize(network: Network, top: int = 10) -> Dict[str, Any]:
    """Size and degree statistics of a network"""
    graph = build_graph(network)
    out_degrees = sorted(((d, n) for n, d in graph.out_degree() if d > 0),
                         key=lambda x: (-x[0], x[1]))

    return {
        'num_vertices': graph.number_of_nodes(),
        'num_edges': graph.number_of_edges(),
        'num_regulators': len(out_degrees),
        'num_regulated': sum(1 for _, d in graph.in_degree() if d > 0),
        'num_isolated': nx.number_of_isolates(graph),
        'self_loops': nx.number_of_selfloops(graph),
        'top_regulators': [(n, graph.nodes[n]['name'], d) for d, n in out_degrees[:top]],
    }


class NetworkExporter:
    """Write a network in formats other tools can read"""

    def __init__(self, output_dir: Path = Path("outputs")):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def export_network(self, network: Network,
                       format_types: List[str] = ['json', 'graphml', 'csv'],
                       filename_prefix: str = 'tf_network') -> Dict[str, Path]:
        """Export a network in the requested formats"""
        unknown = set(format_types) - set(EXPORT_FORMATS)
        if unknown:
            raise ValueError(f"Unknown export formats: {', '.join(sorted(unknown))}")

        graph = build_graph(network)
        logger.info(f"Exporting network: {graph.number_of_nodes()} vertices, "
                    f"{graph.number_of_edges()} edges")

        output_files = {}

        if 'json' in format_types:
            output_files['json'] = self._export_json(graph, filename_prefix)

        if 'graphml' in format_types:
            output_files['graphml'] = self._export_graphml(graph, filename_prefix)

        if 'csv' in format_types:
            output_files.update(self._export_csv(graph, filename_prefix))

        return output_files

    def _export_json(self, graph: nx.DiGraph, filename_prefix: str) -> Path:
        """Export graph as node-link JSON"""
        output_file = self.output_dir / f"{filename_prefix}.json"

        data = nx.node_link_data(graph, edges="links")

        with open(output_file, 'w') as f:
            json.dump(data, f, indent=2, default=str)

        logger.info(f"Exported JSON network: {output_file}")
        return output_file

    def _export_graphml(self, graph: nx.DiGraph, filename_prefix: str) -> Path:
        """Export graph as GraphML"""
        output_file = self.output_dir / f"{filename_prefix}.graphml"
        nx.write_graphml(graph, output_file)
        logger.info(f"Exported GraphML network: {output_file}")
        return output_file

    def _export_csv(self, graph: nx.DiGraph, filename_prefix: str) -> Dict[str, Path]:
        """Export vertices and edges as CSV tables"""
        nodes_file = self.output_dir / f"{filename_prefix}_nodes.csv"
        pd.DataFrame(
            [{'hgnc_id': n, 'name': data['name'],
              'in_degree': graph.in_degree(n), 'out_degree': graph.out_degree(n)}
             for n, data in graph.nodes(data=True)],
            columns=['hgnc_id', 'name', 'in_degree', 'out_degree'],
        ).to_csv(nodes_file, index=False)

        edges_file = self.output_dir / f"{filename_prefix}_edges.csv"
        pd.DataFrame(
            [{'regulator': u, 'regulated': v,
              'regulator_name': graph.nodes[u]['name'], 'regulated_name': graph.nodes[v]['name']}
             for u, v in graph.edges()],
            columns=['regulator', 'regulated', 'regulator_name', 'regulated_name'],
        ).to_csv(edges_file, index=False)

        logger.info(f"Exported CSV files: {nodes_file}, {edges_file}")
        return {'nodes_csv': nodes_file, 'edges_csv': edges_file}
