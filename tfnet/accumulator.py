"""
Accumulates inferred regulatory edges and run diagnostics
"""

import logging
import sys
from typing import Dict, List, Optional, Set, Tuple

from .transfac import TransfacRegulatorMap

logger = logging.getLogger(__name__)

# Tally given to regulators so they pass any min_regulation threshold
REGULATOR_TALLY = sys.maxsize


class GraphAccumulator:
    """Deduplicated (regulated, regulator) edge set with per-vertex tallies"""

    def __init__(self, regulator_map: TransfacRegulatorMap,
                 max_regulated: Optional[int] = None):
        self.regulator_map = regulator_map
        self.max_regulated = max_regulated

        self.edges: Set[Tuple[int, int]] = set()
        self.tallies: Dict[int, int] = {}
        self.regulated: Set[int] = set()

        self.tfbs_processed = 0
        self.inference_calls = 0
        self.used_tfbs = 0
        self.unused_tfbs = 0
        self.used_probability = 0.0
        self.unused_probability = 0.0
        self.cap_rejections = 0

    def try_add_edge(self, accession: str, target_id: int) -> bool:
        """Record that the matrix `accession` binds near gene `target_id`.

        Returns True when at least one edge was accepted. Unknown accessions
        are rejected, as are new targets once max_regulated distinct targets
        have been accepted.
        """
        self.inference_calls += 1

        regulators = self.regulator_map.regulators(accession)
        if not regulators:
            return False

        if target_id not in self.regulated:
            if self.max_regulated is not None and len(self.regulated) >= self.max_regulated:
                self.cap_rejections += 1
                return False
            self.regulated.add(target_id)

        tally = self.tallies.get(target_id, 0)
        if tally < REGULATOR_TALLY:
            self.tallies[target_id] = tally + 1

        for regulator_id in regulators:
            self.tallies[regulator_id] = REGULATOR_TALLY
            self.edges.add((target_id, regulator_id))

        return True

    def record_tfbs(self, probability: float, used: bool):
        """Count a processed binding site as used or unused"""
        self.tfbs_processed += 1
        if used:
            self.used_tfbs += 1
            self.used_probability += probability
        else:
            self.unused_tfbs += 1
            self.unused_probability += probability

    @property
    def average_used_probability(self) -> float:
        return self.used_probability / self.used_tfbs if self.used_tfbs else float('nan')

    @property
    def average_unused_probability(self) -> float:
        return self.unused_probability / self.unused_tfbs if self.unused_tfbs else float('nan')

    def vertices(self, min_regulation: int = 1) -> List[int]:
        """Ids whose tally reaches min_regulation, ascending"""
        return sorted(v for v, tally in self.tallies.items() if tally >= min_regulation)

    def collated_edges(self, min_regulation: int = 1) -> List[Tuple[int, List[int]]]:
        """(target, regulators) groups for every target passing the threshold"""
        kept = set(self.vertices(min_regulation))

        grouped: Dict[int, List[int]] = {}
        for target_id, regulator_id in self.edges:
            if target_id in kept:
                grouped.setdefault(target_id, []).append(regulator_id)

        return [(target_id, sorted(grouped[target_id])) for target_id in sorted(grouped)]

    def get_statistics(self) -> Dict[str, float]:
        return {
            'tfbs_processed': self.tfbs_processed,
            'inference_calls': self.inference_calls,
            'num_edges': len(self.edges),
            'num_regulated': len(self.regulated),
            'used_tfbs': self.used_tfbs,
            'unused_tfbs': self.unused_tfbs,
            'average_used_probability': self.average_used_probability,
            'average_unused_probability': self.average_unused_probability,
            'cap_rejections': self.cap_rejections,
        }
