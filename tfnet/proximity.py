"""
Strand-aware search for genes near a transcription factor binding site
"""

import bisect
import logging
from typing import List, NamedTuple

logger = logging.getLogger(__name__)


class GenePosition(NamedTuple):
    """Anchor coordinate of one gene on one strand"""
    offset: int
    hgnc_id: int


class TFBSOccurrence(NamedTuple):
    """A predicted binding site as reported by BaSeTraM"""
    start: int
    end: int
    complement: bool
    accession: str
    probability: float


class ContigGenes:
    """Gene anchors of a single contig, split by strand"""

    def __init__(self):
        self.forward: List[GenePosition] = []
        self.complement: List[GenePosition] = []
        self._forward_offsets: List[int] = []
        self._complement_offsets: List[int] = []

    def __len__(self):
        return len(self.forward) + len(self.complement)

    def add(self, start: int, end: int, complement: bool, hgnc_id: int):
        """Record a gene; complement genes are anchored at their end"""
        if complement:
            self.complement.append(GenePosition(end, hgnc_id))
        else:
            self.forward.append(GenePosition(start, hgnc_id))

    def sort(self):
        self.forward.sort(key=lambda g: g.offset)
        self.complement.sort(key=lambda g: g.offset)
        self._forward_offsets = [g.offset for g in self.forward]
        self._complement_offsets = [g.offset for g in self.complement]

    def clear(self):
        self.forward.clear()
        self.complement.clear()
        self._forward_offsets = []
        self._complement_offsets = []

    def strand(self, complement: bool):
        """Sorted genes and their offsets for one strand"""
        if complement:
            return self.complement, self._complement_offsets
        return self.forward, self._forward_offsets


class ProximityEngine:
    """Finds the genes a binding site may regulate.

    A forward site at position p covers forward genes anchored in
    [p - downstream_zone, p + upstream_zone]. On the complement strand
    transcription runs the other way, so the zones swap and the window
    becomes [p - upstream_zone, p + downstream_zone].
    """

    def __init__(self, upstream_zone: int = 200, downstream_zone: int = 50):
        self.upstream_zone = upstream_zone
        self.downstream_zone = downstream_zone

    def window(self, occurrence: TFBSOccurrence):
        """Inclusive (low, high) offset window searched for a site"""
        if occurrence.complement:
            below, above = self.upstream_zone, self.downstream_zone
        else:
            below, above = self.downstream_zone, self.upstream_zone
        return max(occurrence.start - below, 0), occurrence.start + above

    def candidates(self, occurrence: TFBSOccurrence, genes: ContigGenes) -> List[int]:
        """HGNC ids of every gene in the window, rightmost first"""
        positions, offsets = genes.strand(occurrence.complement)
        low, high = self.window(occurrence)

        found = []
        i = bisect.bisect_right(offsets, high) - 1
        while i >= 0 and positions[i].offset >= low:
            found.append(positions[i].hgnc_id)
            i -= 1
        return found
