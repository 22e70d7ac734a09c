"""
Index of TRANSFAC matrix accessions to the HGNC ids of their regulators
"""

import logging
import re
from pathlib import Path
from typing import Dict, Iterable, Optional, Set, Tuple, Union

from .hgnc import HGNCNameIndex, normalize

logger = logging.getLogger(__name__)

_AC_LINE = re.compile(r'^AC[ \t]+(.*)$')
_BF_LINE = re.compile(r'^BF[ \t]+[^ ]+ ([^;]*);.*$')
_NA_LINE = re.compile(r'^NA[ \t]+([^ ]+).*$')

RECORD_END = '//'


class TransfacRegulatorMap:
    """Multimap from matrix accession to regulator HGNC ids"""

    def __init__(self):
        self._regulators: Dict[str, Set[int]] = {}

    def __len__(self):
        return len(self._regulators)

    def __contains__(self, accession: str) -> bool:
        return accession in self._regulators

    def add(self, accession: str, hgnc_id: int):
        self._regulators.setdefault(accession, set()).add(hgnc_id)

    def regulators(self, accession: str) -> Tuple[int, ...]:
        """Regulator ids bound to an accession, in ascending order"""
        return tuple(sorted(self._regulators.get(accession, ())))


def index_matrices(lines: Iterable[str], name_index: HGNCNameIndex,
                   regulator_map: Optional[TransfacRegulatorMap] = None) -> TransfacRegulatorMap:
    """Build the accession map from the lines of a TRANSFAC matrix database.

    Each record contributes its AC accession paired with every bound factor
    (BF) or name (NA) alias that resolves to an HGNC id. Lines that match
    none of the three fields are ignored.
    """
    if regulator_map is None:
        regulator_map = TransfacRegulatorMap()

    accession: Optional[str] = None
    aliases: Set[str] = set()
    records = 0
    unresolved = 0

    for raw_line in lines:
        line = raw_line.rstrip('\r\n')

        if line == RECORD_END:
            if accession is not None and aliases:
                records += 1
                for alias in sorted(aliases):
                    hgnc_id = name_index.resolve(alias)
                    if hgnc_id:
                        regulator_map.add(accession, hgnc_id)
                    else:
                        unresolved += 1
            accession = None
            aliases = set()
            continue

        match = _AC_LINE.match(line)
        if match:
            accession = match.group(1).strip()
            continue

        match = _BF_LINE.match(line) or _NA_LINE.match(line)
        if match:
            alias = normalize(match.group(1))
            if alias:
                aliases.add(alias)

    logger.info(f"Indexed {records:,} matrix records: {len(regulator_map):,} accessions resolved, "
                f"{unresolved:,} factor names unresolved")
    return regulator_map


def load_matrix_database(path: Union[str, Path], name_index: HGNCNameIndex) -> TransfacRegulatorMap:
    """Read a TRANSFAC matrix database file"""
    logger.info(f"Loading TRANSFAC matrices from {path}")
    with open(path, 'r', errors='replace') as f:
        return index_matrices(f, name_index)
