"""
HGNC gene symbol index with fuzzy name resolution
"""

import logging
import re
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

import pandas as pd

logger = logging.getLogger(__name__)

# Reserved id meaning "no such gene"
UNKNOWN_ID = 0

# Suffixes that TRANSFAC tends to spell differently from HGNC
SUFFIX_SUBSTITUTES = {
    'ALPHA': 'A',
    'BETA': 'B',
    '1': 'I',
    '2': 'II',
}

_NUMERIC_SUFFIX = re.compile(r'^(.*\D)(\d+)$')
_TOKEN_SUFFIX = re.compile(r'^(.+?)(ALPHA|BETA)$')
_ALIAS_SEPARATOR = re.compile(r'[, ]+')

# Leading fields of a database row; trailing extra fields are ignored
HGNC_FIELDS = ['hgnc_id', 'symbol', 'name', 'status', 'previous_symbols', 'aliases']


def normalize(name: str) -> str:
    """Uppercase a gene name and strip every dash"""
    return name.strip().upper().replace('-', '')


class HGNCNameIndex:
    """Maps normalized gene symbols and aliases to HGNC ids"""

    def __init__(self):
        self._ids: Dict[str, int] = {}
        self._names: Dict[int, str] = {}

    def __len__(self):
        return len(self._ids)

    def __contains__(self, name: str) -> bool:
        return normalize(name) in self._ids

    def insert(self, alias: str, hgnc_id: int, override: bool = False):
        """Index an alias for hgnc_id.

        An override (the approved symbol) replaces an earlier plain alias for
        the same key and registers the display name. A plain alias never
        replaces a key that is already indexed.
        """
        if override:
            self._names.setdefault(hgnc_id, alias.strip())

        key = normalize(alias)
        if not key:
            return

        if key in self._ids and not override:
            return

        self._ids[key] = hgnc_id

    def name_of(self, hgnc_id: int) -> str:
        """Display name for an id, empty if none was registered"""
        return self._names.get(hgnc_id, '')

    def lookup(self, name: str) -> int:
        """Exact lookup of an already normalized key"""
        return self._ids.get(name, UNKNOWN_ID)

    def resolve(self, name: str, _retried: bool = False) -> int:
        """Resolve a possibly non-standard gene name to an HGNC id.

        Tries, in order: the exact normalized name; the name with its numeric
        or ALPHA/BETA suffix substituted (or a plain numeric suffix dropped);
        the name with '1' appended; the name with 'A' appended. As a last
        resort 'ALPHA' is contracted to 'A' and the whole chain runs once
        more. Returns UNKNOWN_ID when nothing matches.
        """
        key = normalize(name)

        hgnc_id = self.lookup(key)
        if hgnc_id:
            return hgnc_id

        hgnc_id = self._resolve_suffix(key)
        if hgnc_id:
            return hgnc_id

        for extra in ('1', 'A'):
            hgnc_id = self.lookup(key + extra)
            if hgnc_id:
                return hgnc_id

        if not _retried:
            contracted = key.replace('ALPHA', 'A').replace('-', '')
            return self.resolve(contracted, _retried=True)

        logger.debug(f"Could not resolve gene name {name!r}")
        return UNKNOWN_ID

    def _resolve_suffix(self, key: str) -> int:
        match = _TOKEN_SUFFIX.match(key) or _NUMERIC_SUFFIX.match(key)
        if not match:
            return UNKNOWN_ID

        prefix, suffix = match.groups()
        substitute = SUFFIX_SUBSTITUTES.get(suffix)
        if substitute is not None:
            return self.lookup(prefix + substitute)
        if suffix.isdigit():
            return self.lookup(prefix)
        return UNKNOWN_ID


def _parse_hgnc_id(text: str) -> Optional[int]:
    text = text.strip()
    if text.upper().startswith('HGNC:'):
        text = text[5:]
    return int(text) if text.isdigit() else None


def _read_complete_rows(path: Union[str, Path]) -> Tuple[pd.DataFrame, int]:
    """Rows with at least HGNC_FIELDS tab-separated fields, and how many were short"""
    complete, short = [], 0
    with open(path, 'r', errors='replace') as f:
        f.readline()  # header
        for line in f:
            fields = line.rstrip('\r\n').split('\t')
            if len(fields) < len(HGNC_FIELDS):
                short += 1
                continue
            complete.append(fields[:len(HGNC_FIELDS)])
    return pd.DataFrame(complete, columns=HGNC_FIELDS, dtype=str), short


def load_hgnc_database(path: Union[str, Path],
                       index: Optional[HGNCNameIndex] = None) -> HGNCNameIndex:
    """Load the tab-separated HGNC symbol database into an index"""
    if index is None:
        index = HGNCNameIndex()

    logger.info(f"Loading HGNC database from {path}")

    df, short = _read_complete_rows(path)
    if short:
        logger.debug(f"Skipped {short:,} rows with fewer than {len(HGNC_FIELDS)} fields")

    approved = 0
    for row in df[df['status'] == 'Approved'].itertuples(index=False):
        hgnc_id = _parse_hgnc_id(row.hgnc_id)
        if hgnc_id is None:
            continue

        index.insert(row.symbol, hgnc_id, True)
        index.insert(row.name, hgnc_id, False)
        for aliases in (row.previous_symbols, row.aliases):
            for alias in _ALIAS_SEPARATOR.split(aliases):
                if alias:
                    index.insert(alias, hgnc_id, False)
        approved += 1

    logger.info(f"HGNC database loaded: {approved:,} approved genes, {len(index):,} names indexed")
    return index
