"""
Push parser for GenBank-style annotation records

Records are scanned by Biopython's GenBank scanner, whose consumer callbacks
are turned into sink events: the LOCUS and FEATURES keywords, features of the
feature table with their qualifiers, and the sequence. BaSeTraM prediction
files use the same layout, so one parser serves both passes of the network
builder.
"""

import logging
import warnings
from pathlib import Path
from typing import Optional, TextIO, Union

from Bio import BiopythonParserWarning
from Bio.GenBank.Scanner import GenBankScanner

logger = logging.getLogger(__name__)


class ParserError(Exception):
    """Raised when an annotation record cannot be parsed"""

    def __init__(self, message: str, record_number: Optional[int] = None):
        self.message = message
        self.record_number = record_number
        if record_number is not None:
            message = f"record {record_number}: {message}"
        super().__init__(message)


class GenBankSink:
    """Receives parse events; every callback is a no-op by default"""

    def open_keyword(self, name: str, value: str):
        pass

    def close_keyword(self):
        pass

    def open_feature(self, name: str, location: str):
        pass

    def close_feature(self):
        pass

    def qualifier(self, name: str, value: str):
        pass

    def coding_data(self, data: str):
        pass


def _ignore(*args, **kwargs):
    pass


def _unquote(value: Optional[str]) -> str:
    if value is None:
        return ''
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1].replace('""', '"')
    return value


class _SinkConsumer:
    """GenBankScanner consumer forwarding the callbacks a sink cares about"""

    def __init__(self, sink: GenBankSink):
        self.sink = sink
        self.data = None
        self._feature_key: Optional[str] = None
        self._feature_open = False
        self._keyword_open = False

    def __getattr__(self, name):
        # Header and footer fields (definition, accession, size, ...) are dropped
        if name.startswith('_'):
            raise AttributeError(name)
        return _ignore

    def _open_keyword(self, name: str, value: str):
        self._close_feature()
        self._close_keyword()
        self.sink.open_keyword(name, value)
        self._keyword_open = True

    def _close_keyword(self):
        if self._keyword_open:
            self.sink.close_keyword()
            self._keyword_open = False

    def _close_feature(self):
        if self._feature_open:
            self.sink.close_feature()
            self._feature_open = False

    def locus(self, name):
        self._open_keyword('LOCUS', name)

    def start_feature_table(self):
        self._open_keyword('FEATURES', '')

    def feature_key(self, key):
        self._close_feature()
        self._feature_key = key

    def location(self, location):
        self.sink.open_feature(self._feature_key, location)
        self._feature_open = True

    def feature_qualifier(self, key, value):
        if self._feature_open:
            self.sink.qualifier(key, _unquote(value))

    def sequence(self, content):
        self._close_feature()
        if content:
            self._open_keyword('ORIGIN', '')
            self.sink.coding_data(content)

    def record_end(self, content):
        self._close_feature()
        self._close_keyword()


class GenBankParser:
    """Feeds every record of a text handle through GenBankScanner into a sink"""

    def __init__(self, sink: Optional[GenBankSink] = None):
        self.sink = sink or GenBankSink()

    def parse(self, handle: TextIO) -> int:
        """Parse all records in handle; returns how many were read"""
        scanner = GenBankScanner()
        consumer = _SinkConsumer(self.sink)
        records = 0

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter('always', BiopythonParserWarning)
            try:
                while scanner.feed(handle, consumer):
                    records += 1
            except ValueError as e:
                raise ParserError(str(e), records + 1) from e
            finally:
                for warning in caught:
                    logger.debug(f"GenBank scanner: {warning.message}")

        return records


def parse_file(path: Union[str, Path], sink: GenBankSink) -> int:
    """Parse an annotation file on disk, pushing events to sink"""
    logger.debug(f"Parsing {path}")
    with open(path, 'r') as f:
        return GenBankParser(sink).parse(f)
