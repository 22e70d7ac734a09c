"""
Builds a transcription factor network from GenBank annotations and
BaSeTraM binding site predictions
"""

import logging
import re
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union

from .accumulator import GraphAccumulator
from .config import BuilderConfig
from .genbank import GenBankSink, ParserError, parse_file
from .hgnc import HGNCNameIndex, load_hgnc_database
from .network import Network, Vertex
from .proximity import ContigGenes, ProximityEngine, TFBSOccurrence
from .transfac import TransfacRegulatorMap, load_matrix_database

logger = logging.getLogger(__name__)

_LOCATION = re.compile(r'^(complement\()?<?(\d+)\.\.>?(\d+)\)?$')
_HGNC_XREF = re.compile(r'^HGNC:(?:HGNC:)?(\d+)$')
_TRANSFAC_XREF = 'TRANSFAC:'


def parse_location(location: str) -> Optional[Tuple[int, int, bool]]:
    """Parse '[complement(]start..end[)]' into (start, end, complement)"""
    match = _LOCATION.match(location.replace(' ', ''))
    if not match:
        return None
    return int(match.group(2)), int(match.group(3)), match.group(1) is not None


class GeneSink(GenBankSink):
    """First pass: collects HGNC-tagged genes and reports contig boundaries"""

    def __init__(self, on_locus: Callable[[str], None],
                 on_gene: Callable[[int, int, bool, int], None]):
        self.on_locus = on_locus
        self.on_gene = on_gene
        self._location: Optional[Tuple[int, int, bool]] = None

    def open_keyword(self, name, value):
        if name == 'LOCUS':
            self.on_locus(value.strip())

    def open_feature(self, name, location):
        self._location = parse_location(location) if name == 'gene' else None
        if name == 'gene' and self._location is None:
            logger.debug(f"Skipping gene with unsupported location {location!r}")

    def close_feature(self):
        self._location = None

    def qualifier(self, name, value):
        if self._location is None or name != 'db_xref':
            return
        match = _HGNC_XREF.match(value)
        if match:
            start, end, complement = self._location
            self.on_gene(start, end, complement, int(match.group(1)))


class TFBSSink(GenBankSink):
    """Second pass: turns TFBS features into occurrences"""

    def __init__(self, on_tfbs: Callable[[TFBSOccurrence], None]):
        self.on_tfbs = on_tfbs
        self._location: Optional[Tuple[int, int, bool]] = None
        self._accession = ''
        self._probability = 0.0

    def open_feature(self, name, location):
        self._location = parse_location(location) if name == 'TFBS' else None
        self._accession = ''
        self._probability = 0.0

    def qualifier(self, name, value):
        if self._location is None:
            return
        if name == 'probability':
            try:
                self._probability = float(value)
            except ValueError:
                logger.debug(f"Ignoring malformed probability {value!r}")
        elif name == 'db_xref' and value.startswith(_TRANSFAC_XREF):
            self._accession = value[len(_TRANSFAC_XREF):]

    def close_feature(self):
        if self._location is None:
            return
        start, end, complement = self._location
        self._location = None
        self.on_tfbs(TFBSOccurrence(start, end, complement, self._accession, self._probability))


class NetworkBuilder:
    """Drives both parse passes and owns the accumulated graph"""

    def __init__(self, config: BuilderConfig, name_index: HGNCNameIndex,
                 regulator_map: TransfacRegulatorMap):
        self.config = config
        self.name_index = name_index
        self.accumulator = GraphAccumulator(regulator_map, config.max_regulated)
        self.engine = ProximityEngine(config.upstream_zone, config.downstream_zone)
        self.genes = ContigGenes()

        self.gene_sink = GeneSink(self._start_contig, self.genes.add)
        self.tfbs_sink = TFBSSink(self.process_tfbs)

        self._prediction_dir: Optional[Path] = None
        self._contig_file: Optional[Path] = None

        self.files_processed = 0
        self.files_failed = 0
        self.contigs_processed = 0

    def process_annotation_file(self, path: Union[str, Path],
                                basetram_dir: Union[str, Path]) -> bool:
        """Process one annotation file; returns False if it failed to parse"""
        path = Path(path)
        self._prediction_dir = Path(basetram_dir) / path.stem
        self._contig_file = None

        logger.info(f"Processing {path.name}")
        ok = True
        try:
            parse_file(path, self.gene_sink)
        except (ParserError, OSError) as e:
            logger.error(f"Parse error in {path}: {e}")
            ok = False

        # Contigs read before a failure are still used
        self.finish_contig()

        self.files_processed += 1
        if not ok:
            self.files_failed += 1
        return ok

    def process_directory(self, genbank_dir: Union[str, Path],
                          basetram_dir: Union[str, Path]) -> int:
        """Process every annotation file in a directory, in name order"""
        files = sorted(p for p in Path(genbank_dir).iterdir()
                       if p.is_file() and p.suffix == self.config.annotation_suffix)
        logger.info(f"Found {len(files)} annotation files in {genbank_dir}")

        for path in files:
            self.process_annotation_file(path, basetram_dir)
        return len(files)

    def _start_contig(self, contig_id: str):
        self.finish_contig()
        self._contig_file = self._prediction_dir / contig_id if contig_id else None

    def finish_contig(self):
        """Match the buffered genes against the contig's predicted sites"""
        if not len(self.genes):
            return

        try:
            if self._contig_file is None:
                return
            if not self._contig_file.is_file():
                logger.warning(f"No TFBS predictions at {self._contig_file}")
                return

            self.genes.sort()
            logger.debug(f"Contig {self._contig_file.name}: {len(self.genes.forward)} forward, "
                         f"{len(self.genes.complement)} complement genes")
            try:
                parse_file(self._contig_file, self.tfbs_sink)
            except (ParserError, OSError) as e:
                logger.error(f"Parse error in {self._contig_file}: {e}")
            self.contigs_processed += 1
        finally:
            self.genes.clear()

    def process_tfbs(self, occurrence: TFBSOccurrence):
        """Infer edges for one binding site and update the diagnostics"""
        if occurrence.probability < self.config.min_probability:
            return

        used = False
        for target_id in self.engine.candidates(occurrence, self.genes):
            if self.accumulator.try_add_edge(occurrence.accession, target_id):
                used = True

        self.accumulator.record_tfbs(occurrence.probability, used)

    def network(self) -> Network:
        """The thresholded network with its statistics comments"""
        min_regulation = self.config.min_regulation
        vertices = [Vertex(v, self.name_index.name_of(v))
                    for v in self.accumulator.vertices(min_regulation)]
        edges = [(target_id, regulator_id)
                 for target_id, regulators in self.accumulator.collated_edges(min_regulation)
                 for regulator_id in regulators]
        return Network(vertices, edges, self.statistics_lines(len(self.accumulator.edges)))

    def statistics_lines(self, num_edges: int) -> List[str]:
        """Run diagnostics; num_edges counts every accepted edge before thresholding"""
        acc = self.accumulator
        return [
            f"# There are {num_edges} edges",
            f"# {acc.tfbs_processed} transcription factor binding sites processed.",
            f"# {acc.inference_calls} edge inference calls made.",
            f"# {acc.used_tfbs} TFBSes used, average probability {acc.average_used_probability:.6g}",
            f"# {acc.unused_tfbs} TFBSes unused, average probability {acc.average_unused_probability:.6g}",
        ]


def build_network(genbank_dir: Union[str, Path], basetram_dir: Union[str, Path],
                  hgnc_path: Union[str, Path], matrices_path: Union[str, Path],
                  config: Optional[BuilderConfig] = None) -> Network:
    """Load both databases once and build a network from a directory of annotations"""
    config = (config or BuilderConfig.default()).validate()

    name_index = load_hgnc_database(hgnc_path)
    regulator_map = load_matrix_database(matrices_path, name_index)

    builder = NetworkBuilder(config, name_index, regulator_map)
    builder.process_directory(genbank_dir, basetram_dir)

    stats = builder.accumulator.get_statistics()
    logger.info(f"Network built from {builder.files_processed} files "
                f"({builder.files_failed} failed, {builder.contigs_processed} contigs): "
                f"{stats['num_edges']:,} edges, {stats['tfbs_processed']:,} TFBSes processed")
    return builder.network()
