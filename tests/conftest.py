"""
Pytest configuration and fixtures for tfnet tests
"""

import pytest

import numpy as np

from tfnet.hgnc import HGNCNameIndex, load_hgnc_database
from tfnet.network import Network, Vertex
from tfnet.transfac import TransfacRegulatorMap, load_matrix_database


HGNC_ROWS = [
    ("HGNC ID", "Approved Symbol", "Approved Name", "Status", "Previous Symbols", "Aliases"),
    ("1", "TP53", "tumor protein p53", "Approved", "", ""),
    ("2", "MYC", "v-myc myelocytomatosis viral oncogene homolog", "Approved", "", "c-Myc, bHLHe39"),
    ("3", "NFKB1", "nuclear factor kappa B subunit 1", "Approved", "", "NF-kappaB, p105"),
    ("4", "STAT3", "signal transducer and activator of transcription 3", "Approved", "APRF", ""),
    ("5", "OLDGENE", "withdrawn entry", "Entry Withdrawn", "", ""),
    ("6", "HNF4A", "hepatocyte nuclear factor 4 alpha", "Approved", "TCF14", "HNF4"),
]

TRANSFAC_TEXT = """\
VV  TRANSFAC MATRIX TABLE
XX
//
AC  M0001
XX
ID  V$MYC_01
BF  T00001 c-Myc; Species: human, Homo sapiens.
//
AC  M0002
NA  NFKB1
BF  T00002 NF-kappaB1; Species: human, Homo sapiens.
//
AC  M0003
BF  T00003 Unknown factor; Species: human, Homo sapiens.
//
NA  STAT3
//
AC  M0004
BF  T00004 HNF-4alpha; Species: human, Homo sapiens.
//
"""


def locus_line(locus, length=1000):
    """LOCUS line in the fixed column layout GenBank releases use"""
    return f"LOCUS       {locus:<16}{length:>12} bp    DNA     linear   CON 01-JAN-2000"


def make_genbank_record(locus, features, sequence=None):
    """Render a GenBank-style record; features are (key, location, qualifiers)"""
    lines = [
        locus_line(locus),
        "DEFINITION  Test contig.",
        "FEATURES             Location/Qualifiers",
    ]
    for key, location, qualifiers in features:
        lines.append(f"     {key:<16}{location}")
        for name, value in qualifiers:
            lines.append(" " * 21 + f'/{name}="{value}"')
    lines.append("ORIGIN")
    if sequence:
        lines.append(f"        1 {sequence}")
    lines.append("//")
    return "\n".join(lines) + "\n"


def make_tfbs(location, accession, probability):
    return ("TFBS", location, [("db_xref", f"TRANSFAC:{accession}"),
                               ("probability", str(probability))])


ANNOTATION_FEATURES = [
    ("source", "1..1000", [("organism", "Homo sapiens"), ("db_xref", "taxon:9606")]),
    ("gene", "100..200", [("gene", "TP53"), ("db_xref", "HGNC:1")]),
    # Only gene features contribute positions
    ("CDS", "100..200", [("db_xref", "HGNC:3")]),
    ("gene", "complement(400..600)", [("gene", "STAT3"), ("db_xref", "GeneID:6774"),
                                      ("db_xref", "HGNC:4")]),
]

PREDICTION_FEATURES = [
    make_tfbs("50..60", "M0001", 0.9),
    make_tfbs("complement(700..710)", "M0002", 0.8),
    make_tfbs("300..310", "M9999", 0.5),
    make_tfbs("120..130", "M0002", 0.1),
]


@pytest.fixture
def genbank_record():
    """Provide the GenBank record renderer"""
    return make_genbank_record


@pytest.fixture
def tfbs():
    """Provide the TFBS feature builder"""
    return make_tfbs


@pytest.fixture
def hgnc_file(tmp_path):
    """Tab-separated HGNC symbol database"""
    path = tmp_path / "hgnc.txt"
    path.write_text("\n".join("\t".join(row) for row in HGNC_ROWS) + "\n")
    return path


@pytest.fixture
def matrices_file(tmp_path):
    """TRANSFAC matrix database"""
    path = tmp_path / "matrix.dat"
    path.write_text(TRANSFAC_TEXT)
    return path


@pytest.fixture
def name_index(hgnc_file) -> HGNCNameIndex:
    return load_hgnc_database(hgnc_file)


@pytest.fixture
def regulator_map(matrices_file, name_index) -> TransfacRegulatorMap:
    return load_matrix_database(matrices_file, name_index)


@pytest.fixture
def data_dirs(tmp_path):
    """GenBank and BaSeTraM directories for one chromosome with one contig"""
    genbank_dir = tmp_path / "genbank"
    basetram_dir = tmp_path / "basetram"
    genbank_dir.mkdir()
    (basetram_dir / "chr1").mkdir(parents=True)

    (genbank_dir / "chr1.gbk").write_text(
        make_genbank_record("NT_0001", ANNOTATION_FEATURES, sequence="acgtacgtac"))
    (genbank_dir / "notes.txt").write_text("not an annotation file\n")
    (basetram_dir / "chr1" / "NT_0001").write_text(
        make_genbank_record("NT_0001", PREDICTION_FEATURES))

    return {'genbank': genbank_dir, 'basetram': basetram_dir}


@pytest.fixture
def full_setup(data_dirs, hgnc_file, matrices_file):
    """Every input the builder needs"""
    return dict(data_dirs, hgnc=hgnc_file, matrices=matrices_file)


@pytest.fixture
def sample_network():
    """A five-vertex network with a comment trailer"""
    vertices = [Vertex(1, "TP53"), Vertex(2, "MYC"), Vertex(3, "NFKB1"),
                Vertex(4, "STAT3"), Vertex(6, "HNF4A")]
    edges = [(1, 2), (1, 3), (4, 3), (6, 2), (6, 4)]
    return Network(vertices, edges, ["# There are 5 edges"])


@pytest.fixture
def rng():
    """Deterministic random source"""
    return np.random.default_rng(12345)


SAMPLE_NETWORK_TEXT = """\
VERTICES
VERTEX 1 TP53
VERTEX 2 MYC
VERTEX 3 NFKB1
VERTEX 4 STAT3
VERTEX 6 HNF4A
ENDVERTICES
EDGES 1 (2 3 )
EDGES 4 (3 )
EDGES 6 (2 4 )
# There are 5 edges
# 4 transcription factor binding sites processed.
"""


@pytest.fixture
def network_text():
    return SAMPLE_NETWORK_TEXT


@pytest.fixture
def network_file(tmp_path):
    path = tmp_path / "network.txt"
    path.write_text(SAMPLE_NETWORK_TEXT)
    return path
