"""
tfnet: Transcription Factor Network Builder and Perturber
"""

from .builder import NetworkBuilder, build_network
from .config import BuilderConfig
from .network import Network, parse_network, read_network

__version__ = "0.2.0"
__all__ = ["NetworkBuilder", "build_network", "BuilderConfig", "Network",
           "parse_network", "read_network"]
