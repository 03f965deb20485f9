"""
Pre-simulation analysis services and their result contracts.
"""
from .results import TopologyAnalysisResults
from .topology import TopologyAnalyzer
from .exceptions import TopologyAnalysisError

__all__ = [
    "TopologyAnalysisResults",
    "TopologyAnalyzer",
    "TopologyAnalysisError",
]
