"""ResearchFlow - academic writing assistant.

A dashboard of papers, a section-by-section editor with autosave and
version snapshots, a citation manager, and AI-assisted writing actions
served by canned fixtures or relayed to hosted LLM APIs.
"""

__version__ = "1.0.0"

from researchflow.config import Settings
from researchflow.models.paper import Paper

__all__ = ["Paper", "Settings", "__version__"]
