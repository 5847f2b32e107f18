"""Document analysis pipeline, queries and export."""

from .export import build_summary, export_json, export_payload, load_export
from .hierarchy import HierarchyNode, build_text_hierarchy, heading_level
from .models import AnalysisStatus, DocumentAnalysis
from .orchestrator import AnalysisOrchestrator, new_document_id

__all__ = [
    "build_summary",
    "export_json",
    "export_payload",
    "load_export",
    "HierarchyNode",
    "build_text_hierarchy",
    "heading_level",
    "AnalysisStatus",
    "DocumentAnalysis",
    "AnalysisOrchestrator",
    "new_document_id",
]
