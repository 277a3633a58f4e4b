"""owcs: static analysis of custom element surfaces in TypeScript projects."""

from .analyzer import ProjectAnalyzer, analyze_project
from .models import AnalysisResult, ComponentModel, IntermediateModel

__all__ = [
    "AnalysisResult",
    "ComponentModel",
    "IntermediateModel",
    "ProjectAnalyzer",
    "analyze_project",
]
