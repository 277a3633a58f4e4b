"""Analysis passes: discovery, resolution, extraction and schema compilation."""

from .class_resolver import ClassResolver
from .discovery import RegistrationDiscoverer
from .extractor import Extraction, StructuralExtractor
from .federation import FederationExtractor
from .metadata import extract_metadata, to_kebab_case
from .schema import SchemaCompiler

__all__ = [
    "ClassResolver",
    "Extraction",
    "FederationExtractor",
    "RegistrationDiscoverer",
    "SchemaCompiler",
    "StructuralExtractor",
    "extract_metadata",
    "to_kebab_case",
]
