"""Template interpolation and request assembly."""

from postline.core.assembler import RequestAssembler, assemble
from postline.core.curl import CurlExporter, export_curl
from postline.core.interpolator import (
    MAX_DEPTH, Interpolator, extract_variable_names, find_unresolved, interpolate,
)
from postline.core.runner import RequestRunner, SendOutcome
from postline.core.scopes import ScopeSet, SecretResolver, merge, reduce_variables

__all__ = [
    "RequestAssembler", "assemble",
    "CurlExporter", "export_curl",
    "MAX_DEPTH", "Interpolator", "extract_variable_names", "find_unresolved", "interpolate",
    "RequestRunner", "SendOutcome",
    "ScopeSet", "SecretResolver", "merge", "reduce_variables",
]
