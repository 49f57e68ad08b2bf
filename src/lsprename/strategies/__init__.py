from .references import ReferenceFinder, ReferenceRenamer, WorkspaceReferenceFinder
from .variable import VariableRenamer

__all__ = [
    "ReferenceFinder",
    "ReferenceRenamer",
    "VariableRenamer",
    "WorkspaceReferenceFinder",
]
