"""Default preset: local variables first, then names across open documents."""

from lsprename.strategies import ReferenceRenamer, VariableRenamer, WorkspaceReferenceFinder


def renamers(workspace, locator):
    """Return the variable and reference renamers."""
    return [
        VariableRenamer(),
        ReferenceRenamer(WorkspaceReferenceFinder(workspace)),
    ]
