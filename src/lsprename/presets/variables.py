"""Variables-only preset."""

from lsprename.strategies import VariableRenamer


def renamers(workspace, locator):
    return [VariableRenamer()]
