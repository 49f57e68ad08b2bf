"""
Shared fixtures for lsprename tests.
"""

import sys
from pathlib import Path

import pytest

# Make the package importable without installing it
project_src = Path(__file__).resolve().parent.parent / 'src'
sys.path.insert(0, str(project_src))

from lsprename.client import ClientApi  # noqa: E402
from lsprename.json import JSON  # noqa: E402
from lsprename.renamer import Renamer  # noqa: E402
from lsprename.workspace import Workspace, WorkspaceTextDocumentLocator  # noqa: E402


class FakeRenamer(Renamer):
    """Renamer with a canned range and edit stream."""

    def __init__(self, byte_range=None, steps=(), log=None):
        self.byte_range = byte_range
        self.steps = list(steps)
        self.calls = 0
        self.log = log

    def rename_range(self, document, offset):
        return self.byte_range

    def rename(self, document, offset, new_name):
        self.calls += 1
        for step in self.steps:
            if self.log is not None:
                self.log.append('edit')
            yield step


class RecordingClient(ClientApi):
    def __init__(self):
        self.sent: list[JSON] = []

        async def record(message: JSON) -> None:
            self.sent.append(message)

        super().__init__(record)

    @property
    def messages(self) -> list[str]:
        return [
            m['params']['message']
            for m in self.sent
            if m['method'] == 'window/showMessage'
        ]


@pytest.fixture
def workspace() -> Workspace:
    return Workspace()


@pytest.fixture
def locator(workspace) -> WorkspaceTextDocumentLocator:
    return WorkspaceTextDocumentLocator(workspace)


@pytest.fixture
def client() -> RecordingClient:
    return RecordingClient()


@pytest.fixture
def src_path() -> Path:
    return project_src
