import asyncio

import pytest
from conftest import FakeRenamer

from lsprename.handler import RENAME_YIELD_EVERY, RenameHandler
from lsprename.model import ByteRange, LocatedTextEdit, RenameFailure
from lsprename.renamer import ChainRenamer
from lsprename.strategies import ReferenceRenamer, VariableRenamer, WorkspaceReferenceFinder
from lsprename.workspace import DocumentNotFound

URI_A = "file:///project/a.php"
URI_B = "file:///project/b.php"


def lsp_range(l1, c1, l2, c2):
    return {
        'start': {'line': l1, 'character': c1},
        'end': {'line': l2, 'character': c2},
    }


def rename_params(uri, line, character, new_name):
    return {
        'textDocument': {'uri': uri},
        'position': {'line': line, 'character': character},
        'newName': new_name,
    }


@pytest.fixture
def handler(workspace, locator, client):
    renamer = ChainRenamer(
        [VariableRenamer(), ReferenceRenamer(WorkspaceReferenceFinder(workspace))]
    )
    return RenameHandler(workspace, locator, renamer, client)


def test_methods_and_capabilities(handler):
    assert set(handler.methods()) == {
        'textDocument/prepareRename',
        'textDocument/rename',
    }
    caps = {}
    handler.register_capabilities(caps)
    assert caps == {'renameProvider': {'prepareProvider': True}}


def test_rename_local_variable_in_one_document(handler, workspace, client):
    workspace.open(URI_A, "<?php\n$x = 1;\n$y = $x + 2;\necho $x;\n", version=1)

    result = asyncio.run(handler.rename(rename_params(URI_A, 1, 1, "total")))

    assert result == {
        'documentChanges': [
            {
                'textDocument': {'uri': URI_A, 'version': 1},
                'edits': [
                    {'range': lsp_range(1, 0, 1, 2), 'newText': "$total"},
                    {'range': lsp_range(2, 5, 2, 7), 'newText': "$total"},
                    {'range': lsp_range(3, 5, 3, 7), 'newText': "$total"},
                ],
            }
        ]
    }
    assert client.sent == []


def test_prepare_rename_returns_token_span(handler, workspace):
    workspace.open(URI_A, "<?php\n$x = 1;\n", version=1)

    result = asyncio.run(
        handler.prepare_rename(
            {'textDocument': {'uri': URI_A}, 'position': {'line': 1, 'character': 1}}
        )
    )

    assert result == lsp_range(1, 0, 1, 2)


def test_cursor_on_whitespace(handler, workspace, client):
    workspace.open(URI_A, "<?php\n$a  =  1;\n", version=1)
    position = {'line': 1, 'character': 3}

    prepared = asyncio.run(
        handler.prepare_rename({'textDocument': {'uri': URI_A}, 'position': position})
    )
    renamed = asyncio.run(handler.rename(rename_params(URI_A, 1, 3, "b")))

    assert prepared is None
    assert renamed == {'documentChanges': []}
    assert len(client.sent) == 1
    notification = client.sent[0]
    assert notification['method'] == 'window/showMessage'
    assert notification['params']['type'] == 1
    assert notification['params']['message']


def test_cursor_right_after_a_name_targets_that_name(handler, workspace, client):
    workspace.open(URI_A, "<?php\n$a  =  1;\n", version=1)

    prepared = asyncio.run(
        handler.prepare_rename(
            {'textDocument': {'uri': URI_A}, 'position': {'line': 1, 'character': 2}}
        )
    )
    renamed = asyncio.run(handler.rename(rename_params(URI_A, 1, 2, "b")))

    assert prepared == lsp_range(1, 0, 1, 2)
    assert renamed['documentChanges'][0]['edits'] == [
        {'range': lsp_range(1, 0, 1, 2), 'newText': "$b"}
    ]
    assert client.sent == []


def test_rename_across_two_documents(handler, workspace):
    workspace.open(URI_A, "<?php\nfunction greet() {}\n", version=3)
    workspace.open(URI_B, "<?php\ngreet();\n", version=7)

    result = asyncio.run(handler.rename(rename_params(URI_A, 1, 10, "welcome")))

    assert result == {
        'documentChanges': [
            {
                'textDocument': {'uri': URI_A, 'version': 3},
                'edits': [{'range': lsp_range(1, 9, 1, 14), 'newText': "welcome"}],
            },
            {
                'textDocument': {'uri': URI_B, 'version': 7},
                'edits': [{'range': lsp_range(1, 0, 1, 5), 'newText': "welcome"}],
            },
        ]
    }


def test_unopened_document_gets_version_zero(workspace, locator, client, tmp_path):
    on_disk = tmp_path / "lib.php"
    on_disk.write_text("<?php\n\nhelper();\n", encoding="utf-8")
    disk_uri = on_disk.as_uri()
    workspace.open(URI_A, "<?php\nhelper();\n", version=4)
    renamer = FakeRenamer(
        ByteRange(6, 12),
        [
            LocatedTextEdit(URI_A, ByteRange(6, 12), "aid"),
            LocatedTextEdit(disk_uri, ByteRange(7, 13), "aid"),
        ],
    )
    handler = RenameHandler(workspace, locator, renamer, client)

    result = asyncio.run(handler.rename(rename_params(URI_A, 1, 0, "aid")))

    assert result['documentChanges'][1] == {
        'textDocument': {'uri': disk_uri, 'version': 0},
        'edits': [{'range': lsp_range(2, 0, 2, 6), 'newText': "aid"}],
    }
    assert handler.document_version(URI_A) == 4
    assert handler.document_version(disk_uri) == 0


def test_failure_mid_stream_discards_edits(workspace, locator, client):
    workspace.open(URI_A, "<?php\nfoo(); foo();\n", version=1)
    renamer = FakeRenamer(
        ByteRange(6, 9),
        [
            LocatedTextEdit(URI_A, ByteRange(6, 9), "bar"),
            RenameFailure("Cannot rename across a trait boundary"),
            LocatedTextEdit(URI_A, ByteRange(13, 16), "bar"),
        ],
    )
    handler = RenameHandler(workspace, locator, renamer, client)

    result = asyncio.run(handler.rename(rename_params(URI_A, 1, 0, "bar")))

    assert result == {'documentChanges': []}
    assert client.messages == ["Cannot rename across a trait boundary"]


def test_overlapping_edits_are_reported_not_raised(workspace, locator, client):
    workspace.open(URI_A, "<?php\nfoobar();\n", version=1)
    renamer = FakeRenamer(
        ByteRange(6, 12),
        [
            LocatedTextEdit(URI_A, ByteRange(6, 12), "x"),
            LocatedTextEdit(URI_A, ByteRange(9, 12), "y"),
        ],
    )
    handler = RenameHandler(workspace, locator, renamer, client)

    result = asyncio.run(handler.rename(rename_params(URI_A, 1, 0, "x")))

    assert result == {'documentChanges': []}
    assert len(client.messages) == 1
    assert "Overlapping edits" in client.messages[0]


def _many_edits(count):
    # One single-character edit per line
    return [LocatedTextEdit(URI_A, ByteRange(i * 2, i * 2 + 1), "y") for i in range(count)]


def _interleaving(workspace, locator, client, yield_every):
    log = []
    renamer = FakeRenamer(ByteRange(0, 1), _many_edits(25), log=log)
    handler = RenameHandler(workspace, locator, renamer, client, yield_every=yield_every)

    async def other_request():
        log.append('other')

    async def scenario():
        rename = asyncio.create_task(handler.rename(rename_params(URI_A, 0, 0, "y")))
        other = asyncio.create_task(other_request())
        result = await rename
        await other
        return result

    result = asyncio.run(scenario())
    return result, log


def test_rename_yields_to_other_requests(workspace, locator, client):
    workspace.open(URI_A, "x\n" * 25, version=2)

    result, log = _interleaving(workspace, locator, client, yield_every=10)

    assert log.index('other') == 10
    assert len(result['documentChanges'][0]['edits']) == 25


def test_yielding_does_not_change_the_result(workspace, locator, client):
    workspace.open(URI_A, "x\n" * 25, version=2)

    yielding, yielding_log = _interleaving(workspace, locator, client, yield_every=10)
    straight, straight_log = _interleaving(workspace, locator, client, yield_every=1000)

    assert yielding == straight
    assert straight_log.index('other') == 25
    edits = straight['documentChanges'][0]['edits']
    assert [e['range']['start']['line'] for e in edits] == list(range(25))


def test_missing_document_propagates(handler):
    with pytest.raises(DocumentNotFound):
        asyncio.run(handler.rename(rename_params("file:///nowhere/x.php", 0, 0, "y")))


def test_yield_every_must_be_positive(workspace, locator, client):
    with pytest.raises(ValueError):
        RenameHandler(workspace, locator, FakeRenamer(), client, yield_every=0)


def test_large_rename_keeps_yielding_while_grouping_and_converting(
    workspace, locator, client
):
    count = 3000
    workspace.open(URI_A, "x\n" * count, version=1)
    log = []
    renamer = FakeRenamer(ByteRange(0, 1), _many_edits(count), log=log)
    handler = RenameHandler(workspace, locator, renamer, client)

    async def ticker(done):
        while not done.is_set():
            log.append('tick')
            await asyncio.sleep(0)

    async def scenario():
        done = asyncio.Event()
        other = asyncio.create_task(ticker(done))
        result = await handler.rename(rename_params(URI_A, 0, 0, "y"))
        done.set()
        await other
        return result

    result = asyncio.run(scenario())

    assert len(result['documentChanges'][0]['edits']) == count
    last_edit = len(log) - 1 - log[::-1].index('edit')
    # Consumption alone yields count / 10 times; the rest come after the
    # stream is exhausted.
    assert log[last_edit:].count('tick') > count // RENAME_YIELD_EVERY
