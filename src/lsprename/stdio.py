"""Asyncio streams over stdin/stdout.

On Windows the ProactorEventLoop cannot attach pipes to the console's
stdin/stdout (https://github.com/python/cpython/issues/71019), so a
helper thread copies between the real descriptor and an os.pipe() the
event loop can watch.
"""

import asyncio
import os
import sys
import threading
from typing import Callable


def _pump(read_fd: int, write: Callable[[bytes], object], done: Callable[[], None], name: str) -> None:
    def run():
        try:
            while data := os.read(read_fd, 4096):
                write(data)
        finally:
            done()

    threading.Thread(target=run, daemon=True, name=name).start()


async def open_stdio(use_thread: bool) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
    """Return a (reader, writer) pair speaking to our stdin and stdout."""
    loop = asyncio.get_running_loop()

    if use_thread:
        in_read, in_write = os.pipe()
        in_pipe = os.fdopen(in_write, 'wb', buffering=0)
        _pump(sys.stdin.fileno(), in_pipe.write, in_pipe.close, "stdin-reader")
        read_file = os.fdopen(in_read, 'rb', buffering=0)

        out_read, out_write = os.pipe()

        def to_stdout(data: bytes) -> None:
            sys.stdout.buffer.write(data)
            sys.stdout.buffer.flush()

        _pump(out_read, to_stdout, lambda: os.close(out_read), "stdout-writer")
        write_file = os.fdopen(out_write, 'wb', buffering=0)
    else:
        read_file = sys.stdin
        write_file = sys.stdout

    reader = asyncio.StreamReader()
    protocol = asyncio.StreamReaderProtocol(reader)
    await loop.connect_read_pipe(lambda: protocol, read_file)

    transport, write_protocol = await loop.connect_write_pipe(
        asyncio.streams.FlowControlMixin, write_file
    )
    writer = asyncio.StreamWriter(transport, write_protocol, None, loop)
    return reader, writer
