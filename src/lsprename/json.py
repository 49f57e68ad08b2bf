"""
JSONRPC message framing for LSP over stdio.
LSP uses HTTP-style headers: Content-Length: N\r\n\r\n{json}
"""

import asyncio
import json
from typing import Any, cast

JSON = dict[str, Any]

# JSONRPC error codes used by the server
METHOD_NOT_FOUND = -32601
INTERNAL_ERROR = -32603


async def read_message(reader: asyncio.StreamReader) -> JSON | None:
    """
    Read a single JSONRPC message from an async stream.
    Returns None on EOF or when the header block lacks Content-Length.
    """
    headers: dict[str, str] = {}

    while True:
        line = await reader.readline()
        if not line:
            return None

        line = line.decode('ascii').strip()
        if not line:
            break

        if ':' in line:
            key, value = line.split(':', 1)
            headers[key.strip().lower()] = value.strip()

    content_length = headers.get('content-length')
    if not content_length:
        return None

    content = await reader.readexactly(int(content_length))
    return cast(JSON, json.loads(content.decode('utf-8')))


def encode_message(message: JSON) -> bytes:
    """Frame a message, header included."""
    body = json.dumps(message, ensure_ascii=False).encode('utf-8')
    return f"Content-Length: {len(body)}\r\n\r\n".encode('ascii') + body


async def write_message(writer: asyncio.StreamWriter, message: JSON) -> None:
    """
    Write a single JSONRPC message to an async stream.
    """
    writer.write(encode_message(message))
    await writer.drain()


def make_response(req_id: Any, result: Any) -> JSON:
    return {'jsonrpc': '2.0', 'id': req_id, 'result': result}


def make_error(req_id: Any, code: int, message: str) -> JSON:
    return {
        'jsonrpc': '2.0',
        'id': req_id,
        'error': {'code': code, 'message': message},
    }


def make_notification(method: str, params: JSON) -> JSON:
    return {'jsonrpc': '2.0', 'method': method, 'params': params}
