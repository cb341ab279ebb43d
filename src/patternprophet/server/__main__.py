"""Pattern Prophet JSON-lines server entry point.

Usage: python -m patternprophet.server

One request per stdin line, one response per stdout line. Notifications
such as ``progressUpdated`` are interleaved on stdout; logs go to stderr.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Optional

from patternprophet.config.logging import setup_logger
from patternprophet.config.settings import Settings

from .handler import ServerHandler
from .protocol import ErrorInfo, Notification, Response

logger = logging.getLogger("patternprophet.server")


async def respond(handler: ServerHandler, line: str) -> Optional[Response]:
    """Turn one raw request line into its response, or None for blank lines."""
    line = line.strip()
    if not line:
        return None
    try:
        msg = json.loads(line)
    except json.JSONDecodeError as e:
        return Response(id=0, error=ErrorInfo(type="InvalidJSON", message=str(e)))
    if not isinstance(msg, dict):
        return Response(id=0, error=ErrorInfo(type="InvalidRequest", message="Expected a JSON object"))

    req_id = msg.get("id", 0)
    try:
        return Response(id=req_id, result=await handler.dispatch(msg))
    except Exception as e:
        logger.error("%s request %s failed: %s", msg.get("method"), req_id, e)
        return Response(id=req_id, error=ErrorInfo.from_exception(e))


def _emit(text: str) -> None:
    sys.stdout.write(text)
    sys.stdout.flush()


async def main(settings: Optional[Settings] = None) -> None:
    settings = settings or Settings.load()
    setup_logger(settings.logging.get_level(), settings.logging.file)

    def notify(notification: Notification) -> None:
        _emit(notification.to_json_line())

    handler = ServerHandler(settings=settings, write_notification=notify)

    reader = asyncio.StreamReader()
    await asyncio.get_running_loop().connect_read_pipe(
        lambda: asyncio.StreamReaderProtocol(reader), sys.stdin
    )
    logger.info("Pattern Prophet server listening on stdin")

    while True:
        line = await reader.readline()
        if not line:
            break
        response = await respond(handler, line.decode("utf-8", errors="replace"))
        if response is not None:
            _emit(response.to_json_line())

    logger.info("stdin closed, shutting down")


if __name__ == "__main__":
    asyncio.run(main())
