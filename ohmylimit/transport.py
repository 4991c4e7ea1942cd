"""JSON-lines transport over the standard streams of a child app-server process."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Sequence
from typing import Any

APP_SERVER_COMMAND = "codex"
APP_SERVER_ARGS: tuple[str, ...] = ("app-server", "--listen", "stdio://")

_LINE_LIMIT = 64 * 1024 * 1024


class AppServerError(RuntimeError):
    """Raised when talking to the app-server fails."""


def compact_json(value: Any) -> str:
    """Encode ``value`` as compact JSON without escaping non-ASCII text."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def _is_request_id(value: Any, expected: int) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value == expected


class StdioJsonlTransport:
    """Exchanges one JSON message per line with a child process."""

    def __init__(self, process: asyncio.subprocess.Process) -> None:
        self._process = process
        self._next_id = 0

    @classmethod
    async def spawn(
        cls,
        command: str = APP_SERVER_COMMAND,
        args: Sequence[str] = APP_SERVER_ARGS,
    ) -> StdioJsonlTransport:
        """Start ``command`` with ``args`` and connect to its stdin and stdout."""
        try:
            process = await asyncio.create_subprocess_exec(
                command,
                *args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.DEVNULL,
                limit=_LINE_LIMIT,
            )
        except OSError as exc:
            raise AppServerError(f"failed to spawn `{command}`: {exc}") from exc
        if process.stdin is None:
            raise AppServerError("codex app-server stdin is unavailable")
        if process.stdout is None:
            raise AppServerError("codex app-server stdout is unavailable")
        return cls(process)

    async def __aenter__(self) -> StdioJsonlTransport:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.shutdown()

    @property
    def running(self) -> bool:
        """Whether the child process has not yet been reaped."""
        return self._process.returncode is None

    async def request(self, method: str, params: Any = None) -> Any:
        """Send a request and return the ``result`` of the response with its id."""
        request_id = self._next_request_id()
        await self._write({"id": request_id, "method": method, "params": params})

        while True:
            message = await self.next_message()
            if not isinstance(message, dict) or not _is_request_id(
                message.get("id"), request_id
            ):
                continue
            if "error" in message:
                raise AppServerError(
                    f"app-server request `{method}` failed: {compact_json(message['error'])}"
                )
            if "result" not in message:
                raise AppServerError(
                    f"app-server request `{method}` response missing result"
                )
            return message["result"]

    async def notification(self, method: str, params: Any = None) -> None:
        """Send a message that expects no response."""
        await self._write({"method": method, "params": params})

    async def response(self, id: Any, result: Any) -> None:
        """Answer a request the server sent."""
        await self._write({"id": id, "result": result})

    async def next_message(self) -> Any:
        """Read and decode the next line from the server."""
        stdout = self._process.stdout
        assert stdout is not None
        try:
            raw = await stdout.readline()
        except (OSError, ValueError) as exc:
            raise AppServerError(f"failed to read app-server stdout: {exc}") from exc
        if not raw:
            raise AppServerError("codex app-server closed stdout")
        try:
            line = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise AppServerError(f"failed to read app-server stdout: {exc}") from exc
        line = line.removesuffix("\n").removesuffix("\r")
        try:
            return json.loads(line)
        except ValueError as exc:
            raise AppServerError(f"invalid app-server JSONL: {line}") from exc

    async def shutdown(self) -> None:
        """Kill the child process if it is still running and reap it."""
        if self._process.returncode is None:
            try:
                self._process.kill()
            except ProcessLookupError:
                pass
            try:
                await self._process.wait()
            except OSError:
                pass

    async def _write(self, message: Any) -> None:
        try:
            data = compact_json(message).encode("utf-8") + b"\n"
        except (TypeError, ValueError) as exc:
            raise AppServerError(f"failed to encode app-server JSON: {exc}") from exc
        stdin = self._process.stdin
        assert stdin is not None
        try:
            stdin.write(data)
        except (OSError, RuntimeError) as exc:
            raise AppServerError(f"failed to write app-server stdin: {exc}") from exc
        try:
            await stdin.drain()
        except (OSError, RuntimeError) as exc:
            raise AppServerError(f"failed to flush app-server stdin: {exc}") from exc

    def _next_request_id(self) -> int:
        request_id = self._next_id
        self._next_id += 1
        return request_id