"""High-level client for the Codex app-server protocol."""

from __future__ import annotations

import os
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from ohmylimit.transport import AppServerError, StdioJsonlTransport, compact_json

CLIENT_NAME = "oh_my_limit"
CLIENT_TITLE = "Oh My Limit for Codex"
CLIENT_VERSION = "0.1.0"
SERVICE_NAME = "oh-my-limit"


def _get(value: Any, key: str) -> Any:
    return value.get(key) if isinstance(value, dict) else None


def _as_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _string_at(value: Any, path: Sequence[str]) -> str | None:
    current = value
    for segment in path:
        if not isinstance(current, dict) or segment not in current:
            return None
        current = current[segment]
    return _as_str(current)


def _require_string_at(value: Any, path: Sequence[str], message: str) -> str:
    text = _string_at(value, path)
    if text is None:
        raise AppServerError(message)
    return text


@dataclass
class RunOptions:
    prompt: str
    cwd: str | os.PathLike[str]


@dataclass(frozen=True)
class AccountSummary:
    account_type: str | None
    plan_type: str | None
    requires_openai_auth: bool


@dataclass(frozen=True)
class RunResult:
    answer: str
    thread_id: str
    turn_id: str
    account: AccountSummary


@dataclass(frozen=True)
class ThreadSession:
    id: str
    model: str
    reasoning_effort: str | None = None


def _thread_session_from_response(value: Any, method: str) -> ThreadSession:
    thread_id = _require_string_at(
        value, ("thread", "id"), f"{method} response missing thread.id"
    )
    model = _require_string_at(value, ("model",), f"{method} response missing model")
    return ThreadSession(
        id=thread_id,
        model=model,
        reasoning_effort=_string_at(value, ("reasoningEffort",)),
    )


def _completed_agent_answer(params: Any) -> str | None:
    item = _get(params, "item")
    if item is None:
        return None
    if _as_str(_get(item, "type")) != "agentMessage":
        return None
    phase = _as_str(_get(item, "phase"))
    if phase is not None and phase != "final_answer":
        return None
    return _as_str(_get(item, "text"))


class AppServerClient:
    """Drives threads and turns over an app-server transport."""

    def __init__(self, transport: StdioJsonlTransport) -> None:
        self.transport = transport

    @classmethod
    async def spawn(cls) -> AppServerClient:
        """Start the app-server and wrap it in a client."""
        return cls(await StdioJsonlTransport.spawn())

    async def __aenter__(self) -> AppServerClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.shutdown()

    async def initialize(self) -> Any:
        """Perform the protocol handshake and return the server's reply."""
        result = await self.transport.request(
            "initialize",
            {
                "clientInfo": {
                    "name": CLIENT_NAME,
                    "title": CLIENT_TITLE,
                    "version": CLIENT_VERSION,
                },
                "capabilities": {"experimentalApi": False},
            },
        )
        await self.transport.notification("initialized", {})
        return result

    async def account_read(self) -> AccountSummary:
        result = await self.transport.request("account/read", {"refreshToken": False})
        account = _get(result, "account")
        requires = _get(result, "requiresOpenaiAuth")
        return AccountSummary(
            account_type=_as_str(_get(account, "type")),
            plan_type=_as_str(_get(account, "planType")),
            requires_openai_auth=requires if isinstance(requires, bool) else False,
        )

    async def thread_start(self, cwd: str, model: str | None = None) -> ThreadSession:
        result = await self.transport.request(
            "thread/start",
            {
                "cwd": cwd,
                "ephemeral": True,
                "serviceName": SERVICE_NAME,
                "model": model,
            },
        )
        return _thread_session_from_response(result, "thread/start")

    async def turn_start(
        self,
        thread_id: str,
        cwd: str,
        prompt: str,
        model: str | None = None,
        effort: str | None = None,
    ) -> str:
        """Start a turn and return its id."""
        result = await self.transport.request(
            "turn/start",
            {
                "threadId": thread_id,
                "cwd": cwd,
                "input": [{"type": "text", "text": prompt}],
                "model": model,
                "effort": effort,
            },
        )
        return _require_string_at(
            result, ("turn", "id"), "turn/start response missing turn.id"
        )

    async def turn_interrupt(self, thread_id: str, turn_id: str) -> None:
        await self.transport.request(
            "turn/interrupt", {"threadId": thread_id, "turnId": turn_id}
        )

    async def account_rate_limits_read(self) -> Any:
        return await self.transport.request("account/rateLimits/read", None)

    async def model_list(self) -> Any:
        return await self.transport.request("model/list", {"includeHidden": False})

    async def compact_start(self, thread_id: str) -> None:
        await self.transport.request("thread/compact/start", {"threadId": thread_id})

    async def review_start(self, thread_id: str) -> str:
        """Start a review of uncommitted changes and return the turn id."""
        result = await self.transport.request(
            "review/start",
            {
                "threadId": thread_id,
                "delivery": "inline",
                "target": {"type": "uncommittedChanges"},
            },
        )
        return _require_string_at(
            result, ("turn", "id"), "review/start response missing turn.id"
        )

    async def thread_list(self, cwd: str | None, limit: int) -> Any:
        return await self.transport.request(
            "thread/list",
            {
                "cwd": cwd,
                "limit": limit,
                "archived": False,
                "sortDirection": "desc",
                "sortKey": "updated_at",
            },
        )

    async def thread_resume(self, thread_id: str, cwd: str) -> ThreadSession:
        result = await self.transport.request(
            "thread/resume",
            {"threadId": thread_id, "cwd": cwd, "excludeTurns": True},
        )
        return _thread_session_from_response(result, "thread/resume")

    async def respond_server_request(self, id: Any, result: Any) -> None:
        await self.transport.response(id, result)

    async def wait_for_turn_completed(self, turn_id: str) -> str:
        """Collect the agent's answer until the given turn completes."""
        deltas: list[str] = []
        completed_item_answer: str | None = None

        while True:
            message = await self.transport.next_message()
            method = _as_str(_get(message, "method"))
            params = _get(message, "params")

            if method == "item/agentMessage/delta":
                delta = _as_str(_get(params, "delta"))
                if _as_str(_get(params, "turnId")) == turn_id and delta is not None:
                    deltas.append(delta)
            elif method == "item/completed":
                if _as_str(_get(params, "turnId")) == turn_id:
                    item_answer = _completed_agent_answer(params)
                    if item_answer is not None:
                        completed_item_answer = item_answer
            elif method == "turn/completed":
                turn = _get(params, "turn")
                if _as_str(_get(turn, "id")) != turn_id:
                    continue
                if _as_str(_get(turn, "status")) == "failed":
                    error = _as_str(_get(_get(turn, "error"), "message"))
                    raise AppServerError(error or "turn failed without error message")
                answer = "".join(deltas)
                if not answer:
                    return completed_item_answer or ""
                return answer
            elif method == "error":
                raise AppServerError(
                    f"app-server error notification: {compact_json(params)}"
                )

    async def next_message(self) -> Any:
        return await self.transport.next_message()

    async def shutdown(self) -> None:
        await self.transport.shutdown()

    async def run_prompt(self, options: RunOptions) -> RunResult:
        """Run one prompt in a fresh ephemeral thread, then shut the server down."""
        cwd = os.fspath(options.cwd)
        await self.initialize()
        account = await self.account_read()
        thread = await self.thread_start(cwd)
        turn_id = await self.turn_start(thread.id, cwd, options.prompt)
        answer = await self.wait_for_turn_completed(turn_id)
        await self.shutdown()
        return RunResult(
            answer=answer, thread_id=thread.id, turn_id=turn_id, account=account
        )


async def run_prompt(options: RunOptions) -> RunResult:
    """Start the app-server and run a single prompt through it."""
    client = await AppServerClient.spawn()
    return await client.run_prompt(options)