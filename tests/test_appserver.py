import json
import sys

import pytest

from ohmylimit.appserver import (
    AccountSummary,
    AppServerClient,
    RunOptions,
    RunResult,
    ThreadSession,
)
from ohmylimit.transport import AppServerError, StdioJsonlTransport

FAKE_SERVER = r'''
import json
import sys

with open(sys.argv[1], encoding="utf-8") as handle:
    script = json.load(handle)
log = open(sys.argv[2], "ab")


def emit(text):
    sys.stdout.write(text + "\n")
    sys.stdout.flush()


while True:
    line = sys.stdin.buffer.readline()
    if not line:
        break
    log.write(line)
    log.flush()
    message = json.loads(line)
    method = message.get("method")
    if "id" not in message or method is None:
        continue
    entry = script.get(method, {"result": {}})
    reply = {"id": message["id"]}
    for key in ("result", "error"):
        if key in entry:
            reply[key] = entry[key]
    emit(json.dumps(reply))
    for extra in entry.get("after", []):
        emit(json.dumps(extra))
'''


async def _client(tmp_path, script):
    server = tmp_path / "server.py"
    server.write_text(FAKE_SERVER, encoding="utf-8")
    config = tmp_path / "script.json"
    config.write_text(json.dumps(script), encoding="utf-8")
    log = tmp_path / "log.jsonl"
    transport = await StdioJsonlTransport.spawn(
        sys.executable, [str(server), str(config), str(log)]
    )
    return AppServerClient(transport), log


def _sent(log):
    return [json.loads(line) for line in log.read_bytes().splitlines()]


def _by_method(log, method):
    return [message for message in _sent(log) if message.get("method") == method]


def _turn_script(turn_id, notifications):
    return {"turn/start": {"result": {"turn": {"id": turn_id}}, "after": notifications}}


def _delta(turn_id, text):
    return {"method": "item/agentMessage/delta", "params": {"turnId": turn_id, "delta": text}}


def _done(turn_id, **extra):
    return {"method": "turn/completed", "params": {"turn": {"id": turn_id, **extra}}}


@pytest.mark.asyncio
async def test_initialize_sends_client_info_and_initialized(tmp_path):
    client, log = await _client(tmp_path, {"initialize": {"result": {"userAgent": "ua"}}})
    async with client:
        assert await client.initialize() == {"userAgent": "ua"}
        await client.model_list()
        sent = _sent(log)
    info = sent[0]["params"]["clientInfo"]
    assert info["name"] == "oh_my_limit"
    assert info["title"] == "Oh My Limit for Codex"
    assert sent[0]["params"]["capabilities"] == {"experimentalApi": False}
    assert sent[1] == {"method": "initialized", "params": {}}


@pytest.mark.asyncio
async def test_account_read_parses_fields(tmp_path):
    result = {
        "account": {"type": "chatgpt", "planType": "pro"},
        "requiresOpenaiAuth": True,
    }
    client, log = await _client(tmp_path, {"account/read": {"result": result}})
    async with client:
        summary = await client.account_read()
        sent = _by_method(log, "account/read")
    assert summary == AccountSummary("chatgpt", "pro", True)
    assert sent[0]["params"] == {"refreshToken": False}


@pytest.mark.asyncio
async def test_account_read_defaults_when_missing(tmp_path):
    client, _ = await _client(tmp_path, {"account/read": {"result": {"account": None}}})
    async with client:
        summary = await client.account_read()
    assert summary == AccountSummary(None, None, False)


@pytest.mark.asyncio
async def test_thread_start_returns_session(tmp_path):
    result = {"thread": {"id": "th-1"}, "model": "m-1", "reasoningEffort": "high"}
    client, log = await _client(tmp_path, {"thread/start": {"result": result}})
    async with client:
        session = await client.thread_start("/work")
        params = _by_method(log, "thread/start")[0]["params"]
    assert session == ThreadSession("th-1", "m-1", "high")
    assert params == {
        "cwd": "/work",
        "ephemeral": True,
        "serviceName": "oh-my-limit",
        "model": None,
    }


@pytest.mark.asyncio
async def test_thread_start_missing_model_raises(tmp_path):
    client, _ = await _client(tmp_path, {"thread/start": {"result": {"thread": {"id": "t"}}}})
    async with client:
        with pytest.raises(AppServerError, match="thread/start response missing model"):
            await client.thread_start("/work", "m-2")


@pytest.mark.asyncio
async def test_thread_resume_requires_thread_id(tmp_path):
    client, log = await _client(tmp_path, {"thread/resume": {"result": {"model": "m"}}})
    async with client:
        with pytest.raises(AppServerError, match="thread/resume response missing thread.id"):
            await client.thread_resume("th-9", "/work")
        params = _by_method(log, "thread/resume")[0]["params"]
    assert params == {"threadId": "th-9", "cwd": "/work", "excludeTurns": True}


@pytest.mark.asyncio
async def test_turn_start_sends_input_and_returns_id(tmp_path):
    client, log = await _client(tmp_path, _turn_script("tu-1", []))
    async with client:
        turn_id = await client.turn_start("th", "/work", "fix it", "m-3", "low")
        params = _by_method(log, "turn/start")[0]["params"]
    assert turn_id == "tu-1"
    assert params["input"] == [{"type": "text", "text": "fix it"}]
    assert (params["threadId"], params["model"], params["effort"]) == ("th", "m-3", "low")


@pytest.mark.asyncio
async def test_turn_start_missing_id_raises(tmp_path):
    client, _ = await _client(tmp_path, {"turn/start": {"result": {"turn": {}}}})
    async with client:
        with pytest.raises(AppServerError, match="turn/start response missing turn.id"):
            await client.turn_start("th", "/work", "hi")


@pytest.mark.asyncio
async def test_wait_collects_deltas_for_own_turn(tmp_path):
    notes = [_delta("a", "Hel"), _delta("b", "XX"), _delta("a", "lo"), _done("b"), _done("a")]
    client, _ = await _client(tmp_path, _turn_script("a", notes))
    async with client:
        turn_id = await client.turn_start("th", "/work", "hi")
        answer = await client.wait_for_turn_completed(turn_id)
    assert answer == "Hello"


@pytest.mark.asyncio
async def test_wait_falls_back_to_completed_final_answer(tmp_path):
    def item(phase, text):
        return {
            "method": "item/completed",
            "params": {
                "turnId": "a",
                "item": {"type": "agentMessage", "phase": phase, "text": text},
            },
        }

    notes = [item("final_answer", "final"), item("commentary", "chatter"), _done("a")]
    client, _ = await _client(tmp_path, _turn_script("a", notes))
    async with client:
        await client.turn_start("th", "/work", "hi")
        answer = await client.wait_for_turn_completed("a")
    assert answer == "final"


@pytest.mark.asyncio
async def test_wait_returns_empty_without_answer(tmp_path):
    client, _ = await _client(tmp_path, _turn_script("a", [_done("a", status="completed")]))
    async with client:
        await client.turn_start("th", "/work", "hi")
        assert await client.wait_for_turn_completed("a") == ""


@pytest.mark.asyncio
async def test_failed_turn_raises_its_message(tmp_path):
    notes = [_done("a", status="failed", error={"message": "quota exceeded"})]
    client, _ = await _client(tmp_path, _turn_script("a", notes))
    async with client:
        await client.turn_start("th", "/work", "hi")
        with pytest.raises(AppServerError, match="quota exceeded"):
            await client.wait_for_turn_completed("a")


@pytest.mark.asyncio
async def test_failed_turn_without_message(tmp_path):
    client, _ = await _client(tmp_path, _turn_script("a", [_done("a", status="failed")]))
    async with client:
        await client.turn_start("th", "/work", "hi")
        with pytest.raises(AppServerError, match="turn failed without error message"):
            await client.wait_for_turn_completed("a")


@pytest.mark.asyncio
async def test_error_notification_raises(tmp_path):
    notes = [{"method": "error", "params": {"reason": "down"}}]
    client, _ = await _client(tmp_path, _turn_script("a", notes))
    async with client:
        await client.turn_start("th", "/work", "hi")
        with pytest.raises(AppServerError, match="app-server error notification"):
            await client.wait_for_turn_completed("a")


@pytest.mark.asyncio
async def test_review_and_list_requests(tmp_path):
    script = {
        "review/start": {"result": {"turn": {"id": "rv-1"}}},
        "thread/list": {"result": {"data": []}},
    }
    client, log = await _client(tmp_path, script)
    async with client:
        assert await client.review_start("th") == "rv-1"
        assert await client.thread_list(None, 5) == {"data": []}
        review = _by_method(log, "review/start")[0]["params"]
        listing = _by_method(log, "thread/list")[0]["params"]
    assert review["target"] == {"type": "uncommittedChanges"}
    assert review["delivery"] == "inline"
    assert listing["limit"] == 5
    assert listing["cwd"] is None
    assert listing["sortKey"] == "updated_at"


@pytest.mark.asyncio
async def test_rate_limits_interrupt_and_server_response(tmp_path):
    client, log = await _client(
        tmp_path, {"account/rateLimits/read": {"result": {"primary": 12}}}
    )
    async with client:
        assert await client.account_rate_limits_read() == {"primary": 12}
        await client.respond_server_request(4, {"decision": "accept"})
        await client.turn_interrupt("th", "tu")
        sent = _sent(log)
    assert sent[0]["params"] is None
    assert sent[1] == {"id": 4, "result": {"decision": "accept"}}
    assert sent[2]["params"] == {"threadId": "th", "turnId": "tu"}


@pytest.mark.asyncio
async def test_run_prompt_end_to_end(tmp_path):
    script = {
        "account/read": {
            "result": {"account": {"type": "apiKey"}, "requiresOpenaiAuth": False}
        },
        "thread/start": {"result": {"thread": {"id": "th-5"}, "model": "m"}},
        **_turn_script("tu-5", [_delta("tu-5", "done"), _done("tu-5")]),
    }
    client, log = await _client(tmp_path, script)
    result = await client.run_prompt(RunOptions(prompt="hello", cwd=tmp_path))
    assert result == RunResult(
        answer="done",
        thread_id="th-5",
        turn_id="tu-5",
        account=AccountSummary("apiKey", None, False),
    )
    assert client.transport.running is False
    turn_params = _by_method(log, "turn/start")[0]["params"]
    assert turn_params["cwd"] == str(tmp_path)
    assert turn_params["threadId"] == "th-5"