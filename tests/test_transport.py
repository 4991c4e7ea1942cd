import json
import sys

import pytest

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
    if entry.get("exit"):
        break
    for extra in entry.get("before", []):
        emit(extra if isinstance(extra, str) else json.dumps(extra))
    reply = {"id": message["id"]}
    for key in ("result", "error"):
        if key in entry:
            reply[key] = entry[key]
    emit(json.dumps(reply))
    for extra in entry.get("after", []):
        emit(json.dumps(extra))
'''


async def _spawn(tmp_path, script):
    server = tmp_path / "server.py"
    server.write_text(FAKE_SERVER, encoding="utf-8")
    config = tmp_path / "script.json"
    config.write_text(json.dumps(script), encoding="utf-8")
    log = tmp_path / "log.jsonl"
    transport = await StdioJsonlTransport.spawn(
        sys.executable, [str(server), str(config), str(log)]
    )
    return transport, log


def _sent(log):
    return [json.loads(line) for line in log.read_bytes().splitlines()]


@pytest.mark.asyncio
async def test_request_returns_result_and_ids_increment(tmp_path):
    transport, log = await _spawn(
        tmp_path, {"first": {"result": {"a": 1}}, "second": {"result": [1, 2]}}
    )
    async with transport:
        assert await transport.request("first", {"x": True}) == {"a": 1}
        assert await transport.request("second") == [1, 2]
        sent = _sent(log)
    assert [message["id"] for message in sent] == [0, 1]
    assert sent[0] == {"id": 0, "method": "first", "params": {"x": True}}
    assert sent[1]["params"] is None


@pytest.mark.asyncio
async def test_request_wire_format_is_compact_jsonl(tmp_path):
    transport, log = await _spawn(tmp_path, {})
    async with transport:
        await transport.request("ping", {"a": 1})
        raw = log.read_bytes()
    assert raw == b'{"id":0,"method":"ping","params":{"a":1}}\n'


@pytest.mark.asyncio
async def test_request_skips_unrelated_messages(tmp_path):
    script = {
        "work": {
            "before": [
                {"method": "note", "params": {}},
                {"id": 99, "result": "other"},
                {"id": True, "result": "flag"},
            ],
            "result": "mine",
        }
    }
    transport, _ = await _spawn(tmp_path, script)
    async with transport:
        assert await transport.request("work") == "mine"


@pytest.mark.asyncio
async def test_request_error_raises(tmp_path):
    transport, _ = await _spawn(
        tmp_path, {"boom": {"error": {"code": -1, "message": "bad"}}}
    )
    async with transport:
        with pytest.raises(AppServerError) as info:
            await transport.request("boom")
    assert "app-server request `boom` failed" in str(info.value)
    assert '"message":"bad"' in str(info.value)


@pytest.mark.asyncio
async def test_request_missing_result_raises(tmp_path):
    transport, _ = await _spawn(tmp_path, {"empty": {}})
    async with transport:
        with pytest.raises(AppServerError, match="response missing result"):
            await transport.request("empty")


@pytest.mark.asyncio
async def test_null_result_is_returned_as_none(tmp_path):
    transport, _ = await _spawn(tmp_path, {"nothing": {"result": None}})
    async with transport:
        assert await transport.request("nothing") is None


@pytest.mark.asyncio
async def test_notification_and_response_are_written(tmp_path):
    transport, log = await _spawn(tmp_path, {})
    async with transport:
        await transport.notification("initialized", {})
        await transport.response("req-7", {"decision": "accept"})
        await transport.request("ping")
        sent = _sent(log)
    assert sent[0] == {"method": "initialized", "params": {}}
    assert sent[1] == {"id": "req-7", "result": {"decision": "accept"}}
    assert sent[2]["method"] == "ping"


@pytest.mark.asyncio
async def test_next_message_reads_notifications(tmp_path):
    note = {"method": "item/started", "params": {"n": 3}}
    transport, _ = await _spawn(tmp_path, {"go": {"result": {}, "after": [note]}})
    async with transport:
        await transport.request("go")
        assert await transport.next_message() == note


@pytest.mark.asyncio
async def test_closed_stdout_raises(tmp_path):
    transport, _ = await _spawn(tmp_path, {"quit": {"exit": True}})
    async with transport:
        with pytest.raises(AppServerError, match="closed stdout"):
            await transport.request("quit")


@pytest.mark.asyncio
async def test_invalid_json_line_raises(tmp_path):
    transport, _ = await _spawn(tmp_path, {"garble": {"before": ["not json"], "result": 1}})
    async with transport:
        with pytest.raises(AppServerError, match="invalid app-server JSONL: not json"):
            await transport.request("garble")


@pytest.mark.asyncio
async def test_spawn_missing_command_raises(tmp_path):
    missing = str(tmp_path / "no-such-program")
    with pytest.raises(AppServerError, match="failed to spawn"):
        await StdioJsonlTransport.spawn(missing, [])


@pytest.mark.asyncio
async def test_shutdown_stops_process_and_is_idempotent(tmp_path):
    transport, _ = await _spawn(tmp_path, {})
    assert transport.running is True
    await transport.shutdown()
    assert transport.running is False
    await transport.shutdown()
    assert transport.running is False