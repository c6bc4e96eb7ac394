"""Request dispatch of the results server (no sockets involved)."""
import json

import pytest

from harper_dash.server import RunnerServer
from harper_dash.server_db import Database


@pytest.fixture
def server():
    return RunnerServer(db=Database(":memory:"), discovery=False)


def send(server, message):
    return server.dispatch(json.dumps(message).encode("utf-8"))


def test_submit_run(server):
    reply = send(server, {"type": "submit_run", "player_name": "Harper", "score": 9, "duration_seconds": 9})
    assert reply["type"] == "run_created"
    assert reply["run"]["player_name"] == "Harper"
    assert reply["run"]["score"] == 9


def test_rejected_submission(server):
    reply = send(server, {"type": "submit_run", "player_name": "", "score": 9, "duration_seconds": 9})
    assert reply["type"] == "submit_failed"
    assert "player_name" in reply["message"]

    reply = send(server, {"type": "submit_run", "player_name": "A", "score": -3, "duration_seconds": 1})
    assert reply["type"] == "submit_failed"

    reply = send(server, {"type": "submit_run", "player_name": "A"})
    assert reply["type"] == "submit_failed"


def test_leaderboard_queries(server):
    for name, score in [("A", 10), ("A", 30), ("B", 25)]:
        send(server, {"type": "submit_run", "player_name": name, "score": score, "duration_seconds": score})

    top = send(server, {"type": "top_runs", "limit": 2})
    assert top["type"] == "top_runs"
    assert [r["score"] for r in top["runs"]] == [30, 25]

    cumulative = send(server, {"type": "leaderboard_cumulative"})
    assert [(p["player_name"], p["total_score"], p["run_count"], p["best_score"])
            for p in cumulative["players"]] == [("A", 40, 2, 30), ("B", 25, 1, 25)]

    history = send(server, {"type": "player_runs", "player_name": "A"})
    assert history["player_name"] == "A"
    assert len(history["runs"]) == 2


def test_player_runs_without_name(server):
    reply = send(server, {"type": "player_runs"})
    assert reply == {"type": "request_failed", "message": "player_name required"}


@pytest.mark.parametrize("payload", [b"not json", b"\xff\xfe", b"[1, 2]"])
def test_malformed_requests(server, payload):
    assert server.dispatch(payload)["type"] == "unknown_message"


def test_unknown_type(server):
    reply = send(server, {"type": "delete_everything"})
    assert reply["type"] == "unknown_message"
    assert "delete_everything" in reply["message"]


def test_address_requires_start(server):
    with pytest.raises(RuntimeError):
        server.address


@pytest.mark.parametrize("msg_type", [[], {"a": 1}, 5, None])
def test_non_string_type_is_unknown(server, msg_type):
    assert send(server, {"type": msg_type})["type"] == "unknown_message"


@pytest.mark.parametrize("field", ["score", "duration_seconds"])
def test_oversized_counts_are_rejected(server, field):
    message = {"type": "submit_run", "player_name": "A", "score": 1, "duration_seconds": 1}
    message[field] = 10 ** 20
    reply = send(server, message)
    assert reply["type"] == "submit_failed"
    assert "too large" in reply["message"]


@pytest.mark.parametrize("payload", [
    b'{"type": "top_runs", "limit": 100000000000000000000}',
    b'{"type": "top_runs", "limit": 1e400}',
    b'{"type": "leaderboard_cumulative", "limit": -100000000000000000000}',
    b'{"type": "player_runs", "player_name": "A", "limit": 100000000000000000000}',
])
def test_oversized_limits_still_answer(server, payload):
    send(server, {"type": "submit_run", "player_name": "A", "score": 1, "duration_seconds": 1})
    reply = server.dispatch(payload)
    assert reply["type"] in ("top_runs", "leaderboard_cumulative", "player_runs")


def test_request_id_is_echoed(server):
    reply = send(server, {"type": "top_runs", "request_id": 7})
    assert reply["request_id"] == 7
    reply = send(server, {"type": "nope", "request_id": 8})
    assert reply == {"type": "unknown_message", "message": "Unknown message type: 'nope'", "request_id": 8}
    assert "request_id" not in send(server, {"type": "top_runs"})
