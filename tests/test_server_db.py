import itertools

import pytest

from harper_dash.errors import ValidationError
from harper_dash.server_db import Database, parse_limit


@pytest.fixture
def db():
    ticks = itertools.count(1000, 1000)
    database = Database(":memory:", clock=lambda: next(ticks))
    yield database
    database.close()


def test_submit_run_returns_the_record(db):
    run = db.submit_run("  Harper ", 12, 12)
    assert run.id == 1
    assert run.player_name == "Harper"
    assert (run.score, run.duration_seconds, run.created_at) == (12, 12, 1000)
    assert run.to_dict()["player_name"] == "Harper"


@pytest.mark.parametrize("name, score, duration", [
    ("", 1, 1),
    ("   ", 1, 1),
    (None, 1, 1),
    ("A", -1, 1),
    ("A", 1, -1),
    ("A", None, 1),
    ("A", 1, None),
    ("A", "10", 1),
    ("A", 1.5, 1),
    ("A", True, 1),
])
def test_submit_run_rejects_bad_input(db, name, score, duration):
    with pytest.raises(ValidationError):
        db.submit_run(name, score, duration)
    assert db.top_runs() == []


def test_zero_score_is_accepted(db):
    assert db.submit_run("A", 0, 0).score == 0


def test_cumulative_leaderboard(db):
    db.submit_run("A", 10, 10)
    db.submit_run("A", 30, 30)
    db.submit_run("B", 25, 25)

    rows = db.cumulative_leaderboard()

    assert [r.player_name for r in rows] == ["A", "B"]
    a, b = rows
    assert (a.total_score, a.run_count, a.best_score, a.last_played_at) == (40, 2, 30, 2000)
    assert (b.total_score, b.run_count, b.best_score, b.last_played_at) == (25, 1, 25, 3000)


def test_cumulative_ties_keep_first_appearance(db):
    db.submit_run("B", 5, 5)
    db.submit_run("A", 5, 5)
    assert [r.player_name for r in db.cumulative_leaderboard()] == ["B", "A"]


def test_top_runs_order_and_limits(db):
    for i in range(12):
        db.submit_run(f"P{i}", i, i)
    db.submit_run("Tie", 11, 11)

    top = db.top_runs()
    assert len(top) == 10
    assert [r.score for r in top[:3]] == [11, 11, 10]
    assert top[0].player_name == "P11"

    assert len(db.top_runs(3)) == 3
    assert len(db.top_runs("abc")) == 10
    assert len(db.top_runs(0)) == 10
    assert len(db.top_runs(-4)) == 10
    assert len(db.top_runs("13")) == 13


def test_player_runs_most_recent_first(db):
    db.submit_run("A", 1, 1)
    db.submit_run("B", 2, 2)
    db.submit_run("A", 3, 3)
    db.submit_run("A", 4, 4)

    runs = db.player_runs("A")
    assert [r.score for r in runs] == [4, 3, 1]
    assert [r.score for r in db.player_runs("A", limit=2)] == [4, 3]
    assert db.player_runs("nobody") == []


def test_player_runs_requires_name(db):
    with pytest.raises(ValidationError):
        db.player_runs("")
    with pytest.raises(ValidationError):
        db.player_runs(None)


def test_runs_survive_reopen(tmp_path):
    path = str(tmp_path / "runs.db")
    first = Database(path)
    first.submit_run("A", 7, 7)
    first.close()

    second = Database(path)
    assert [r.score for r in second.top_runs()] == [7]
    second.close()


@pytest.mark.parametrize("value, expected", [
    (None, 10), ("", 10), ("x", 10), (0, 10), (-1, 10), (True, 10), (5, 5), ("7", 7),
    (250, 100), (10 ** 20, 100), (float("inf"), 10), (float("nan"), 10),
])
def test_parse_limit(value, expected):
    assert parse_limit(value, 10) == expected


def test_counts_must_fit_sqlite_integers(db):
    assert db.submit_run("A", 2 ** 63 - 1, 0).score == 2 ** 63 - 1
    with pytest.raises(ValidationError):
        db.submit_run("A", 2 ** 63, 0)
    with pytest.raises(ValidationError):
        db.submit_run("A", 0, 10 ** 20)
