import sys
from datetime import date
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import pytest
from sqlalchemy.exc import OperationalError

from db.repository import UserRepository
from tracker.errors import PersistenceError, UserNotFound
from tracker.exercise_schema import Exercise, ExerciseCreate, LogQuery, UserCreate
from tracker.get_log import get_user_log
from tracker.log_exercise import append_exercise
from tracker.users import find_user, list_users, register_user


@pytest.fixture()
def repo(tmp_path):
    # Use a temporary database for isolation
    repo = UserRepository.from_url(f"sqlite:///{tmp_path / 'tracker.db'}")
    yield repo
    repo.close()


def test_repo_roundtrip(repo):
    user = repo.create("ada")
    user.add_exercise(Exercise(description="swim", duration=40, date=date(2024, 1, 1)))
    repo.save(user)

    loaded = repo.find_by_id(user.id)
    assert loaded is not None
    assert loaded.username == "ada"
    assert loaded.count == 1
    assert loaded.log[0].date == date(2024, 1, 1)
    assert loaded.log[0].model_dump(mode="json")["date"] == "Mon Jan 01 2024"


def test_find_by_unknown_id_returns_none(repo):
    assert repo.find_by_id("0" * 32) is None


def test_find_lists_users_and_filters_by_name(repo):
    a = repo.create("ada")
    b = repo.create("bob")
    assert {u.id for u in repo.find()} == {a.id, b.id}
    assert [u.id for u in repo.find(username="bob")] == [b.id]


def test_save_replaces_nested_log(repo):
    user = repo.create("ada")
    for day in (3, 1, 2):
        user.add_exercise(Exercise(description=f"day {day}", duration=day, date=date(2024, 1, day)))
        repo.save(user)
    loaded = repo.find_by_id(user.id)
    assert [e.description for e in loaded.log] == ["day 3", "day 1", "day 2"]
    assert loaded.count == len(loaded.log) == 3


def test_register_and_find_user(repo):
    user = register_user(repo, UserCreate(username="carol"))
    assert find_user(repo, user.id).username == "carol"
    assert [u.username for u in list_users(repo)] == ["carol"]
    with pytest.raises(UserNotFound):
        find_user(repo, "missing")


def test_append_exercise_increments_count_and_appends_to_tail(repo):
    user = register_user(repo, UserCreate(username="dan"))
    append_exercise(repo, user.id, ExerciseCreate(description="first", duration=10, date="2024-01-02"))

    saved, exercise = append_exercise(
        repo, user.id, ExerciseCreate(description="second", duration="25"), today=date(2024, 1, 1)
    )
    assert exercise.date == date(2024, 1, 1)
    assert saved.count == 2

    stored = repo.find_by_id(user.id)
    assert stored.count == 2
    assert [e.description for e in stored.log] == ["first", "second"]
    assert stored.log[-1].duration == 25


def test_append_exercise_unknown_user(repo):
    with pytest.raises(UserNotFound):
        append_exercise(repo, "missing", ExerciseCreate(description="x", duration=1))


def test_get_user_log_document_and_envelope(repo):
    user = register_user(repo, UserCreate(username="eve"))
    for day in (1, 5, 10):
        append_exercise(repo, user.id, ExerciseCreate(description=f"jan {day}", duration=day, date=f"2024-01-{day:02d}"))

    doc = get_user_log(repo, user.id)
    assert doc["count"] == 3 and len(doc["log"]) == 3

    envelope = get_user_log(repo, user.id, LogQuery(date_from="2024-01-03"))
    assert envelope["username"] == "eve"
    assert envelope["id"] == user.id
    assert envelope["count"] == 3
    assert [e["date"] for e in envelope["log"]] == ["Fri Jan 05 2024", "Wed Jan 10 2024"]


def test_store_failure_raises_persistence_error(repo, monkeypatch):
    user = repo.create("frank")

    def broken_get(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr("sqlalchemy.orm.Session.get", broken_get)
    with pytest.raises(PersistenceError):
        repo.find_by_id(user.id)


def test_failed_save_propagates_without_logging_twice(repo, monkeypatch, caplog):
    user = register_user(repo, UserCreate(username="gail"))

    def broken_save(u):
        raise PersistenceError("write rejected")

    monkeypatch.setattr(repo, "save", broken_save)
    with caplog.at_level("DEBUG", logger="tracker"):
        with pytest.raises(PersistenceError):
            append_exercise(repo, user.id, ExerciseCreate(description="x", duration=1))
    assert not [r for r in caplog.records if r.name == "tracker.log_exercise" and r.levelname == "ERROR"]
