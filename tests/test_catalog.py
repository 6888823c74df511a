from __future__ import annotations

from conftest import PASSAGE

from typeboard.services.aggregation import EMPTY_SUMMARY
from typeboard.services.catalog import MetadataFilter, count_words, resolve_test_ids
from typeboard.services.leaderboards import recompute_test_summary


def new_test(**overrides):
    body = {
        "title": "Business Communication",
        "content": PASSAGE,
        "difficulty": "medium",
        "category": "business",
        "duration": 75,
        "tags": ["email", " professional "],
    }
    body.update(overrides)
    return body


def test_count_words():
    assert count_words("  one two\tthree\nfour  ") == 4
    assert count_words("   ") == 0


def test_create_test_derives_counts(client):
    response = client.post("/tests", json=new_test())

    assert response.status_code == 201
    test = response.json()
    assert test["word_count"] == len(PASSAGE.split())
    assert test["character_count"] == len(PASSAGE)
    assert test["tags"] == ["email", "professional"]
    assert test["statistics"]["total_attempts"] == 0


def test_create_test_validates_payload(client):
    assert client.post("/tests", json=new_test(content="too short")).status_code == 422
    assert client.post("/tests", json=new_test(duration=5)).status_code == 422
    assert client.post("/tests", json=new_test(difficulty="brutal")).status_code == 422


def test_list_filters_and_hides_inactive(client, make_test):
    make_test("Fox", difficulty="easy", duration=60)
    make_test("Loops", difficulty="hard", category="programming", duration=90)
    make_test("Retired", difficulty="easy", is_active=False)

    everything = client.get("/tests").json()
    hard = client.get("/tests", params={"difficulty": "hard"}).json()
    searched = client.get("/tests", params={"search": "LOO"}).json()

    assert everything["pagination"]["total"] == 2
    assert "content" not in everything["tests"][0]
    assert [test["title"] for test in hard["tests"]] == ["Loops"]
    assert [test["title"] for test in searched["tests"]] == ["Loops"]


def test_get_test_and_random(client, make_test):
    fox = make_test("Fox", duration=60)
    retired = make_test("Retired", is_active=False)

    assert client.get(f"/tests/{fox.id}").json()["test"]["content"] == PASSAGE
    assert client.get(f"/tests/{retired.id}").status_code == 404
    assert client.get("/tests/random", params={"duration": 60}).json()["test"]["id"] == fox.id
    assert client.get("/tests/random", params={"duration": 15}).status_code == 404


def test_distinct_metadata_lists(client, make_test):
    make_test("A", difficulty="hard", category="science", duration=120)
    make_test("B", difficulty="easy", category="general", duration=30)
    make_test("C", difficulty="easy", category="quotes", duration=300, is_active=False)

    assert client.get("/tests/categories").json() == {"categories": ["general", "science"]}
    assert client.get("/tests/difficulties").json() == {"difficulties": ["easy", "hard"]}
    assert client.get("/tests/durations").json() == {"durations": [30, 120]}


def test_resolve_test_ids_includes_inactive_tests(session, make_test):
    live = make_test("Live", difficulty="hard")
    retired = make_test("Retired", difficulty="hard", is_active=False)
    make_test("Easy", difficulty="easy")

    assert resolve_test_ids(session, MetadataFilter()) is None
    assert resolve_test_ids(session, MetadataFilter(difficulty="hard")) == {live.id, retired.id}
    assert resolve_test_ids(session, MetadataFilter(category="quotes")) == set()


def test_unplayed_test_recomputes_to_empty_summary(session, make_test):
    test = make_test()

    assert recompute_test_summary(session, test.id) == EMPTY_SUMMARY
    assert EMPTY_SUMMARY.total_tests == 0
