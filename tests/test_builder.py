"""Tests for schema inference in TabularGraphBuilder."""

import pytest

from entity_graph.errors import SchemaInferenceError
from entity_graph.graph.models import ConnectionEdge, UserRecord
from entity_graph.tabular import JsonSnapshotCache, TabularGraphBuilder
from entity_graph.tabular.builder import infer_edge_columns, infer_user_columns, score_pair


class TestUsers:
    @pytest.mark.parametrize("shape", ["list", "rows", "reply"])
    def test_nickname_column_found(self, fake_db, social_tables, shape):
        db = fake_db(social_tables, shape=shape)
        builder = TabularGraphBuilder(db, name_columns=["name", "username", "first_name", "nickname"])

        users = builder.build_users()

        assert builder.user_columns == ("id", "nickname")
        assert users == [
            UserRecord(1, "Rafał"),
            UserRecord(2, "Anna"),
            UserRecord(3, "Barbara"),
            UserRecord(4, "Zygfryd"),
        ]
        assert db.queries == [
            "SELECT id, name AS name FROM users WHERE name IS NOT NULL",
            "SELECT id, username AS name FROM users WHERE username IS NOT NULL",
            "SELECT id, first_name AS name FROM users WHERE first_name IS NOT NULL",
            "SELECT id, nickname AS name FROM users WHERE nickname IS NOT NULL",
        ]

    def test_default_candidates_include_nickname(self, fake_db, social_tables):
        builder = TabularGraphBuilder(fake_db(social_tables))
        assert len(builder.build_users()) == 4
        assert builder.user_columns == ("id", "nickname")

    def test_probe_errors_are_skipped(self, fake_db, social_tables):
        db = fake_db(social_tables, raise_on_error=True)
        builder = TabularGraphBuilder(db, name_columns=["name", "nickname"])
        assert len(builder.build_users()) == 4

    def test_rows_with_blank_names_are_dropped(self, fake_db):
        db = fake_db({"users": [{"id": 1, "name": "  "}, {"id": "x", "name": "Bad"}, {"id": 3, "name": "Ok"}]})
        assert TabularGraphBuilder(db).build_users() == [UserRecord(3, "Ok")]

    def test_fallback_full_scan(self, fake_db):
        tables = {
            "users": [
                {"user_id": 10, "age": 31, "handle": "rafal"},
                {"user_id": 11, "age": 40, "handle": "barbara"},
            ]
        }
        db = fake_db(tables)
        builder = TabularGraphBuilder(db, name_columns=["name", "username"])

        users = builder.build_users()

        assert users == [UserRecord(10, "rafal"), UserRecord(11, "barbara")]
        assert builder.user_columns == ("user_id", "handle")
        assert db.queries[-1] == "SELECT * FROM users"

    def test_unrecognized_schema_raises(self, fake_db):
        db = fake_db({"users": [{"a": 1, "b": 2}]})
        with pytest.raises(SchemaInferenceError) as exc:
            TabularGraphBuilder(db, name_columns=["name"]).build_users()
        assert exc.value.stage == "schema_inference"

    def test_missing_table_raises(self, fake_db):
        with pytest.raises(SchemaInferenceError):
            TabularGraphBuilder(fake_db({}), name_columns=["name"]).build_users()

    def test_memoized(self, fake_db, social_tables):
        db = fake_db(social_tables)
        builder = TabularGraphBuilder(db)
        first = builder.build_users()
        n = len(db.queries)
        assert builder.build_users() is first
        assert len(db.queries) == n

    def test_deterministic(self, fake_db, social_tables):
        picks = set()
        for _ in range(3):
            builder = TabularGraphBuilder(fake_db(social_tables))
            builder.build_users()
            builder.build_connections()
            picks.add((builder.user_columns, builder.edge_columns))
        assert picks == {(("id", "nickname"), ("user1_id", "user2_id"))}


class TestConnections:
    def test_first_matching_pair_then_full_fetch(self, fake_db, social_tables):
        db = fake_db(social_tables)
        builder = TabularGraphBuilder(db, probe_limit=2)

        edges = builder.build_connections(users=[])

        assert edges == [ConnectionEdge(1, 2), ConnectionEdge(2, 3), ConnectionEdge(1, 4)]
        assert builder.edge_columns == ("user1_id", "user2_id")
        assert db.queries == [
            "SELECT user1_id AS a, user2_id AS b FROM connections LIMIT 2",
            "SELECT user1_id AS a, user2_id AS b FROM connections",
        ]

    def test_full_fetch_failure_names_the_stage(self, fake_db, social_tables):
        class DroppedConnection(fake_db):
            def execute(self, query_text):
                if " AS a" in query_text and "LIMIT" not in query_text:
                    raise ConnectionError("db unreachable")
                return super().execute(query_text)

        builder = TabularGraphBuilder(DroppedConnection(social_tables))
        with pytest.raises(SchemaInferenceError) as exc:
            builder.build_connections(users=[])
        assert isinstance(exc.value.__cause__, ConnectionError)
        assert builder.edge_columns is None

    def test_later_candidate_pair(self, fake_db):
        db = fake_db({"connections": [{"src": 1, "dst": 2}]}, shape="rows")
        builder = TabularGraphBuilder(db, edge_column_pairs=[("from_id", "to_id"), ("src", "dst")])
        assert builder.build_connections(users=[]) == [ConnectionEdge(1, 2)]
        assert builder.edge_columns == ("src", "dst")

    def test_fallback_scores_against_user_ids(self, fake_db):
        tables = {
            "connections": [
                {"x": 100, "y": 1, "z": 2},
                {"x": 101, "y": 2, "z": 3},
                {"x": 102, "y": 3, "z": 1},
            ]
        }
        db = fake_db(tables)
        users = [UserRecord(1, "A"), UserRecord(2, "B"), UserRecord(3, "C")]
        builder = TabularGraphBuilder(db, edge_column_pairs=[("a", "b")])

        edges = builder.build_connections(users)

        assert builder.edge_columns == ("y", "z")
        assert edges == [ConnectionEdge(1, 2), ConnectionEdge(2, 3), ConnectionEdge(3, 1)]

    def test_fallback_uses_built_users_when_none_given(self, fake_db, social_tables):
        tables = {
            "users": social_tables["users"],
            "connections": [{"id": 1, "left": 1, "right": 2}, {"id": 2, "left": 2, "right": 3}],
        }
        builder = TabularGraphBuilder(fake_db(tables), edge_column_pairs=[])
        edges = builder.build_connections()
        assert builder.edge_columns == ("left", "right")
        assert edges == [ConnectionEdge(1, 2), ConnectionEdge(2, 3)]

    def test_fewer_than_two_integer_columns(self, fake_db):
        db = fake_db({"connections": [{"who": "a", "n": 1}]})
        with pytest.raises(SchemaInferenceError):
            TabularGraphBuilder(db, edge_column_pairs=[]).build_connections(users=[])


class TestInference:
    def test_infer_user_columns_prefers_id_and_candidates(self):
        rows = [{"uid": 5, "id": 1, "email": "a@b", "username": "anna"}]
        assert infer_user_columns(rows, preferred=["username"]) == ("id", "username")
        assert infer_user_columns(rows) == ("id", "email")

    def test_infer_user_columns_none(self):
        assert infer_user_columns([]) is None
        assert infer_user_columns([{"a": "x"}]) is None

    def test_ties_go_to_column_order(self):
        rows = [{"p": 1, "q": 2, "r": 3}]
        assert infer_edge_columns(rows, known_ids=set()) == ("p", "q")

    def test_score_pair(self):
        rows = [{"a": 1, "b": 2}, {"a": 1, "b": 9}, {"a": "x", "b": 2}]
        assert score_pair(rows, "a", "b", {1, 2}) == 1
        assert score_pair(rows, "a", "b", set()) == 2


class TestSnapshotCache:
    def test_round_trip_skips_probing(self, fake_db, social_tables, tmp_path):
        cache = JsonSnapshotCache(tmp_path / "snap")
        builder = TabularGraphBuilder(fake_db(social_tables), cache=cache)
        users = builder.build_users()
        edges = builder.build_connections(users)

        assert (tmp_path / "snap" / "users_name_column.json").exists()

        offline = fake_db({})
        again = TabularGraphBuilder(offline, cache=cache)
        assert again.build_users() == users
        assert again.build_connections() == edges
        assert offline.queries == []

    def test_corrupt_file_is_a_miss(self, tmp_path):
        (tmp_path / "users.json").write_text("{not json", encoding="utf-8")
        assert JsonSnapshotCache(tmp_path).load_users() is None
        assert JsonSnapshotCache(tmp_path).load_connections() is None
