"""tests/test_db.py — E2E tests for FileDatabase (table registry)."""

import threading

import pytest
from linedb.config import DatabaseConfig
from linedb.db import FileDatabase, validate_table_name
from linedb.errors import InvalidTableNameError, RowNotFoundError
from linedb.table_file import TableFile

# Packed lines of the five seeded rows:
#   ["1","2","3"], ["","a","b","c",""], [], [""], ["","","A"]
TEMPLATE_LINES = ["1,2,3", '"",a,b,c,""', "", '""', '"","",A']


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "linedb_data"


@pytest.fixture
def db(data_dir):
    return FileDatabase(DatabaseConfig(location=data_dir, max_rows_in_memory=1000))


@pytest.fixture
def seeded_dir(data_dir):
    data_dir.mkdir(parents=True)
    for name in ("test", "test-update", "test-insert"):
        with open(data_dir / name, "w", encoding="utf-8") as f:
            f.writelines(line + "\n" for line in TEMPLATE_LINES)
    return data_dir


@pytest.fixture
def seeded_db(seeded_dir):
    return FileDatabase(DatabaseConfig(location=seeded_dir))


class TestTableNames:
    @pytest.mark.parametrize("name", ["users", "test-insert", "a.b", "A_1", "x" * 100, "..a"])
    def test_valid_names(self, name):
        assert validate_table_name(name) == name

    @pytest.mark.parametrize("name", ["", "a/b", "../etc", "a b", "t$tmp", "日本", ".", "..", "a\n"])
    def test_invalid_names(self, name, db):
        with pytest.raises(InvalidTableNameError):
            db.get_table(name)

    def test_invalid_name_is_value_error(self, db):
        with pytest.raises(ValueError):
            db.insert("bad/name", ["x"])

    def test_invalid_name_creates_nothing(self, db, data_dir):
        with pytest.raises(InvalidTableNameError):
            db.insert("bad name", ["x"])
        assert not data_dir.exists() or list(data_dir.iterdir()) == []


class TestRegistry:
    def test_get_table_creates_file(self, db, data_dir):
        t = db.get_table("users")
        assert isinstance(t, TableFile)
        assert (data_dir / "users").exists()

    def test_same_instance_per_name(self, db):
        assert db.get_table("users") is db.get_table("users")

    def test_different_tables_are_independent(self, db):
        assert db.insert("users", ["alice"]) == 0
        assert db.insert("products", ["widget"]) == 0
        assert db.insert("users", ["bob"]) == 1
        assert db.select("products", 0) == ["widget"]

    def test_list_tables(self, db):
        db.get_table("b")
        db.get_table("a")
        assert db.list_tables() == ["a", "b"]

    def test_repr_shows_tables(self, db):
        db.get_table("foo")
        assert "foo" in repr(db)

    def test_concurrent_first_access_publishes_one_instance(self, db):
        results = []
        start = threading.Barrier(16, timeout=10)

        def resolve():
            start.wait()
            results.append(db.get_table("race"))

        threads = [threading.Thread(target=resolve) for _ in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)
        assert len(results) == 16
        assert all(r is results[0] for r in results)

    def test_slow_creation_does_not_block_other_tables(self, db, monkeypatch):
        entered = threading.Event()
        release = threading.Event()
        other_done = threading.Event()

        def table_factory(name, filepath, max_rows_in_memory):
            if name == "slow":
                entered.set()
                release.wait(timeout=10)
            return TableFile(name, filepath, max_rows_in_memory)

        monkeypatch.setattr("linedb.db.TableFile", table_factory)
        slow = threading.Thread(target=db.get_table, args=("slow",))
        slow.start()
        assert entered.wait(timeout=5)

        other = threading.Thread(target=lambda: (db.get_table("fast"), other_done.set()))
        other.start()
        try:
            assert other_done.wait(timeout=5)
        finally:
            release.set()
            slow.join(timeout=10)
            other.join(timeout=10)
        assert db.list_tables() == ["fast", "slow"]

    def test_concurrent_inserts_through_registry(self, db):
        n = 64
        ids = []
        lock = threading.Lock()

        def insert(i):
            row_id = db.insert("shared", [str(i)])
            with lock:
                ids.append(row_id)

        threads = [threading.Thread(target=insert, args=(i,)) for i in range(n)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)
        assert sorted(ids) == list(range(n))
        values = sorted(int(db.select("shared", i)[0]) for i in range(n))
        assert values == list(range(n))


class TestSeededScenarios:
    def test_empty_table(self, db):
        with pytest.raises(RowNotFoundError):
            db.select("empty", 0)

    def test_select(self, seeded_db):
        assert seeded_db.select("test", 0) == ["1", "2", "3"]
        assert seeded_db.select("test", 1) == ["", "a", "b", "c", ""]
        assert seeded_db.select("test", 2) == []
        assert seeded_db.select("test", 3) == [""]
        assert seeded_db.select("test", 4) == ["", "", "A"]
        with pytest.raises(RowNotFoundError):
            seeded_db.select("test", 5)

    def test_update(self, seeded_db):
        seeded_db.update("test-update", 0, ["3", "2", "1"])
        assert seeded_db.select("test-update", 0) == ["3", "2", "1"]
        assert seeded_db.select("test-update", 1) == ["", "a", "b", "c", ""]
        assert seeded_db.select("test-update", 2) == []
        assert seeded_db.select("test-update", 3) == [""]
        assert seeded_db.select("test-update", 4) == ["", "", "A"]
        with pytest.raises(RowNotFoundError):
            seeded_db.select("test-update", 5)
        with pytest.raises(RowNotFoundError):
            seeded_db.update("test-update", 5, ["x"])

    def test_insert(self, seeded_db):
        data = ["sadsadgdf", "erwegwg", "1", "2", "3", "", "\n\r \t var\" , \\", ""]
        row_id = seeded_db.insert("test-insert", data)
        assert row_id == 5
        assert seeded_db.select("test-insert", row_id) == data

        assert seeded_db.insert("test-insert", []) == 6
        assert seeded_db.select("test-insert", 6) == []

        assert seeded_db.insert("test-insert", [""]) == 7
        assert seeded_db.select("test-insert", 7) == [""]

        with pytest.raises(RowNotFoundError):
            seeded_db.select("test-insert", 8)

    def test_big_table_update(self, data_dir):
        db = FileDatabase(DatabaseConfig(location=data_dir, max_rows_in_memory=10))
        rows = []
        for i in range(1, 21):
            data = [str(j) for j in range(1, i + 1)]
            assert db.insert("bigtable", data) == i - 1
            rows.append(data)

        new_data = ["A", "B", "C", "D", "E", "F"]
        db.update("bigtable", 10, new_data)
        rows[10] = new_data

        for row_id, data in enumerate(rows):
            assert db.select("bigtable", row_id) == data
        with pytest.raises(RowNotFoundError):
            db.select("bigtable", 20)


class TestRestartPersistence:
    def test_data_survives_new_registry(self, data_dir):
        db1 = FileDatabase(DatabaseConfig(location=data_dir))
        db1.insert("users", ["Alice"])
        db1.insert("users", ["Bob"])
        db1.update("users", 0, ["Alicia"])

        db2 = FileDatabase(DatabaseConfig(location=data_dir))
        assert db2.select("users", 0) == ["Alicia"]
        assert db2.select("users", 1) == ["Bob"]
        assert db2.insert("users", ["Carol"]) == 2
