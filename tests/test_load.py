"""
Bulk Loader: test_load.py

binds.py:
  - one DB_TYPE_VARCHAR per column; zero columns rejected

error_logging.py:
  - appends one line per failure with source, table, ORA code
  - ORA-UNKNOWN fallback; count_errors_in_log

bulk_loader.load:
  - rows land in file order with positional values
  - one connection, one commit, cursor closed, connection released
  - executemany chunked by config.batch_size inside one transaction
  - setinputsizes called before every executemany
  - zero data rows → NoDataError, no connection acquired, table stays empty
  - misaligned row (short or long) → AlignmentError, rollback, zero rows
  - misaligned row in a later chunk still rolls back earlier chunks
  - driver error → LoadError chained to oracledb error, rollback, zero rows
  - commit failure → LoadError, rollback
  - failures appended to the load error log
  - source file deleted after success and after every failure
  - a failed delete after commit raises; after a failure it is only logged
  - values keep their whitespace; one-column blank lines load as ""
"""

from __future__ import annotations

import oracledb
import pytest

from csvload.configs.config import PipelineConfig
from csvload.configs.exceptions import (
    AlignmentError,
    IngestionError,
    LoadError,
    NoDataError,
    SourceError,
)
from csvload.discovery.materializer import materialize
from csvload.loaders.binds import build_input_sizes
from csvload.loaders.bulk_loader import LoadResult, collect_rows, load
from csvload.loaders.error_logging import (
    LOG_FILENAME,
    count_errors_in_log,
    extract_ora_code,
    log_load_error,
)
from tests.fixtures.csv_files import write_csv
from tests.fixtures.oracle_mocks import FakeDatabase, FakePool


# ============================================================================
# Helpers
# ============================================================================

def prepare(tmp_path, pool, config, rows, table="people", name="data.csv"):
    """Write the CSV, materialize it, return (path, column_names)."""
    path = write_csv(tmp_path / name, rows)
    columns = materialize(path, table, pool=pool, config=config)
    return path, columns


# ============================================================================
# binds.py
# ============================================================================

class TestBuildInputSizes:
    def test_one_varchar_per_column(self):
        assert build_input_sizes(3) == [oracledb.DB_TYPE_VARCHAR] * 3

    def test_zero_columns_rejected(self):
        with pytest.raises(ValueError):
            build_input_sizes(0)


# ============================================================================
# error_logging.py
# ============================================================================

class TestErrorLogging:
    def test_creates_log_file(self, tmp_path):
        err = oracledb.DatabaseError("ORA-12899: value too large for column")
        log_path = log_load_error(err, "/up/contacts.csv", "CONTACTS", tmp_path / "err")
        assert log_path.name == LOG_FILENAME
        content = log_path.read_text()
        assert "source=contacts.csv" in content
        assert "table=CONTACTS" in content
        assert "ora_code=ORA-12899" in content

    def test_appends(self, tmp_path):
        log_load_error(ValueError("one"), "a.csv", "T", tmp_path)
        log_load_error(ValueError("two"), "b.csv", "T", tmp_path)
        assert count_errors_in_log(tmp_path) == 2

    def test_multiline_message_kept_on_one_line(self, tmp_path):
        log_load_error(ValueError("line one\nline two"), "a.csv", "T", tmp_path)
        assert count_errors_in_log(tmp_path) == 1

    def test_unknown_ora_code(self):
        assert extract_ora_code("Row 2 has 1 fields, expected 2.") == "ORA-UNKNOWN"

    def test_count_zero_when_absent(self, tmp_path):
        assert count_errors_in_log(tmp_path) == 0


# ============================================================================
# load — success
# ============================================================================

class TestLoad:
    def test_two_rows_in_order(self, tmp_path, pool, db, config):
        path, columns = prepare(tmp_path, pool, config, [["A", "B"], ["x", "1"], ["y", "2"]])
        result = load(path, "people", columns, pool=pool, config=config)

        assert result == LoadResult(table_name="PEOPLE", rows_loaded=2, batches=1)
        table = db.table("PEOPLE")
        assert table.values() == [("x", "1"), ("y", "2")]
        assert [row[0] for row in table.rows] == [1, 2]

    def test_insert_statement(self, tmp_path, pool, config):
        path, columns = prepare(tmp_path, pool, config, [["First Name", "Age"], ["Ann", "30"]])
        load(path, "people", columns, pool=pool, config=config)
        cursor = pool.last_connection.cursor_obj
        sql, rows = cursor.executemany_calls[0]
        assert sql == 'INSERT INTO PEOPLE ("first_name", "age")\nVALUES (:1, :2)'
        assert rows == [("Ann", "30")]

    def test_connection_and_transaction(self, tmp_path, pool, config):
        path, columns = prepare(tmp_path, pool, config, [["A"], ["1"]])
        load(path, "people", columns, pool=pool, config=config)

        conn = pool.last_connection
        assert len(pool.connections) == 2  # materialize + load
        assert pool.outstanding == 0
        assert conn.commits == 1
        assert conn.rollbacks == 0
        assert conn.cursor_obj.closed is True

    def test_chunks_share_one_transaction(self, tmp_path, pool, db):
        config = PipelineConfig(error_dir=tmp_path / "error", batch_size=2)
        rows = [["N"]] + [[str(i)] for i in range(5)]
        path, columns = prepare(tmp_path, pool, config, rows)

        result = load(path, "people", columns, pool=pool, config=config)

        conn = pool.last_connection
        cursor = conn.cursor_obj
        assert [len(r) for _, r in cursor.executemany_calls] == [2, 2, 1]
        assert result.batches == 3
        assert result.rows_loaded == 5
        assert conn.commits == 1
        assert db.table("PEOPLE").values() == [(str(i),) for i in range(5)]

    def test_input_sizes_before_each_chunk(self, tmp_path, pool):
        config = PipelineConfig(error_dir=tmp_path / "error", batch_size=1)
        path, columns = prepare(tmp_path, pool, config, [["A", "B"], ["1", "2"], ["3", "4"]])
        load(path, "people", columns, pool=pool, config=config)
        cursor = pool.last_connection.cursor_obj
        assert cursor.input_sizes == [(oracledb.DB_TYPE_VARCHAR,) * 2] * 2

    def test_empty_strings_kept_positionally(self, tmp_path, pool, db, config):
        path, columns = prepare(tmp_path, pool, config, [["A", "B", "C"], ["", "mid", ""]])
        load(path, "people", columns, pool=pool, config=config)
        assert db.table("PEOPLE").values() == [("", "mid", "")]

    def test_values_stored_as_written(self, tmp_path, pool, db, config):
        path = tmp_path / "spaced.csv"
        path.write_text("A,B\nx, 1\ny,  2\n", encoding="utf-8")
        columns = materialize(path, "people", pool=pool, config=config)
        load(path, "people", columns, pool=pool, config=config)
        assert db.table("PEOPLE").values() == [("x", " 1"), ("y", "  2")]

    def test_single_column_blank_line_loads_empty_value(self, tmp_path, pool, db, config):
        path = tmp_path / "notes.csv"
        path.write_text("Note\r\nfirst\r\n\r\nthird\r\n", encoding="utf-8")
        columns = materialize(path, "notes", pool=pool, config=config)
        load(path, "notes", columns, pool=pool, config=config)
        assert db.table("NOTES").values() == [("first",), ("",), ("third",)]

    def test_source_deleted_on_success(self, tmp_path, pool, config):
        path, columns = prepare(tmp_path, pool, config, [["A"], ["1"]])
        load(path, "people", columns, pool=pool, config=config)
        assert not path.exists()

    def test_collect_rows(self, tmp_path):
        path = write_csv(tmp_path / "a.csv", [["A", "B"], ["x", "1"], ["y", "2"]])
        assert collect_rows(path) == [["x", "1"], ["y", "2"]]
        assert path.exists()


# ============================================================================
# load — failures
# ============================================================================

class TestLoadNoData:
    def test_header_only(self, tmp_path, pool, db, config):
        path, columns = prepare(tmp_path, pool, config, [["First Name", "Age"]])
        connections_before = len(pool.connections)

        with pytest.raises(NoDataError, match="No data found in CSV"):
            load(path, "people", columns, pool=pool, config=config)

        assert len(pool.connections) == connections_before
        table = db.table("PEOPLE")
        assert table.column_names() == ["id", "first_name", "age"]
        assert table.rows == []
        assert not path.exists()

    def test_no_data_is_load_error(self):
        assert issubclass(NoDataError, LoadError)


class TestLoadAlignment:
    @pytest.mark.parametrize("bad_row", [["only-one"], ["a", "b", "c"]])
    def test_misaligned_row_rolls_back(self, tmp_path, pool, db, config, bad_row):
        path, columns = prepare(
            tmp_path, pool, config, [["A", "B"], ["x", "1"], bad_row, ["y", "2"]]
        )
        with pytest.raises(AlignmentError) as exc_info:
            load(path, "people", columns, pool=pool, config=config)

        err = exc_info.value
        assert err.row_number == 2
        assert err.expected == 2
        assert err.got == len(bad_row)
        conn = pool.last_connection
        assert conn.rollbacks == 1
        assert conn.commits == 0
        assert db.table("PEOPLE").rows == []
        assert pool.outstanding == 0
        assert not path.exists()

    def test_later_chunk_rolls_back_earlier_chunks(self, tmp_path, pool, db):
        config = PipelineConfig(error_dir=tmp_path / "error", batch_size=2)
        rows = [["A", "B"], ["1", "1"], ["2", "2"], ["3", "3"], ["bad"]]
        path, columns = prepare(tmp_path, pool, config, rows)

        with pytest.raises(AlignmentError):
            load(path, "people", columns, pool=pool, config=config)

        cursor = pool.last_connection.cursor_obj
        assert len(cursor.executemany_calls) == 1
        assert db.table("PEOPLE").rows == []

    def test_alignment_failure_logged(self, tmp_path, pool, config):
        path, columns = prepare(tmp_path, pool, config, [["A", "B"], ["x"]])
        with pytest.raises(AlignmentError):
            load(path, "people", columns, pool=pool, config=config)
        assert count_errors_in_log(config.error_dir) == 1
        assert "ORA-UNKNOWN" in (config.error_dir / LOG_FILENAME).read_text()


class TestLoadDriverErrors:
    def test_insert_error_rolls_back(self, tmp_path, config):
        db = FakeDatabase(fail_on_value={"boom": "ORA-12899: value too large for column"})
        pool = FakePool(db)
        path, columns = prepare(tmp_path, pool, config, [["A"], ["ok"], ["boom"]])

        with pytest.raises(LoadError) as exc_info:
            load(path, "people", columns, pool=pool, config=config)

        assert "ORA-12899" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, oracledb.DatabaseError)
        assert exc_info.value.table_name == "PEOPLE"
        assert db.table("PEOPLE").rows == []
        assert pool.last_connection.rollbacks == 1
        assert pool.outstanding == 0
        assert not path.exists()
        assert "ORA-12899" in (config.error_dir / LOG_FILENAME).read_text()

    def test_missing_table(self, tmp_path, pool, config):
        path = write_csv(tmp_path / "a.csv", [["A"], ["1"]])
        with pytest.raises(LoadError, match="ORA-00942"):
            load(path, "never_created", ["a"], pool=pool, config=config)
        assert not path.exists()

    def test_commit_failure(self, tmp_path, config):
        db = FakeDatabase()
        setup_pool = FakePool(db)
        path, columns = prepare(tmp_path, setup_pool, config, [["A"], ["1"]])

        pool = FakePool(db, fail_commit="ORA-03113: end-of-file on communication channel")
        with pytest.raises(LoadError, match="ORA-03113"):
            load(path, "people", columns, pool=pool, config=config)

        assert pool.last_connection.rollbacks == 1
        assert db.table("PEOPLE").rows == []
        assert not path.exists()

    def test_acquire_failure_still_deletes_source(self, tmp_path, config):
        path = write_csv(tmp_path / "a.csv", [["A"], ["1"]])
        pool = FakePool(fail_acquire="ORA-12541: TNS:no listener")
        with pytest.raises(IngestionError, match="ORA-12541"):
            load(path, "people", ["a"], pool=pool, config=config)
        assert not path.exists()

    def test_source_already_gone(self, tmp_path, pool, config):
        path = tmp_path / "gone.csv"
        with pytest.raises(SourceError):
            load(path, "people", ["a"], pool=pool, config=config)


class TestLoadSourceCleanup:
    @staticmethod
    def _undeletable(monkeypatch):
        def refuse(path):
            raise IngestionError(f"Failed to remove source file {path}: permission denied")

        monkeypatch.setattr("csvload.loaders.bulk_loader.remove_source_file", refuse)

    def test_delete_failure_after_commit_raises(self, tmp_path, pool, db, config, monkeypatch):
        path, columns = prepare(tmp_path, pool, config, [["A"], ["1"]])
        self._undeletable(monkeypatch)

        with pytest.raises(IngestionError, match="permission denied"):
            load(path, "people", columns, pool=pool, config=config)

        assert db.table("PEOPLE").values() == [("1",)]
        assert path.exists()

    def test_delete_failure_after_rollback_keeps_original_error(
        self, tmp_path, pool, db, config, monkeypatch
    ):
        path, columns = prepare(tmp_path, pool, config, [["A", "B"], ["x"]])
        self._undeletable(monkeypatch)

        with pytest.raises(AlignmentError):
            load(path, "people", columns, pool=pool, config=config)
        assert db.table("PEOPLE").rows == []
