"""Export from one database and import into another, through the artifact."""

import json

from table_backup.backup.export import export_tables
from table_backup.backup.progress import ThrottledReporter
from table_backup.backup.restore import import_backup
from table_backup.backup.validate import validate_backup

from conftest import FakeDatabase, make_shop


def _quiet() -> ThrottledReporter:
    return ThrottledReporter(sink=lambda message: None)


class TestRoundTrip:
    async def test_customers_and_orders(self, tmp_path) -> None:
        source = make_shop()
        target = make_shop(with_rows=False)
        artifact = tmp_path / "shop.json"

        await export_tables(
            source, artifact, tables=["public.orders", "public.customers"], progress=_quiet()
        )
        assert validate_backup(artifact)["valid"]

        report = await import_backup(target, artifact, progress=_quiet())

        assert report.success
        assert report.order == ["public.customers", "public.orders"]
        assert target.rows("customers") == [
            {"id": 1, "name": "Ada", "active": True, "photo": b"\x89PNG\x00\x01"},
            {"id": 2, "name": "Grace", "active": False, "photo": None},
        ]
        assert [(r["id"], r["customer_id"], str(r["total"])) for r in target.rows("orders")] == [
            (10, 1, "9.99"),
            (11, 1, "20.00"),
            (12, 2, "5.50"),
        ]

    async def test_clobber_restores_snapshot(self, tmp_path) -> None:
        db = make_shop()
        artifact = tmp_path / "shop.json"
        await export_tables(db, artifact, progress=_quiet())

        db.rows("orders").clear()
        db.rows("orders").append({"id": 99, "customer_id": 2, "total": "1.00"})

        report = await import_backup(db, artifact, clobber=True, progress=_quiet())

        assert report.success
        assert sorted(r["id"] for r in db.rows("orders")) == [10, 11, 12]
        assert report.tables["public.orders"].deleted == 1
        assert report.tables["public.customers"].deleted == 2

    async def test_export_without_blobs_restores_empty_binary(self, tmp_path) -> None:
        source = make_shop()
        target = make_shop(with_rows=False)
        artifact = tmp_path / "shop.json"

        await export_tables(
            source, artifact, tables=["public.customers"], include_blobs=False, progress=_quiet()
        )
        assert json.loads(artifact.read_text())["metadata"]["include_blobs"] is False

        await import_backup(target, artifact, progress=_quiet())
        assert target.rows("customers")[0]["photo"] == b""

    async def test_array_and_json_columns(self, tmp_path) -> None:
        columns = [("id", "int4"), ("tags", "text[]"), ("scores", "int4[]"), ("doc", "jsonb")]
        rows = [
            {"id": 1, "tags": ["a", None], "scores": [[1, 2], [3, 4]], "doc": '{"a": 1}'},
            {"id": 2, "tags": [], "scores": None, "doc": {"nested": ["x"]}},
        ]
        source = FakeDatabase()
        source.add_table("notes", columns, primary_key="id", rows=rows)
        target = FakeDatabase()
        target.add_table("notes", columns, primary_key="id")
        artifact = tmp_path / "notes.json"

        await export_tables(source, artifact, progress=_quiet())
        assert validate_backup(artifact)["warnings"] == []
        report = await import_backup(target, artifact, progress=_quiet())

        assert report.success
        restored = target.rows("notes")
        assert [(r["id"], r["tags"], r["scores"]) for r in restored] == [
            (1, ["a", None], [[1, 2], [3, 4]]),
            (2, [], None),
        ]
        # jsonb travels as document text; a JSON string stays a string
        assert [json.loads(r["doc"]) for r in restored] == ['{"a": 1}', {"nested": ["x"]}]
