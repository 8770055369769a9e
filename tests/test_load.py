from omnisearch.core.models import MergedEntity
from omnisearch.etl import load


def test_save_entities_skips_missing_handles_and_counts_failures(monkeypatch):
    upserted = []

    def fake_upsert(row):
        if row["instagram_handle"] == "broken":
            raise RuntimeError("constraint violation")
        upserted.append(row)

    monkeypatch.setattr(load, "init_pool", lambda: None)
    monkeypatch.setattr(load, "upsert_club", fake_upsert)

    entities = [
        MergedEntity(name="Vizag Runners", handle="@VizagRunners", followers="1.2k"),
        MergedEntity(name="Beach Road Cyclists"),
        MergedEntity(name="Broken", handle="broken"),
    ]

    saved, failed = load.save_entities(entities, city="Visakhapatnam")

    assert (saved, failed) == (1, 1)
    assert upserted[0]["instagram_handle"] == "vizagrunners"
    assert upserted[0]["followers"] == 1200
    assert upserted[0]["city"] == "Visakhapatnam"


def test_save_entities_without_database_url_counts_rows_as_failed(monkeypatch):
    from omnisearch.core import config, db

    monkeypatch.setattr(config, "load_dotenv", lambda: None)
    monkeypatch.setenv("DATABASE_URL", "")
    config.get_settings.cache_clear()
    monkeypatch.setattr(db, "_connection_pool", None)

    def fail_upsert(row):
        raise AssertionError("should not upsert without a pool")

    monkeypatch.setattr(load, "upsert_club", fail_upsert)

    entities = [
        MergedEntity(name="Vizag Runners", handle="@vizagrunners"),
        MergedEntity(name="Beach Road Cyclists"),
    ]

    try:
        assert load.save_entities(entities, city="Vizag") == (0, 1)
    finally:
        config.get_settings.cache_clear()
