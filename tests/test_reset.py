import sqlite3

from scripts.reset import reset


class TestReset:
    """Tests for wiping local data."""

    def test_reset_recreates_empty_database(self, test_config, file_services):
        file_services.categories.create(
            {"name": "Food", "description": "x", "monthly_budget": "10"}
        )
        test_config.receipts_dir.mkdir(parents=True)
        (test_config.receipts_dir / "old.jpg").write_bytes(b"img")
        keep = test_config.base_dir / "notes.txt"
        keep.write_text("mine")

        applied = reset(test_config)

        assert applied == 6
        assert not (test_config.receipts_dir / "old.jpg").exists()
        assert keep.exists()
        with sqlite3.connect(test_config.db_path) as conn:
            assert conn.execute("SELECT COUNT(*) FROM categories").fetchone()[0] == 0
