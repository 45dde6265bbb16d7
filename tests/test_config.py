from pathlib import Path

import pytest

from config import get_config_path, get_migrations_dir, load_config


@pytest.fixture
def home(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    return tmp_path


class TestLoadConfig:
    """Tests for reading ~/.config/spendwatch.toml."""

    def test_creates_default_config(self, home):
        config = load_config()

        assert get_config_path() == home / ".config" / "spendwatch.toml"
        assert get_config_path().exists()
        assert config.db_path == home / "data" / "spendwatch" / "db" / "spendwatch.db"
        assert config.receipts_dir == home / "data" / "spendwatch" / "receipts"
        assert config.receipt_max_attempts == 3
        assert config.job_lease_seconds == 300
        assert config.llm_enabled is False

    def test_reads_values_from_file(self, home):
        config_path = home / ".config" / "spendwatch.toml"
        config_path.parent.mkdir(parents=True)
        config_path.write_text(
            f'base_dir = "{home / "money"}"\n'
            "enable_reset = true\n"
            "[database]\n"
            'filename = "other.db"\n'
            "timeout = 2.5\n"
            "[receipts]\n"
            "max_attempts = 5\n"
            'default_category_budget = "250.00"\n'
            "[jobs]\n"
            "lease_seconds = 60\n"
            "[llm]\n"
            "enabled = true\n"
            'openai_model = "gpt-4o"\n'
        )

        config = load_config()

        assert config.db_path == home / "money" / "db" / "other.db"
        assert config.db_timeout == 2.5
        assert config.receipt_max_attempts == 5
        assert config.default_category_budget == "250.00"
        assert config.job_lease_seconds == 60
        assert config.llm_enabled is True
        assert config.llm_openai_model == "gpt-4o"
        assert config.enable_reset is True

    def test_api_key_from_environment(self, home, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")

        assert load_config().llm_openai_api_key == "sk-env"

    @pytest.mark.parametrize(
        "section",
        [
            "[receipts]\nmax_attempts = 0\n",
            "[receipts]\ndefault_category_budget = \"free\"\n",
            "[database]\ntimeout = 0\n",
            "[jobs]\nlease_seconds = 0\n",
        ],
    )
    def test_rejects_unusable_settings(self, home, section):
        config_path = home / ".config" / "spendwatch.toml"
        config_path.parent.mkdir(parents=True)
        config_path.write_text(section)

        with pytest.raises(ValueError):
            load_config()

    def test_rewritten_defaults_load_back(self, home):
        first = load_config()
        second = load_config()

        assert first == second


def test_migrations_ship_with_the_code():
    migrations = sorted(p.name for p in get_migrations_dir().glob("*.sql"))

    assert migrations[0] == "001_create_categories.sql"
    assert Path(get_migrations_dir()).is_dir()
