from pathlib import Path

import pytest

from backend.src.services import config as config_module


@pytest.fixture(autouse=True)
def restore_config_cache():
    """
    Ensure configuration cache is cleared between tests.
    """
    config_module.reload_config()
    yield
    config_module.reload_config()


def test_get_config_reads_paths_from_environment(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("STORY_DB_PATH", str(tmp_path / "db" / "stories.db"))
    monkeypatch.setenv("STORY_EXPORT_PATH", str(tmp_path / "exports"))

    cfg = config_module.reload_config()

    assert cfg.database_path == (tmp_path / "db" / "stories.db").resolve()
    assert cfg.export_base_path == (tmp_path / "exports").resolve()
    assert cfg.export_base_path.is_dir()


def test_cors_origins_are_split_and_trimmed(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("STORY_EXPORT_PATH", str(tmp_path))
    monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test ,")

    cfg = config_module.reload_config()

    assert cfg.cors_origins == ["http://a.test", "http://b.test"]


@pytest.mark.parametrize("value, expected", [("false", False), ("0", False), ("yes", True)])
def test_seed_flag(monkeypatch, tmp_path: Path, value: str, expected: bool) -> None:
    monkeypatch.setenv("STORY_EXPORT_PATH", str(tmp_path))
    monkeypatch.setenv("SEED_DEMO_STORY", value)

    assert config_module.reload_config().seed_demo_story is expected


def test_get_config_rejects_empty_path(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("STORY_EXPORT_PATH", str(tmp_path))
    monkeypatch.setenv("STORY_DB_PATH", "")

    with pytest.raises(ValueError):
        config_module.reload_config()
