# tests/test_config.py

import pytest

from core.config import load_settings, make_rng

ENV_VARS = ["EXAM_SEED", "EXAM_LOG_LEVEL", "EXAM_LOG_DIR", "EXAM_POOL_PATH", "EXAM_OUTPUT_DIR", "EXAM_VERSIONS"]


@pytest.fixture
def clean_env(monkeypatch):
    # setenv trước để monkeypatch khôi phục trạng thái "không có biến" sau test
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return monkeypatch


def test_defaults(clean_env, tmp_path):
    s = load_settings(tmp_path / "missing.env")

    assert s.seed is None
    assert s.log_level == "INFO"
    assert s.pool_path == "data/pool.json"
    assert s.versions == 1


def test_env_overrides(clean_env, tmp_path):
    clean_env.setenv("EXAM_SEED", "2025")
    clean_env.setenv("EXAM_VERSIONS", "4")
    clean_env.setenv("EXAM_LOG_LEVEL", "debug")

    s = load_settings(tmp_path / "missing.env")
    assert s.seed == 2025
    assert s.versions == 4
    assert s.log_level == "DEBUG"


def test_dotenv_file(clean_env, tmp_path):
    env = tmp_path / ".env"
    env.write_text("EXAM_SEED=7\nEXAM_OUTPUT_DIR=out\n", encoding="utf-8")

    s = load_settings(env)
    assert s.seed == 7
    assert s.output_dir == "out"


def test_bad_values(clean_env, tmp_path):
    clean_env.setenv("EXAM_SEED", "abc")
    with pytest.raises(ValueError, match="EXAM_SEED"):
        load_settings(tmp_path / "missing.env")

    clean_env.setenv("EXAM_SEED", "1")
    clean_env.setenv("EXAM_VERSIONS", "0")
    with pytest.raises(ValueError, match="EXAM_VERSIONS"):
        load_settings(tmp_path / "missing.env")


def test_make_rng():
    assert make_rng(5).random() == make_rng(5).random()
    assert make_rng(None) is not make_rng(None)
