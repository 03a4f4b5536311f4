"""Tests for the configuration loader."""
import os

from config.loader import ConfigLoader


def _loader(tmp_path):
    return ConfigLoader(env_path=str(tmp_path / "missing.env"))


def test_default_when_unset(tmp_path, monkeypatch):
    monkeypatch.delenv("BT_TEST_PORT", raising=False)
    assert _loader(tmp_path).get("BT_TEST_PORT", 8000) == 8000


def test_env_overrides_with_type(tmp_path, monkeypatch):
    monkeypatch.setenv("BT_TEST_PORT", "9000")
    monkeypatch.setenv("BT_TEST_TIMEOUT", "2.5")
    monkeypatch.setenv("BT_TEST_FLAG", "yes")
    loader = _loader(tmp_path)

    assert loader.get("BT_TEST_PORT", 8000) == 9000
    assert loader.get("BT_TEST_TIMEOUT", 10.0) == 2.5
    assert loader.get("BT_TEST_FLAG", False) is True


def test_unparseable_int_falls_back(tmp_path, monkeypatch):
    monkeypatch.setenv("BT_TEST_PORT", "eighty")
    assert _loader(tmp_path).get("BT_TEST_PORT", 8000) == 8000


def test_home_default_is_expanded(tmp_path, monkeypatch):
    monkeypatch.delenv("BT_TEST_FILE", raising=False)
    value = _loader(tmp_path).get("BT_TEST_FILE", "~/session.json")
    assert not value.startswith("~")


def test_get_list(tmp_path, monkeypatch):
    monkeypatch.setenv("BT_TEST_PATTERNS", " ^a$ , ^b$ ,, ")
    assert _loader(tmp_path).get_list("BT_TEST_PATTERNS", ["x"]) == ["^a$", "^b$"]

    monkeypatch.delenv("BT_TEST_PATTERNS")
    assert _loader(tmp_path).get_list("BT_TEST_PATTERNS", ["x"]) == ["x"]


def test_env_file_is_loaded(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("BT_TEST_FROM_DOTENV=hello\n")
    try:
        loader = ConfigLoader(env_path=str(env_file))
        assert loader.get("BT_TEST_FROM_DOTENV", "default") == "hello"
    finally:
        os.environ.pop("BT_TEST_FROM_DOTENV", None)


def test_get_secret(tmp_path, monkeypatch):
    monkeypatch.setenv("BT_TEST_SECRET", "  s3cret  ")
    assert _loader(tmp_path).get_secret("BT_TEST_SECRET") == "s3cret"

    monkeypatch.delenv("BT_TEST_SECRET")
    assert _loader(tmp_path).get_secret("BT_TEST_SECRET") == ""
