import json

import pytest

from sparkybot.config.manager import ConfigManager

ENV_VARS = list(ConfigManager.ENV_MAPPINGS)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.mark.asyncio
async def test_defaults_without_file(tmp_path):
    config = ConfigManager(str(tmp_path / "missing.yaml"), load_env_file=False)
    await config.load()
    assert config.get("skills.store") == "auto"
    assert config.get("routing.use_ai") is False
    assert config.get("routing.preview_chars") == 100
    assert config.get("web.port") == 8080
    assert config.get("nope.nothing", "dflt") == "dflt"


@pytest.mark.asyncio
async def test_yaml_file_merges_over_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("routing:\n  use_ai: true\nskills:\n  store: file\n", encoding="utf-8")

    config = ConfigManager(str(path), load_env_file=False)
    await config.load()
    assert config.get("routing.use_ai") is True
    assert config.get("routing.ai_timeout_seconds") == 20.0
    assert config.get("skills.store") == "file"
    assert config.get("skills.file_path") == "config/skills.yaml"


@pytest.mark.asyncio
async def test_bad_file_keeps_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")

    config = ConfigManager(str(path), load_env_file=False)
    await config.load()
    assert config.get("skills.store") == "auto"


@pytest.mark.asyncio
async def test_env_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("SPARKY_USE_AI_ROUTING", "yes")
    monkeypatch.setenv("SUPABASE_URL", "https://project.supabase.co")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")
    monkeypatch.setenv("PORT", "9000")

    config = ConfigManager(str(tmp_path / "config.yaml"), load_env_file=False)
    await config.load()
    assert config.get("routing.use_ai") is True
    assert config.get("supabase.url") == "https://project.supabase.co"
    assert config.get("supabase.key") == "anon"
    assert config.get("web.port") == 9000


@pytest.mark.asyncio
async def test_bad_env_value_is_ignored(tmp_path, monkeypatch):
    monkeypatch.setenv("PORT", "not-a-port")
    config = ConfigManager(str(tmp_path / "config.yaml"), load_env_file=False)
    await config.load()
    assert config.get("web.port") == 8080


@pytest.mark.asyncio
async def test_set_and_save_json(tmp_path):
    path = tmp_path / "nested" / "config.json"
    config = ConfigManager(str(path), load_env_file=False)
    await config.load()
    config.set("approval.ttl_seconds", 60)
    config.set("extra.deep.value", "x")
    await config.save()

    saved = json.loads(path.read_text(encoding="utf-8"))
    assert saved["approval"]["ttl_seconds"] == 60
    assert saved["extra"]["deep"]["value"] == "x"

    reloaded = ConfigManager(str(path), load_env_file=False)
    await reloaded.load()
    assert reloaded.get("approval.ttl_seconds") == 60


def test_all_returns_a_copy():
    config = ConfigManager(load_env_file=False)
    snapshot = config.all
    snapshot["routing"]["use_ai"] = True
    assert config.get("routing.use_ai") is False
