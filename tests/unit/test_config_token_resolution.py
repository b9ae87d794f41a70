import importlib
import os

def _reload_config_with_env(monkeypatch, env):
    for k in list(os.environ.keys()):
        if k in ("BOT_TOKEN", "TELEGRAM_TOKEN", "PENDING_TTL_SECONDS"):
            monkeypatch.delenv(k, raising=False)
    for k, v in env.items():
        monkeypatch.setenv(k, v)

    # Ensure we reload tzbot.config fresh
    if "tzbot.config" in list(importlib.sys.modules.keys()):
        del importlib.sys.modules["tzbot.config"]
    conf = importlib.import_module("tzbot.config")
    importlib.reload(conf)
    return conf

def test_prefers_bot_token(monkeypatch):
    conf = _reload_config_with_env(monkeypatch, {"BOT_TOKEN": "bot_token_here", "TELEGRAM_TOKEN": "legacy"})
    assert conf.TELEGRAM_TOKEN == "bot_token_here"

def test_falls_back_to_telegram_token(monkeypatch):
    conf = _reload_config_with_env(monkeypatch, {"TELEGRAM_TOKEN": "legacy"})
    assert conf.TELEGRAM_TOKEN == "legacy"

def test_missing_token(monkeypatch):
    conf = _reload_config_with_env(monkeypatch, {})
    assert conf.TELEGRAM_TOKEN == "PUT-YOUR-TOKEN-HERE"

def test_pending_ttl_default_and_override(monkeypatch):
    assert _reload_config_with_env(monkeypatch, {}).PENDING_TTL_SECONDS == 300
    assert _reload_config_with_env(monkeypatch, {"PENDING_TTL_SECONDS": "60"}).PENDING_TTL_SECONDS == 60
    assert _reload_config_with_env(monkeypatch, {"PENDING_TTL_SECONDS": "soon"}).PENDING_TTL_SECONDS == 300
