import json

import pytest

from src.shared.credentials import (
    ConfigFileCredentialProvider,
    CredentialResolver,
    CredentialStore,
    EnvironmentCredentialProvider,
    OverrideCredentialProvider,
    StoredCredentialProvider,
    default_resolver,
)
from src.shared.kv_store import FileKeyValueStore
from src.specs.common.enums import CredentialName
from src.specs.common.errors import InputValidationError, MissingCredentialError


@pytest.fixture
def store(tmp_path):
    return CredentialStore(FileKeyValueStore(tmp_path / "kv.json"))


def test_set_trims_and_overwrites(store):
    store.set("gemini", "  first  ")
    store.set("gemini", "second")
    assert store.get(CredentialName.GEMINI) == "second"
    assert store.has("gemini")
    assert not store.has("wavespeed")


def test_empty_value_is_rejected(store):
    with pytest.raises(InputValidationError):
        store.set("gemini", "   ")


def test_clear(store):
    store.set("wavespeed", "ws-key")
    store.clear("wavespeed")
    assert store.get("wavespeed") is None


def test_resolver_first_hit_wins(store, tmp_path, monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "from-env")
    config = tmp_path / "config.json"
    config.write_text(json.dumps({"gemini_api_key": "from-file"}))
    resolver = CredentialResolver(
        [StoredCredentialProvider(store), ConfigFileCredentialProvider(config), EnvironmentCredentialProvider()]
    )
    assert resolver.resolve_with_source("gemini") == ("from-file", "config_file")
    store.set("gemini", "from-store")
    assert resolver.resolve_with_source("gemini") == ("from-store", "store")


def test_override_beats_everything(store, monkeypatch):
    monkeypatch.setenv("WAVESPEED_API_KEY", "env")
    store.set("wavespeed", "stored")
    resolver = default_resolver(store, overrides={"wavespeed": "request"})
    assert resolver.resolve("wavespeed") == "request"


def test_api_key_alias_for_gemini(monkeypatch):
    monkeypatch.setenv("API_KEY", "alias")
    assert EnvironmentCredentialProvider().lookup(CredentialName.GEMINI) == "alias"


def test_miss_is_none_and_require_raises(store):
    resolver = default_resolver(store)
    assert resolver.resolve("gemini") is None
    assert not resolver.has("gemini")
    with pytest.raises(MissingCredentialError) as info:
        resolver.require("gemini")
    assert info.value.code == "MISSING_CREDENTIAL"
    assert "Gemini API Key not found" in str(info.value)


def test_unknown_provider_name(store):
    with pytest.raises(InputValidationError):
        store.get("openai")


def test_override_ignores_blank_values():
    assert OverrideCredentialProvider({"gemini": " "}).lookup(CredentialName.GEMINI) is None
