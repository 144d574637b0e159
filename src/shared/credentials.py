"""
Provider API key storage and lookup.

Keys live in the durable key-value store, one value per provider. Lookup
walks an ordered list of credential providers; the first one that returns
a value wins and a provider that has nothing simply returns None.
"""
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple, Union

from src.shared.kv_store import select_store
from src.shared.logging_utils import info as log_info, warning as log_warning
from src.specs.common.enums import CredentialName
from src.specs.common.errors import InputValidationError, MissingCredentialError

NameLike = Union[CredentialName, str]

_STORE_KEYS: Dict[CredentialName, str] = {
    CredentialName.GEMINI: "gemini_api_key",
    CredentialName.WAVESPEED: "wavespeed_api_key",
}

_ENV_VARS: Dict[CredentialName, Tuple[str, ...]] = {
    CredentialName.GEMINI: ("GEMINI_API_KEY", "API_KEY"),
    CredentialName.WAVESPEED: ("WAVESPEED_API_KEY",),
}


def credential_name(name: NameLike) -> CredentialName:
    try:
        return CredentialName(name)
    except ValueError:
        raise InputValidationError(f"Unknown credential provider '{name}'")


def _clean(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


class CredentialStore:
    def __init__(self, store: Any = None) -> None:
        self._store = store if store is not None else select_store()

    def get(self, name: NameLike) -> Optional[str]:
        return _clean(self._store.get(_STORE_KEYS[credential_name(name)]))

    def set(self, name: NameLike, value: str) -> None:
        cred = credential_name(name)
        cleaned = _clean(value)
        if not cleaned:
            raise InputValidationError(f"Please enter a valid {cred.value.capitalize()} API Key")
        self._store.set(_STORE_KEYS[cred], cleaned)
        log_info(None, "credentials:set", provider=cred.value)

    def clear(self, name: NameLike) -> None:
        cred = credential_name(name)
        self._store.delete(_STORE_KEYS[cred])
        log_info(None, "credentials:cleared", provider=cred.value)

    def has(self, name: NameLike) -> bool:
        return self.get(name) is not None


class CredentialProvider(Protocol):
    source: str

    def lookup(self, name: CredentialName) -> Optional[str]:
        ...


class OverrideCredentialProvider:
    """In-memory keys supplied by the caller for a single operation."""

    source = "override"

    def __init__(self, overrides: Optional[Mapping[NameLike, str]] = None) -> None:
        self._values = {credential_name(k): v for k, v in (overrides or {}).items()}

    def lookup(self, name: CredentialName) -> Optional[str]:
        return _clean(self._values.get(name))


class StoredCredentialProvider:
    source = "store"

    def __init__(self, store: CredentialStore) -> None:
        self._store = store

    def lookup(self, name: CredentialName) -> Optional[str]:
        try:
            return self._store.get(name)
        except Exception as exc:
            log_warning(None, "credentials:store_lookup_failed", provider=name.value, error=str(exc))
            return None


class ConfigFileCredentialProvider:
    """Reads ``gemini_api_key`` / ``wavespeed_api_key`` from a JSON file."""

    source = "config_file"

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = path or Path(os.getenv("CREDENTIALS_CONFIG_FILE", "config.json"))

    def lookup(self, name: CredentialName) -> Optional[str]:
        if not self._path.is_file():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            log_warning(None, "credentials:config_file_unreadable", path=str(self._path), error=str(exc))
            return None
        if not isinstance(data, dict):
            return None
        return _clean(data.get(_STORE_KEYS[name]))


class EnvironmentCredentialProvider:
    source = "environment"

    def lookup(self, name: CredentialName) -> Optional[str]:
        for var in _ENV_VARS[name]:
            value = _clean(os.getenv(var))
            if value:
                return value
        return None


class CredentialResolver:
    """Queries credential providers in priority order; first hit wins."""

    def __init__(self, providers: Sequence[CredentialProvider]) -> None:
        self._providers: List[CredentialProvider] = list(providers)

    def resolve(self, name: NameLike) -> Optional[str]:
        value, _ = self.resolve_with_source(name)
        return value

    def resolve_with_source(self, name: NameLike) -> Tuple[Optional[str], Optional[str]]:
        cred = credential_name(name)
        for provider in self._providers:
            value = provider.lookup(cred)
            if value:
                return value, provider.source
        return None, None

    def require(self, name: NameLike) -> str:
        value = self.resolve(name)
        if value is None:
            raise MissingCredentialError(credential_name(name).value)
        return value

    def has(self, name: NameLike) -> bool:
        return self.resolve(name) is not None


def default_resolver(
    store: Optional[CredentialStore] = None,
    overrides: Optional[Mapping[NameLike, str]] = None,
) -> CredentialResolver:
    return CredentialResolver(
        [
            OverrideCredentialProvider(overrides),
            StoredCredentialProvider(store or CredentialStore()),
            ConfigFileCredentialProvider(),
            EnvironmentCredentialProvider(),
        ]
    )
