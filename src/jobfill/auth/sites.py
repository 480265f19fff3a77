"""Known-site registry and login strategy selection."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, Sequence
from urllib.parse import urlparse

import yaml

from jobfill import config

log = logging.getLogger(__name__)

GENERIC = "generic"


@dataclass(frozen=True)
class KnownSite:
    key: str
    domain: str
    login_url: str
    login_url_marker: str
    username_selectors: tuple[str, ...]
    password_selectors: tuple[str, ...]
    submit_selectors: tuple[str, ...]
    logged_in_marker: str
    session_cookie: str
    two_step: bool = False

    @classmethod
    def from_config(cls, key: str, data: Mapping) -> "KnownSite":
        return cls(
            key=key,
            domain=data["domain"],
            login_url=data["login_url"],
            login_url_marker=data.get("login_url_marker") or data["login_url"],
            username_selectors=tuple(data.get("username", ())),
            password_selectors=tuple(data.get("password", ())),
            submit_selectors=tuple(data.get("submit", ())),
            logged_in_marker=data["logged_in_marker"],
            session_cookie=data["session_cookie"],
            two_step=bool(data.get("two_step", False)),
        )


def _parse_sites(data: Optional[Mapping]) -> dict[str, KnownSite]:
    if not data or "sites" not in data:
        return {}
    return {key: KnownSite.from_config(key, entry) for key, entry in (data.get("sites") or {}).items()}


def load_sites() -> dict[str, KnownSite]:
    """Load the known-site registry.

    Tries user config first (~/.jobfill/sites.yaml),
    falls back to package config.
    """
    user_path = config.APP_DIR / "sites.yaml"
    if user_path.exists():
        log.info("Loading user site registry from %s", user_path)
        try:
            sites = _parse_sites(yaml.safe_load(user_path.read_text(encoding="utf-8")))
            if sites:
                return sites
        except (yaml.YAMLError, KeyError, TypeError) as e:
            log.warning("Failed to load user site registry: %s", e)

    package_path = config.CONFIG_DIR / "sites.yaml"
    if not package_path.exists():
        log.warning("sites.yaml not found at %s", package_path)
        return {}

    try:
        return _parse_sites(yaml.safe_load(package_path.read_text(encoding="utf-8")))
    except (yaml.YAMLError, KeyError, TypeError) as e:
        log.error("Failed to load package site registry: %s", e)
        return {}


def host_of(url: str) -> str:
    host = (urlparse(url).hostname or "").lower()
    return host[4:] if host.startswith("www.") else host


def _host_contains(domain: str) -> Callable[[str], bool]:
    return lambda host: domain in host


def strategy_table(registry: Mapping[str, KnownSite]) -> list[tuple[Callable[[str], bool], str]]:
    """Ordered ``(predicate, strategy)`` pairs over host names, in registry order."""
    return [(_host_contains(site.domain), key) for key, site in registry.items()]


def select_strategy(url: str, registry: Mapping[str, KnownSite]) -> str:
    """Key of the first known site whose domain occurs in the URL's host, else ``generic``."""
    host = host_of(url)
    for predicate, strategy in strategy_table(registry):
        if predicate(host):
            return strategy
    return GENERIC


def session_key(url: str, registry: Mapping[str, KnownSite]) -> str:
    """Registry domain for known sites, the bare host name otherwise."""
    strategy = select_strategy(url, registry)
    if strategy != GENERIC:
        return registry[strategy].domain
    return host_of(url)


def credential_keys(url: str, registry: Mapping[str, KnownSite]) -> Sequence[str]:
    """Keys under which a Credential for ``url`` may be stored, most specific first."""
    strategy = select_strategy(url, registry)
    host = host_of(url)
    if strategy != GENERIC:
        return (strategy, registry[strategy].domain, host)
    return (host,)
