import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from crm_connector.auth import Credential
from crm_connector.errors import ConfigError

_ENV_RE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")

DEFAULT_PAGE_SIZE = 100
DEFAULT_MAX_PAGES = 0
DEFAULT_OBJECTS_PATH = "/crm/v3/objects"
DEFAULT_INTERNAL_PREFIX = "_chioro"
PAGINATION_MODES = {"odata", "page"}
IDENTITY_STRATEGIES = {"search", "direct_id"}


@dataclass(frozen=True)
class ReaderConfig:
    name: str
    base_url: str
    path: str = ""
    mode: str = "odata"
    page_size: int = DEFAULT_PAGE_SIZE
    filter: Optional[str] = None
    expand: Optional[str] = None
    max_records: int = 0
    max_pages: int = DEFAULT_MAX_PAGES
    timeout: Optional[float] = None
    credential: Credential = field(default_factory=Credential.none)
    session_opts: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class WriterConfig:
    name: str
    base_url: str
    entity: str
    strategy: str = "search"
    lookup_property: str = ""
    id_field: str = ""
    id_property: str = ""
    objects_path: str = DEFAULT_OBJECTS_PATH
    internal_prefix: str = DEFAULT_INTERNAL_PREFIX
    continue_on_error: bool = False
    timeout: Optional[float] = None
    credential: Credential = field(default_factory=Credential.none)
    session_opts: Dict[str, Any] = field(default_factory=dict)


def expand_env_value(v: Any) -> Any:
    if isinstance(v, str):
        return _ENV_RE.sub(lambda m: os.getenv(m.group(1), m.group(0)), v)
    if isinstance(v, dict):
        return {k: expand_env_value(vv) for k, vv in v.items()}
    if isinstance(v, list):
        return [expand_env_value(x) for x in v]
    return v


def _positive_int(value: Any, default: int) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        return default
    return n if n >= 1 else default


def _non_negative_int(value: Any, key: str) -> int:
    try:
        n = int(value or 0)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be an integer, got {value!r}") from None
    if n < 0:
        raise ConfigError(f"{key} must not be negative, got {n}")
    return n


def _session_opts(item_cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Session-level request options (`headers`, `proxies`, `verify`)."""
    opts: Dict[str, Any] = {}
    for k in ("headers", "proxies"):
        if isinstance(item_cfg.get(k), dict):
            opts[k] = dict(item_cfg[k])
    if "verify" in item_cfg:
        opts["verify"] = item_cfg["verify"]
    return opts


def _section(
    config: Dict[str, Any], root: str, name: str, env_name: str
):
    env_cfg = (config.get("envs") or {}).get(env_name) or {}
    items = config.get(root) or {}
    item_cfg = items.get(name) or {}
    if not item_cfg:
        raise ConfigError(f"{root} config '{name}' not found.")
    defaults = items.get("defaults") or {}
    merged = {**defaults, **item_cfg}
    return expand_env_value(env_cfg), expand_env_value(merged)


def prepare_reader(
    config: Dict[str, Any], source_name: str, env_name: str
) -> ReaderConfig:
    """Resolve `sources.<source_name>` against `envs.<env_name>`."""
    env_cfg, src = _section(config, "sources", source_name, env_name)

    base_url = src.get("base_url") or env_cfg.get("base_url")
    if not base_url:
        raise ConfigError(
            f"source '{source_name}' needs a base_url (directly or via env '{env_name}')"
        )

    pag = src.get("pagination") or {}
    mode = str(pag.get("mode", "odata")).lower()
    if mode not in PAGINATION_MODES:
        raise ConfigError(f"Unsupported pagination mode: {mode}")

    return ReaderConfig(
        name=source_name,
        base_url=base_url,
        path=src.get("path", ""),
        mode=mode,
        page_size=_positive_int(pag.get("page_size"), DEFAULT_PAGE_SIZE),
        filter=src.get("filter") or None,
        expand=src.get("expand") or None,
        max_records=_non_negative_int(pag.get("max_records"), "max_records"),
        max_pages=_non_negative_int(
            pag.get("max_pages", DEFAULT_MAX_PAGES), "max_pages"
        ),
        timeout=src.get("timeout", env_cfg.get("timeout")),
        credential=Credential.from_admin_config(src.get("auth")),
        session_opts=_session_opts(src),
    )


def prepare_writer(
    config: Dict[str, Any], target_name: str, env_name: str
) -> WriterConfig:
    """Resolve `targets.<target_name>` against `envs.<env_name>`."""
    env_cfg, tgt = _section(config, "targets", target_name, env_name)

    base_url = tgt.get("base_url") or env_cfg.get("crm_base_url")
    if not base_url:
        raise ConfigError(
            f"target '{target_name}' needs a base_url (directly or via env '{env_name}')"
        )
    entity = tgt.get("entity")
    if not entity:
        raise ConfigError(f"target '{target_name}' must define an entity")

    strategy = str(tgt.get("strategy", "search")).lower()
    if strategy not in IDENTITY_STRATEGIES:
        raise ConfigError(f"Unsupported identity strategy: {strategy}")

    return WriterConfig(
        name=target_name,
        base_url=base_url,
        entity=entity,
        strategy=strategy,
        lookup_property=tgt.get("lookup_property") or "",
        id_field=tgt.get("id_field") or "",
        id_property=tgt.get("id_property") or "",
        objects_path=tgt.get("objects_path", DEFAULT_OBJECTS_PATH),
        internal_prefix=tgt.get("internal_prefix", DEFAULT_INTERNAL_PREFIX),
        continue_on_error=bool(tgt.get("continue_on_error", False)),
        timeout=tgt.get("timeout", env_cfg.get("timeout")),
        credential=Credential.from_admin_config(tgt.get("auth")),
        session_opts=_session_opts(tgt),
    )
