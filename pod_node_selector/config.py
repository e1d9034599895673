import os
from dataclasses import dataclass, field
from typing import Any, Mapping

import yaml

from .errors import ConfigError

CLUSTER_DEFAULT_NODE_SELECTOR = "clusterDefaultNodeSelector"
NAMESPACE_NODE_SELECTOR_ANNOTATION = "scheduler.alpha.kubernetes.io/node-selector"
PLUGIN_CONFIG_KEYS = ("podNodeSelectorPluginConfig", "PodNodeSelectorPluginConfig")


def _get_env(name: str, default: str) -> str:
    val = os.getenv(name)
    return val if val is not None and val != "" else default


def _parse_int(name: str, default: int) -> int:
    val = _get_env(name, str(default))
    try:
        return int(val)
    except ValueError:
        return default


def _parse_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    val = _get_env(name, ",".join(default))
    items = tuple(v.strip() for v in val.split(",") if v.strip())
    return items or default


@dataclass(frozen=True)
class Settings:
    app_env: str = "production"
    node_selector_config_file: str = ""
    webhook_timeout_seconds: int = 5
    ready_timeout_seconds: int = 10
    watch_timeout_seconds: int = 300
    resync_backoff_seconds: int = 5

    # Admission operations the engine is registered for
    handled_operations: tuple[str, ...] = ("CREATE",)
    # Namespace annotations scanned in order for node selectors
    namespace_selector_annotations: tuple[str, ...] = (
        NAMESPACE_NODE_SELECTOR_ANNOTATION,
    )


def load() -> Settings:
    return Settings(
        app_env=_get_env("APP_ENV", "production"),
        node_selector_config_file=_get_env("NODE_SELECTOR_CONFIG_FILE", ""),
        webhook_timeout_seconds=_parse_int("WEBHOOK_TIMEOUT_SECONDS", 5),
        ready_timeout_seconds=_parse_int("READY_TIMEOUT_SECONDS", 10),
        watch_timeout_seconds=_parse_int("WATCH_TIMEOUT_SECONDS", 300),
        resync_backoff_seconds=_parse_int("RESYNC_BACKOFF_SECONDS", 5),
        handled_operations=tuple(
            op.upper() for op in _parse_list("HANDLED_OPERATIONS", ("CREATE",))
        ),
        namespace_selector_annotations=_parse_list(
            "NAMESPACE_SELECTOR_ANNOTATIONS", (NAMESPACE_NODE_SELECTOR_ANNOTATION,)
        ),
    )


@dataclass(frozen=True)
class NodeSelectorConfig:
    """
    Cluster default node selector and per-namespace whitelists, keyed by
    ``clusterDefaultNodeSelector`` and namespace name respectively.
    Values are selector strings, parsed on use.
    """

    selectors: Mapping[str, str] = field(default_factory=dict)

    def cluster_default(self) -> str:
        return self.selectors.get(CLUSTER_DEFAULT_NODE_SELECTOR, "")

    def whitelist_for(self, namespace: str) -> str:
        return self.selectors.get(namespace, "")


def _unwrap(doc: Mapping[str, Any]) -> Any:
    for key in PLUGIN_CONFIG_KEYS:
        if key in doc:
            return doc[key]
    return doc


def load_node_selector_config(path: str | None) -> NodeSelectorConfig:
    """
    Read the node selector map from a YAML or JSON file:

        podNodeSelectorPluginConfig:
          clusterDefaultNodeSelector: <node-selectors-labels>
          namespace1: <node-selectors-labels>

    A missing path yields an empty configuration.
    """
    if not path:
        return NodeSelectorConfig()

    try:
        with open(path, "r", encoding="utf-8") as f:
            doc = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"cannot read node selector config {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"cannot parse node selector config {path}: {e}") from e

    if doc is None:
        return NodeSelectorConfig()
    if not isinstance(doc, dict):
        raise ConfigError(f"node selector config {path} must be a mapping")

    raw = _unwrap(doc)
    if raw is None:
        return NodeSelectorConfig()
    if not isinstance(raw, dict):
        raise ConfigError(f"node selector config {path} must be a mapping")

    selectors: dict[str, str] = {}
    for key, value in raw.items():
        if isinstance(value, (dict, list)):
            raise ConfigError(f"node selector config entry {key!r} must be a selector string")
        selectors[str(key)] = "" if value is None else str(value)
    return NodeSelectorConfig(selectors=selectors)
