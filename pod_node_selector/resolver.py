import logging
from typing import Any

from kubernetes.client.exceptions import ApiException

from .config import NodeSelectorConfig
from .errors import (
    InternalLookupError,
    NamespaceNotFoundError,
    NamespaceSelectorConflictError,
)
from .models import NamespaceModel
from .selectors import conflicts, merge, parse_selector

log = logging.getLogger("pod-node-selector")


class NamespacePolicyResolver:
    """
    Computes the default node selector for a namespace from its annotations,
    falling back to the cluster default when none of them is set.
    """

    def __init__(
        self,
        cache: Any,
        core: Any,
        config: NodeSelectorConfig,
        annotations: tuple[str, ...],
        request_timeout: int = 5,
    ) -> None:
        self._cache = cache
        self._core = core
        self._config = config
        self._annotations = annotations
        self._request_timeout = request_timeout

    def validate_initialization(self) -> None:
        if self._cache is None:
            raise RuntimeError("missing namespace cache")
        if self._core is None:
            raise RuntimeError("missing client")

    def _read_namespace(self, name: str) -> NamespaceModel:
        # The cache may lag behind newly created namespaces
        log.info("Namespace %s not in cache; reading from API", name)
        try:
            obj = self._core.read_namespace(name, _request_timeout=self._request_timeout)
        except ApiException as e:
            if e.status == 404:
                raise NamespaceNotFoundError(name) from e
            raise InternalLookupError(f"reading namespace {name}: {e.reason}") from e
        except Exception as e:
            raise InternalLookupError(f"reading namespace {name}: {e}") from e
        return NamespaceModel.from_api(obj)

    def get_namespace(self, name: str) -> NamespaceModel:
        try:
            namespace = self._cache.get(name)
        except Exception as e:
            raise InternalLookupError(f"namespace cache lookup for {name}: {e}") from e
        if namespace is None:
            namespace = self._read_namespace(name)
        return namespace

    def selector_for(self, namespace: NamespaceModel) -> dict[str, str]:
        selector: dict[str, str] = {}
        found = False
        for annotation in self._annotations:
            if annotation not in namespace.annotations:
                continue
            labels = parse_selector(namespace.annotations[annotation])
            if conflicts(selector, labels):
                raise NamespaceSelectorConflictError(namespace.name, annotation)
            selector = merge(selector, labels)
            found = True

        if not found:
            return parse_selector(self._config.cluster_default())
        return selector

    def resolve(self, namespace_name: str) -> dict[str, str]:
        return self.selector_for(self.get_namespace(namespace_name))
