import logging
import threading
from typing import Any, Iterable

from kubernetes import watch
from kubernetes.client.exceptions import ApiException

from .models import NamespaceModel

log = logging.getLogger("pod-node-selector")


class NamespaceCache:
    """
    In-process mirror of cluster namespaces kept current by list+watch.

    A single daemon thread writes; admission request threads read. The cache
    reports synced after the first successful list and stays synced for the
    lifetime of the process.
    """

    def __init__(self, core: Any, settings: Any) -> None:
        self._core = core
        self._settings = settings
        self._lock = threading.Lock()
        self._items: dict[str, NamespaceModel] = {}
        self._synced = threading.Event()
        self._stopped = threading.Event()
        self._thread: threading.Thread | None = None
        self._watch: watch.Watch | None = None

    def has_synced(self) -> bool:
        return self._synced.is_set()

    def get(self, name: str) -> NamespaceModel | None:
        with self._lock:
            return self._items.get(name)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def replace(self, namespaces: Iterable[NamespaceModel]) -> None:
        items = {ns.name: ns for ns in namespaces}
        with self._lock:
            self._items = items
        self._synced.set()

    def apply_event(self, event_type: str, namespace: NamespaceModel) -> None:
        with self._lock:
            if event_type in ("ADDED", "MODIFIED"):
                self._items[namespace.name] = namespace
            elif event_type == "DELETED":
                self._items.pop(namespace.name, None)
            else:
                log.warning("Ignoring namespace watch event of type %s", event_type)

    def _list(self) -> str:
        resp = self._core.list_namespace(
            _request_timeout=self._settings.webhook_timeout_seconds,
        )
        self.replace(NamespaceModel.from_api(item) for item in resp.items)
        log.info("Listed %d namespaces (resourceVersion=%s)", len(resp.items), resp.metadata.resource_version)
        return resp.metadata.resource_version

    def _watch_from(self, resource_version: str) -> None:
        self._watch = watch.Watch()
        for event in self._watch.stream(
            self._core.list_namespace,
            resource_version=resource_version,
            timeout_seconds=self._settings.watch_timeout_seconds,
        ):
            if self._stopped.is_set():
                break
            obj = event.get("object")
            if obj is None or getattr(obj, "metadata", None) is None:
                continue
            self.apply_event(event["type"], NamespaceModel.from_api(obj))

    def _run(self) -> None:
        backoff = max(1, int(self._settings.resync_backoff_seconds))
        while not self._stopped.is_set():
            try:
                rv = self._list()
                self._watch_from(rv)
            except ApiException as e:
                if e.status == 410:
                    log.info("Namespace watch expired; relisting")
                    continue
                log.error("Namespace watch failed: %s", e, exc_info=True)
                self._stopped.wait(backoff)
            except Exception:
                log.error("Namespace watch failed", exc_info=True)
                self._stopped.wait(backoff)

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._run, name="namespace-watch", daemon=True
        )
        self._thread.start()
        log.info("Namespace cache worker started")

    def stop(self) -> None:
        self._stopped.set()
        if self._watch is not None:
            self._watch.stop()
