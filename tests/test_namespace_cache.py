import pytest
from kubernetes.client import V1ListMeta, V1Namespace, V1NamespaceList, V1ObjectMeta
from kubernetes.client.exceptions import ApiException

from pod_node_selector import namespace_cache as nc
from pod_node_selector.config import Settings
from pod_node_selector.models import NamespaceModel
from pod_node_selector.namespace_cache import NamespaceCache
from pod_node_selector.readiness import ReadinessGate


def v1ns(name, annotations=None):
	return V1Namespace(metadata=V1ObjectMeta(name=name, annotations=annotations))


class DummyCore:
	def __init__(self, items):
		self._items = items
		self.lists = 0

	def list_namespace(self, **kwargs):
		self.lists += 1
		return V1NamespaceList(items=self._items, metadata=V1ListMeta(resource_version=str(self.lists)))


def test_not_synced_until_replaced():
	cache = NamespaceCache(None, Settings())
	assert cache.has_synced() is False
	assert cache.get("a") is None
	cache.replace([NamespaceModel("a")])
	assert cache.has_synced() is True
	assert cache.get("a") == NamespaceModel("a")
	assert len(cache) == 1


def test_apply_events():
	cache = NamespaceCache(None, Settings())
	cache.replace([])
	cache.apply_event("ADDED", NamespaceModel("a", {"k": "v"}))
	cache.apply_event("MODIFIED", NamespaceModel("a", {"k": "w"}))
	assert cache.get("a").annotations == {"k": "w"}
	cache.apply_event("BOOKMARK", NamespaceModel("b"))
	assert cache.get("b") is None
	cache.apply_event("DELETED", NamespaceModel("a"))
	assert cache.get("a") is None
	# stays synced once synced
	assert cache.has_synced() is True


def test_list_and_watch(monkeypatch: pytest.MonkeyPatch):
	core = DummyCore([v1ns("a", {"x": "1"}), v1ns("b")])
	cache = NamespaceCache(core, Settings(watch_timeout_seconds=30))
	seen = {}

	class DummyWatch:
		def stream(self, func, **kwargs):
			seen.update(kwargs)
			yield {"type": "ADDED", "object": v1ns("c")}
			yield {"type": "DELETED", "object": v1ns("a")}

		def stop(self):
			pass

	monkeypatch.setattr(nc.watch, "Watch", DummyWatch)
	rv = cache._list()
	assert rv == "1"
	assert cache.has_synced() is True
	assert cache.get("a").annotations == {"x": "1"}

	cache._watch_from(rv)
	assert seen == {"resource_version": "1", "timeout_seconds": 30}
	assert cache.get("a") is None
	assert cache.get("b") is not None
	assert cache.get("c") is not None


def test_relists_when_watch_expires(monkeypatch: pytest.MonkeyPatch):
	core = DummyCore([v1ns("a")])
	cache = NamespaceCache(core, Settings())
	calls = {"n": 0}

	class DummyWatch:
		def stream(self, func, **kwargs):
			calls["n"] += 1
			if calls["n"] == 1:
				raise ApiException(status=410, reason="Gone")
			cache._stopped.set()
			return iter(())

		def stop(self):
			pass

	monkeypatch.setattr(nc.watch, "Watch", DummyWatch)
	cache._run()
	assert core.lists == 2
	assert calls["n"] == 2


def test_readiness_gate_follows_cache():
	cache = NamespaceCache(None, Settings())
	gate = ReadinessGate(cache.has_synced)
	assert gate.is_ready() is False
	assert gate.wait(0) is False
	cache.replace([])
	assert gate.is_ready() is True
	assert gate.wait(0) is True


def test_readiness_gate_waits_for_flip():
	state = {"calls": 0}

	def ready():
		state["calls"] += 1
		return state["calls"] >= 3

	gate = ReadinessGate(ready, poll_interval=0.01)
	assert gate.wait(5) is True
	assert state["calls"] == 3
