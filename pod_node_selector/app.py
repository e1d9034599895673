import logging
import os

from flask import Flask
from kubernetes import client, config

from .config import load, load_node_selector_config
from .engine import PolicyEngine
from .namespace_cache import NamespaceCache
from .readiness import ReadinessGate
from .resolver import NamespacePolicyResolver
from .routes import create_routes

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(message)s",
)
log = logging.getLogger("pod-node-selector")

settings = load()
node_selector_config = load_node_selector_config(settings.node_selector_config_file)

# Initialize Kubernetes client; avoid constructing real client in tests
if settings.app_env == "test":
    core = object()
else:
    config.load_incluster_config()
    core = client.CoreV1Api()

cache = NamespaceCache(core, settings)
gate = ReadinessGate(cache.has_synced)
resolver = NamespacePolicyResolver(
    cache,
    core,
    node_selector_config,
    settings.namespace_selector_annotations,
    request_timeout=settings.webhook_timeout_seconds,
)
engine = PolicyEngine(
    resolver,
    node_selector_config,
    gate,
    handled_operations=settings.handled_operations,
    ready_timeout_seconds=settings.ready_timeout_seconds,
)

app = Flask(__name__)
app.register_blueprint(create_routes(engine, gate))

# Start the namespace watch eagerly in non-test envs (compatible with gunicorn)
if settings.app_env != "test":
    engine.validate_initialization()
    cache.start()

if __name__ == "__main__":
    log.info("Starting webhook server...")
    app.run(
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8443")),
        ssl_context=("tls/tls.crt", "tls/tls.key"),
    )
