import logging

from .config import NodeSelectorConfig
from .errors import (
    NotReadyError,
    PodNamespaceSelectorConflictError,
    WhitelistViolationError,
)
from .models import AdmissionRequestModel, PodModel
from .readiness import ReadinessGate
from .resolver import NamespacePolicyResolver
from .selectors import conflicts, format_selector, is_within_whitelist, merge, parse_selector

log = logging.getLogger("pod-node-selector")


class PolicyEngine:
    """
    Two-phase node selector admission: ``admit_and_mutate`` merges the
    namespace selector into the pod, ``validate`` checks the pod's selector
    against the namespace selector and whitelist without changing it.
    """

    def __init__(
        self,
        resolver: NamespacePolicyResolver,
        config: NodeSelectorConfig,
        gate: ReadinessGate,
        handled_operations: tuple[str, ...] = ("CREATE",),
        ready_timeout_seconds: float = 10,
    ) -> None:
        self._resolver = resolver
        self._config = config
        self._gate = gate
        self._handled_operations = tuple(op.upper() for op in handled_operations)
        self._ready_timeout_seconds = ready_timeout_seconds

    def validate_initialization(self) -> None:
        self._resolver.validate_initialization()

    def handles(self, operation: str) -> bool:
        return operation.upper() in self._handled_operations

    def should_ignore(self, req: AdmissionRequestModel) -> bool:
        if req.resource.group != "" or req.resource.resource != "pods":
            return True
        if req.sub_resource != "":
            # only run the checks on pods proper and not subresources
            return True
        if req.pod is None:
            log.error("expected pod but got %s", req.kind or "unknown kind")
            return True
        return False

    def _wait_for_ready(self) -> None:
        if not self._gate.wait(self._ready_timeout_seconds):
            raise NotReadyError()

    def _namespace_selector(self, req: AdmissionRequestModel, pod: PodModel) -> dict[str, str]:
        namespace_selector = self._resolver.resolve(req.namespace)
        if conflicts(namespace_selector, pod.node_selector):
            log.warning(
                "Denying pod %s/%s: selector %s conflicts with namespace selector %s",
                req.namespace,
                pod.name,
                format_selector(pod.node_selector),
                format_selector(namespace_selector),
            )
            raise PodNamespaceSelectorConflictError(pod.name)
        return namespace_selector

    def admit_and_mutate(self, req: AdmissionRequestModel) -> None:
        if self.should_ignore(req):
            return
        self._wait_for_ready()

        pod = req.pod
        namespace_selector = self._namespace_selector(req, pod)
        # second selector wins
        pod.node_selector = merge(namespace_selector, pod.node_selector)
        log.info(
            "Pod %s/%s node selector set to %s",
            req.namespace,
            pod.name,
            format_selector(pod.node_selector),
        )
        self.validate(req)

    def validate(self, req: AdmissionRequestModel) -> None:
        if self.should_ignore(req):
            return
        self._wait_for_ready()

        pod = req.pod
        self._namespace_selector(req, pod)

        whitelist = parse_selector(self._config.whitelist_for(req.namespace))
        if not is_within_whitelist(pod.node_selector, whitelist):
            log.warning(
                "Denying pod %s/%s: selector %s not within namespace whitelist %s",
                req.namespace,
                pod.name,
                format_selector(pod.node_selector),
                format_selector(whitelist),
            )
            raise WhitelistViolationError(pod.name)
