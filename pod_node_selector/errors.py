"""Typed admission failures.

Each error carries the HTTP status code and Kubernetes reason that the webhook
reports back to the API server in the AdmissionReview ``status`` block.
"""


class AdmissionError(Exception):
    code: int = 403
    reason: str = "Forbidden"


class NotReadyError(AdmissionError):
    def __init__(self) -> None:
        super().__init__("not yet ready to handle request")


class MalformedSelectorError(AdmissionError):
    code = 400
    reason = "BadRequest"


class NamespaceSelectorConflictError(AdmissionError):
    def __init__(self, namespace: str, annotation: str) -> None:
        super().__init__(
            f"{namespace} annotations' node label selectors conflict (at {annotation})"
        )
        self.namespace = namespace
        self.annotation = annotation


class PodNamespaceSelectorConflictError(AdmissionError):
    def __init__(self, pod_name: str) -> None:
        super().__init__(
            f'pods "{pod_name}" is forbidden: pod node label selector conflicts '
            "with its namespace node label selector"
        )
        self.pod_name = pod_name


class WhitelistViolationError(AdmissionError):
    def __init__(self, pod_name: str) -> None:
        super().__init__(
            f'pods "{pod_name}" is forbidden: pod node label selector labels '
            "conflict with its namespace whitelist"
        )
        self.pod_name = pod_name


class NamespaceNotFoundError(AdmissionError):
    code = 404
    reason = "NotFound"

    def __init__(self, namespace: str) -> None:
        super().__init__(f"namespace {namespace} does not exist")
        self.namespace = namespace


class InternalLookupError(AdmissionError):
    code = 500
    reason = "InternalError"


class ConfigError(Exception):
    """Raised at start-up when the node selector configuration cannot be used."""
