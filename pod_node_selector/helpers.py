import base64
import json
from typing import Any

from .errors import AdmissionError


def make_admission_response(
    uid: str,
    allowed: bool = True,
    patch: list[dict[str, Any]] | None = None,
    status: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Return the AdmissionReview the webhook sends to K8s to allow, deny or patch a Pod."""
    resp: dict[str, Any] = {"uid": uid, "allowed": allowed}

    if patch:
        resp["patchType"] = "JSONPatch"
        resp["patch"] = base64.b64encode(json.dumps(patch).encode()).decode()

    if status:
        resp["status"] = status

    return {
        "apiVersion": "admission.k8s.io/v1",
        "kind": "AdmissionReview",
        "response": resp,
    }


def error_status(err: AdmissionError) -> dict[str, Any]:
    """Status block reported to the API server for a denied request."""
    return {
        "code": err.code,
        "reason": err.reason,
        "message": str(err),
    }


def patch_node_selector(
    before: dict[str, str], after: dict[str, str], has_spec: bool = True
) -> list[dict[str, Any]]:
    """JSONPatch that sets the pod's node selector, or [] when it is unchanged."""
    if before == after:
        return []
    if not has_spec:
        return [{"op": "add", "path": "/spec", "value": {"nodeSelector": after}}]
    return [{"op": "add", "path": "/spec/nodeSelector", "value": after}]
