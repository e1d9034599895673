"""
Minimal models for Kubernetes AdmissionReview, Pod and Namespace used by this webhook.
We intentionally parse only the fields we need and ignore unknowns so that
new Kubernetes fields don't break this app.

References:
- AdmissionReview request/response shape:
  https://kubernetes.io/docs/reference/access-authn-authz/extensible-admission-controllers/#request-and-response
- Pod (core/v1) API reference:
  https://kubernetes.io/docs/reference/generated/kubernetes-api/latest/#pod-v1-core
"""

from dataclasses import dataclass, field
from typing import Any, Optional


def _get(d: dict[str, Any], key: str, default):
    # Safe nested getter for dicts
    v = d.get(key)
    return v if isinstance(v, type(default)) else default


@dataclass
class PodModel:
    name: str
    namespace: str
    labels: dict[str, str]
    annotations: dict[str, str]
    node_selector: dict[str, str]
    has_spec: bool = True

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "PodModel":
        meta = _get(d, "metadata", {})
        spec = _get(d, "spec", {})
        name = _get(meta, "name", "") or _get(meta, "generateName", "")
        return PodModel(
            name=name or "",
            namespace=_get(meta, "namespace", "") or "",
            labels=dict(_get(meta, "labels", {})),
            annotations=dict(_get(meta, "annotations", {})),
            node_selector=dict(_get(spec, "nodeSelector", {})),
            has_spec=isinstance(d.get("spec"), dict),
        )


@dataclass
class NamespaceModel:
    name: str
    annotations: dict[str, str] = field(default_factory=dict)

    @staticmethod
    def from_api(obj: Any) -> "NamespaceModel":
        """Build from a kubernetes client ``V1Namespace``."""
        meta = obj.metadata
        return NamespaceModel(
            name=meta.name or "",
            annotations=dict(meta.annotations or {}),
        )


@dataclass
class GroupResource:
    group: str = ""
    version: str = ""
    resource: str = ""

    @staticmethod
    def from_dict(d: Any) -> "GroupResource":
        if not isinstance(d, dict):
            return GroupResource()
        return GroupResource(
            group=str(d.get("group", "") or ""),
            version=str(d.get("version", "") or ""),
            resource=str(d.get("resource", "") or ""),
        )


def _is_pod(obj: dict[str, Any], request_kind: str) -> bool:
    # Prefer the object's own kind; fall back to the request kind
    kind = obj.get("kind") or request_kind
    return kind == "Pod"


@dataclass
class AdmissionRequestModel:
    uid: str
    kind: str
    resource: GroupResource
    sub_resource: str
    namespace: str
    operation: str
    # Decoded only when the object really is a Pod
    pod: PodModel | None

    @staticmethod
    def from_dict(d: dict[str, Any]) -> Optional["AdmissionRequestModel"]:
        if not isinstance(d, dict):
            return None
        uid = str(d.get("uid", ""))
        kind_raw = d.get("kind", {})
        kind = str(kind_raw.get("kind", "")) if isinstance(kind_raw, dict) else ""
        obj_raw = d.get("object")
        pod = None
        if isinstance(obj_raw, dict) and _is_pod(obj_raw, kind):
            pod = PodModel.from_dict(obj_raw)
        namespace = str(d.get("namespace", "") or "")
        if not namespace and pod is not None:
            namespace = pod.namespace
        return AdmissionRequestModel(
            uid=uid,
            kind=kind,
            resource=GroupResource.from_dict(d.get("resource")),
            sub_resource=str(d.get("subResource", "") or ""),
            namespace=namespace,
            operation=str(d.get("operation", "CREATE")).upper(),
            pod=pod,
        )


@dataclass
class AdmissionReviewModel:
    request: AdmissionRequestModel

    @staticmethod
    def from_dict(d: dict[str, Any]) -> Optional["AdmissionReviewModel"]:
        if not isinstance(d, dict):
            return None
        req_raw = d.get("request")
        req = (
            AdmissionRequestModel.from_dict(req_raw)
            if isinstance(req_raw, dict)
            else None
        )
        if req is None:
            return None
        return AdmissionReviewModel(request=req)
