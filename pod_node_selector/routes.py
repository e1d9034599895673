import logging

from flask import Blueprint, jsonify, request

from .engine import PolicyEngine
from .errors import AdmissionError
from .helpers import error_status, make_admission_response, patch_node_selector
from .models import AdmissionReviewModel

log = logging.getLogger("pod-node-selector")


def create_routes(engine: PolicyEngine, gate):
    bp = Blueprint("webhook", __name__)

    @bp.route("/health", methods=["GET"])
    def health():
        return {"status": "healthy"}, 200

    @bp.route("/readyz", methods=["GET"])
    def readyz():
        if gate.is_ready():
            return {"status": "ready"}, 200
        return {"status": "namespace cache not synced"}, 503

    def _decode(endpoint: str):
        review_json = request.get_json(silent=True)
        admission = AdmissionReviewModel.from_dict(review_json or {})
        if admission is None:
            log.warning("Invalid AdmissionReview payload for %s", endpoint)
        return admission

    def _deny(uid: str, err: AdmissionError):
        log.info("Denied request uid=%s: %s", uid, err)
        return jsonify(make_admission_response(uid, False, status=error_status(err)))

    def _fail_closed(uid: str, endpoint: str):
        log.error("Error in %s", endpoint, exc_info=True)
        status = {"code": 500, "reason": "InternalError", "message": "internal error in node selector webhook"}
        return jsonify(make_admission_response(uid, False, status=status)), 500

    @bp.route("/mutate", methods=["POST"])
    def mutate():
        admission = _decode("/mutate")
        if admission is None:
            return jsonify(make_admission_response(uid="", allowed=False)), 400

        req = admission.request
        uid = req.uid
        try:
            if not engine.handles(req.operation):
                return jsonify(make_admission_response(uid, True))

            before = dict(req.pod.node_selector) if req.pod is not None else {}
            engine.admit_and_mutate(req)

            patch = []
            if req.pod is not None:
                patch = patch_node_selector(before, req.pod.node_selector, req.pod.has_spec)
            return jsonify(make_admission_response(uid, True, patch))
        except AdmissionError as e:
            return _deny(uid, e)
        except Exception:
            return _fail_closed(uid, "/mutate")

    @bp.route("/validate", methods=["POST"])
    def validate():
        """
        Validating webhook: re-check the pod's node selector against its
        namespace selector and whitelist.
        """
        admission = _decode("/validate")
        if admission is None:
            return jsonify(make_admission_response(uid="", allowed=False)), 400

        req = admission.request
        uid = req.uid
        try:
            if not engine.handles(req.operation):
                return jsonify(make_admission_response(uid, True))

            engine.validate(req)
            return jsonify(make_admission_response(uid, True))
        except AdmissionError as e:
            return _deny(uid, e)
        except Exception:
            return _fail_closed(uid, "/validate")

    return bp
