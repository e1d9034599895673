import re

from .errors import MalformedSelectorError

_NAME_FMT = r"([A-Za-z0-9][-A-Za-z0-9_.]*)?[A-Za-z0-9]"
_NAME_RE = re.compile(rf"^{_NAME_FMT}$")
_DNS1123_LABEL_FMT = r"[a-z0-9]([-a-z0-9]*[a-z0-9])?"
_DNS1123_SUBDOMAIN_RE = re.compile(
    rf"^{_DNS1123_LABEL_FMT}(\.{_DNS1123_LABEL_FMT})*$"
)

_NAME_MAX_LEN = 63
_PREFIX_MAX_LEN = 253


def conflicts(a: dict[str, str], b: dict[str, str]) -> bool:
    """True when a key present in both selectors maps to different values."""
    small, large = (a, b) if len(a) <= len(b) else (b, a)
    for key, value in small.items():
        if key in large and large[key] != value:
            return True
    return False


def merge(a: dict[str, str], b: dict[str, str]) -> dict[str, str]:
    """Union of both selectors; callers must check ``conflicts`` first."""
    merged = dict(a)
    merged.update(b)
    return merged


def is_within_whitelist(selector: dict[str, str], whitelist: dict[str, str]) -> bool:
    for key, value in selector.items():
        if key not in whitelist or whitelist[key] != value:
            return False
    return True


def _validate_key(key: str) -> None:
    prefix, sep, name = key.rpartition("/")
    if sep:
        if not prefix:
            raise MalformedSelectorError(f"invalid label key {key!r}: prefix part must be non-empty")
        if len(prefix) > _PREFIX_MAX_LEN or not _DNS1123_SUBDOMAIN_RE.match(prefix):
            raise MalformedSelectorError(
                f"invalid label key {key!r}: prefix part must be a DNS-1123 subdomain"
            )
    if not name:
        raise MalformedSelectorError(f"invalid label key {key!r}: name part must be non-empty")
    if len(name) > _NAME_MAX_LEN or not _NAME_RE.match(name):
        raise MalformedSelectorError(
            f"invalid label key {key!r}: name part must be 63 characters or less, "
            "start and end with an alphanumeric character and contain only '-', '_', '.' or alphanumerics"
        )


def _validate_value(key: str, value: str) -> None:
    if value == "":
        return
    if len(value) > _NAME_MAX_LEN or not _NAME_RE.match(value):
        raise MalformedSelectorError(f"invalid label value {value!r} for key {key!r}")


def parse_selector(selector: str | None) -> dict[str, str]:
    """
    Parse a ``key=value[,key=value]`` selector string into a label map.
    An empty string yields an empty map.
    """
    labels: dict[str, str] = {}
    if selector is None or selector.strip() == "":
        return labels

    for term in selector.split(","):
        parts = term.split("=")
        if len(parts) != 2:
            raise MalformedSelectorError(f"invalid selector: {term!r}")
        key = parts[0].strip()
        value = parts[1].strip()
        _validate_key(key)
        _validate_value(key, value)
        labels[key] = value
    return labels


def format_selector(selector: dict[str, str]) -> str:
    return ",".join(f"{k}={selector[k]}" for k in sorted(selector))
