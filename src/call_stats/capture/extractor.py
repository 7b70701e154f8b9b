import re

# Fallback path normalization patterns (applied when framework route template unavailable)
_PATH_PATTERNS = [
    (re.compile(r"/[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.I), "/{uuid}"),
    (re.compile(r"/\d+"), "/{id}"),
]


def normalize_path(path: str) -> str:
    """Collapse numeric and UUID path segments so calls to one route share an endpoint name."""
    for pattern, replacement in _PATH_PATTERNS:
        path = pattern.sub(replacement, path)
    return path or "/"


def build_route_template(path: str, path_params: dict[str, str]) -> str:
    """Reconstruct route template from actual path + matched path parameters."""
    segments = path.split("/")
    values = {str(value): name for name, value in path_params.items()}
    return "/".join(
        f"{{{values[segment]}}}" if segment in values else segment
        for segment in segments
    )


def endpoint_name(method: str, path_template: str) -> str:
    """Name a called endpoint as ``"METHOD /path"``."""
    return f"{method.upper()} {path_template}"
