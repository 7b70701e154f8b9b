import logging
from collections.abc import Iterable

from call_stats.capture.extractor import build_route_template, endpoint_name, normalize_path
from call_stats.records.recorder import Recorder

logger = logging.getLogger(__name__)


class CallStatsMiddleware:
    """ASGI middleware for FastAPI and Starlette applications.

    Records one call per completed HTTP request, named ``"METHOD /route"``.
    """

    def __init__(
        self,
        app,
        *,
        recorder: Recorder,
        exclude_paths: Iterable[str] = (),
    ) -> None:
        self.app = app
        self.recorder = recorder
        self.exclude_paths = frozenset(exclude_paths)

    async def __call__(self, scope, receive, send) -> None:
        await self.app(scope, receive, send)

        if scope["type"] != "http" or scope.get("path") in self.exclude_paths:
            return

        try:
            self._record(scope)
        except Exception:
            logger.warning("call-stats: failed to record call", exc_info=True)

    def _record(self, scope: dict) -> None:
        self.recorder.record(endpoint_name(scope.get("method", "GET"), self._route_template(scope)))

    @staticmethod
    def _route_template(scope: dict) -> str:
        # The router fills in "route" and "path_params" on the shared scope once matched
        route = scope.get("route")
        if route is not None and getattr(route, "path", None):
            return route.path

        path = scope.get("path", "/")
        path_params: dict = scope.get("path_params", {})
        if path_params:
            return build_route_template(path, {k: str(v) for k, v in path_params.items()})
        return normalize_path(path)
