import logging
from collections.abc import Iterable

from call_stats.capture.extractor import endpoint_name, normalize_path
from call_stats.records.recorder import Recorder

logger = logging.getLogger(__name__)


class CallStatsMiddleware:
    """WSGI middleware for Flask and Django applications."""

    def __init__(
        self,
        wsgi_app,
        *,
        recorder: Recorder,
        exclude_paths: Iterable[str] = (),
    ) -> None:
        self.wsgi_app = wsgi_app
        self.recorder = recorder
        self.exclude_paths = frozenset(exclude_paths)

    def __call__(self, environ: dict, start_response):
        path = environ.get("PATH_INFO", "/")
        if path in self.exclude_paths:
            return self.wsgi_app(environ, start_response)

        route: list[str | None] = [None]

        def capturing_start_response(status: str, headers, exc_info=None):
            # Flask's request context is still active while the view's response starts
            route[0] = self._get_flask_route()
            return start_response(status, headers, exc_info)

        response = self.wsgi_app(environ, capturing_start_response)

        try:
            method = environ.get("REQUEST_METHOD", "GET")
            self.recorder.record(endpoint_name(method, route[0] or normalize_path(path)))
        except Exception:
            logger.warning("call-stats: failed to record call", exc_info=True)

        return response

    @staticmethod
    def _get_flask_route() -> str | None:
        """Extract route template from Flask's thread-local request if available."""
        try:
            from flask import has_request_context
            from flask import request as flask_request

            if not has_request_context():
                return None
            rule = flask_request.url_rule
            if rule is not None:
                return str(rule)
        except ImportError:
            pass
        return None
