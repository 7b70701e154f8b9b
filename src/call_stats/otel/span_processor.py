import logging

from opentelemetry.sdk.trace import ReadableSpan, SpanProcessor
from opentelemetry.trace import SpanKind

from call_stats.capture.extractor import endpoint_name, normalize_path
from call_stats.records.recorder import Recorder

logger = logging.getLogger(__name__)

# Semantic convention keys: support both old (v1.x) and new (v1.21+) conventions
_METHOD_KEYS = ("http.request.method", "http.method")
_TARGET_KEY = "http.target"
_ROUTE_KEY = "http.route"


def _extract_path(attributes: dict) -> str:
    """Extract raw path from span attributes, handling both semconv versions."""
    path = attributes.get("url.path")
    if path:
        return str(path)

    target = attributes.get(_TARGET_KEY, "")
    return target.split("?", 1)[0] if target else "/"


def _get_attr(attributes: dict, *keys: str) -> str | None:
    """Return the first non-empty value found among the given attribute keys."""
    for key in keys:
        value = attributes.get(key)
        if value is not None:
            return str(value)
    return None


class CallStatsSpanProcessor(SpanProcessor):
    """
    OpenTelemetry SpanProcessor that records one call per finished HTTP server span.

    Use this instead of the HTTP middleware when your service already has
    OpenTelemetry instrumentation in place.

    Usage::

        from opentelemetry.sdk.trace import TracerProvider
        from call_stats.otel.span_processor import CallStatsSpanProcessor

        provider = TracerProvider()
        provider.add_span_processor(CallStatsSpanProcessor(recorder))
    """

    def __init__(self, recorder: Recorder) -> None:
        self.recorder = recorder

    def on_start(self, span, parent_context=None) -> None:
        pass

    def on_end(self, span: ReadableSpan) -> None:
        try:
            self._process(span)
        except Exception:
            logger.warning("call-stats: failed to process span", exc_info=True)

    def shutdown(self) -> None:
        pass

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        # Records are written synchronously in on_end
        return True

    def _process(self, span: ReadableSpan) -> None:
        if span.kind != SpanKind.SERVER:
            return

        attributes = dict(span.attributes or {})

        # Only HTTP spans carry a method attribute
        method = _get_attr(attributes, *_METHOD_KEYS)
        if not method:
            return

        # http.route is already a template (e.g. "/api/orders/{order_id}")
        route = attributes.get(_ROUTE_KEY)
        if route:
            path_template = str(route)
        else:
            path_template = normalize_path(_extract_path(attributes))

        self.recorder.record(endpoint_name(method, path_template))
