import logging
import os
from typing import Any

from fastapi import Body, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from call_stats.records.aggregator import Aggregator
from call_stats.records.recorder import Recorder
from call_stats.storage.dynamo import DEFAULT_TABLE_NAME, make_store
from call_stats.storage.errors import StorageUnavailable

logger = logging.getLogger(__name__)

_NOT_FOUND = {"error": "No statistics available"}


def _called_service(payload: Any) -> str:
    """Pull ``calledService`` out of a notification body. Anything goes; absence is the empty string."""
    value = payload.get("calledService") if isinstance(payload, dict) else None
    return "" if value is None else str(value)


class RecordOut(BaseModel):
    record_id: str
    endpoint: str
    recorded_at: str


class EndpointCountOut(BaseModel):
    endpoint: str
    count: int


def create_app(store=None) -> FastAPI:
    """Build the stats API around ``store`` (DynamoDB from the environment when omitted)."""
    if store is None:
        store = make_store(
            table_name=os.environ.get("CALL_STATS_TABLE", DEFAULT_TABLE_NAME),
            region=os.environ.get("AWS_DEFAULT_REGION"),
        )

    recorder = Recorder(store)
    aggregator = Aggregator(store)

    app = FastAPI(
        title="Stats API",
        version="1.0.0",
        description="Call statistics for remote service endpoints.",
    )

    @app.exception_handler(StorageUnavailable)
    async def storage_unavailable_handler(request: Request, exc: StorageUnavailable):
        logger.debug("call-stats: %s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"error": "Internal Server Error"})

    @app.get("/health", summary="Check if the service is running.")
    def health():
        return {"status": "Service is running"}

    @app.post(
        "/stats",
        status_code=201,
        response_model=RecordOut,
        summary="Record a call made by a remote service.",
    )
    def record_call(
        payload: Any = Body(
            default=None,
            description="JSON object whose `calledService` names the endpoint called by the remote service",
        ),
    ):
        return recorder.record(_called_service(payload)).to_dict()

    @app.get(
        "/stats/latest",
        response_model=RecordOut,
        responses={404: {"description": "No calls recorded yet"}},
        summary="Get the latest recorded call.",
    )
    def latest():
        record = aggregator.latest()
        if record is None:
            return JSONResponse(status_code=404, content=_NOT_FOUND)
        return record.to_dict()

    @app.get(
        "/stats/most-called",
        response_model=EndpointCountOut,
        responses={404: {"description": "No calls recorded yet"}},
        summary="Get the most called endpoint.",
    )
    def most_called():
        entry = aggregator.most_called()
        if entry is None:
            return JSONResponse(status_code=404, content=_NOT_FOUND)
        return entry.to_dict()

    @app.get(
        "/stats/endpoint-counts",
        response_model=list[EndpointCountOut],
        summary="Get the number of calls for each endpoint.",
    )
    def endpoint_counts():
        return [entry.to_dict() for entry in aggregator.endpoint_counts()]

    app.state.recorder = recorder
    app.state.aggregator = aggregator
    return app
