# src/frostwatch/api/v1/endpoints/reports.py
"""Report endpoints for the Frostwatch API."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from frostwatch.core.errors import FrostwatchError
from frostwatch.schemas.report import (
    NearbyQuery,
    NearbyReportResponse,
    ReportCreate,
    ReportResponse,
)
from frostwatch.services.change_feed import ChangeSubscription
from frostwatch.services.reports import ReportRegistry, report_payload

from ..dependencies import ChangeFeedDep, SessionDep, http_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/", response_model=list[ReportResponse])
async def list_reports(db: SessionDep) -> list[ReportResponse]:
    """List every report whose validity window is still open, newest first."""
    try:
        reports = ReportRegistry(db).list_active()
    except FrostwatchError as exc:
        raise http_error(exc) from exc
    return [ReportResponse.model_validate(report) for report in reports]


@router.post("/", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
async def create_report(
    report_data: ReportCreate,
    db: SessionDep,
    feed: ChangeFeedDep,
) -> ReportResponse:
    """Create a sighting report at the given coordinates."""
    registry = ReportRegistry(db, publisher=feed)
    try:
        report = registry.create_report(report_data.latitude, report_data.longitude)
    except FrostwatchError as exc:
        raise http_error(exc) from exc
    return ReportResponse.model_validate(report)


@router.post("/nearby", response_model=list[NearbyReportResponse])
async def nearby_reports(query: NearbyQuery, db: SessionDep) -> list[NearbyReportResponse]:
    """Active reports close to a point, nearest first.

    Clients call this before creating a report to warn about duplicates.
    """
    try:
        nearby = ReportRegistry(db).get_nearby(query.latitude, query.longitude, query.radius_m)
    except FrostwatchError as exc:
        raise http_error(exc) from exc
    return [
        NearbyReportResponse(
            report=ReportResponse.model_validate(item.report),
            distance_m=item.distance_m,
            probability=item.probability,
        )
        for item in nearby
    ]


@router.websocket("/stream")
async def stream_reports(websocket: WebSocket, db: SessionDep) -> None:
    """Push report and vote changes to the client.

    The first message is a snapshot of the active set; every following
    message is one change from whichever feed backend is configured.
    """
    feed = websocket.app.state.change_feed
    await websocket.accept()
    subscription = feed.subscribe()
    try:
        try:
            snapshot = [report_payload(report) for report in ReportRegistry(db).list_active()]
        except FrostwatchError as exc:
            logger.warning("Could not load snapshot for stream: %s", exc)
            await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
            return
        finally:
            # Release the connection; the stream itself never touches the database.
            db.close()
        await websocket.send_json({"type": "snapshot", "reports": snapshot})
        await _pump(websocket, subscription)
    finally:
        subscription.close()


async def _pump(websocket: WebSocket, subscription: ChangeSubscription) -> None:
    async def forward() -> None:
        async for change in subscription:
            await websocket.send_json(change.as_message())

    async def wait_for_disconnect() -> None:
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            return

    tasks = {asyncio.create_task(forward()), asyncio.create_task(wait_for_disconnect())}
    done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
    for task in pending:
        task.cancel()
    await asyncio.gather(*pending, return_exceptions=True)
    for task in done:
        exc = task.exception()
        if exc is not None and not isinstance(exc, WebSocketDisconnect):
            logger.warning("Report stream closed with error: %s", exc)


@router.get("/{report_id}", response_model=ReportResponse)
async def get_report(report_id: str, db: SessionDep) -> ReportResponse:
    """Return one active report."""
    try:
        report = ReportRegistry(db).get_active_report(report_id)
    except FrostwatchError as exc:
        raise http_error(exc) from exc
    return ReportResponse.model_validate(report)

