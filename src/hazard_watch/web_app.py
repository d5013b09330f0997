from __future__ import annotations

import io
import logging
from datetime import datetime
from typing import Any, List, Optional

import uvicorn
from fastapi import Depends, FastAPI, Form, Header, Query, Request
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel

from hazard_watch import config
from hazard_watch.errors import (
    AlreadyDeletedError,
    HazardWatchError,
    NotFoundError,
    OwnershipError,
    ValidationError,
)
from hazard_watch.export import build_hazard_pdf
from hazard_watch.logs import build_logger, log_event
from hazard_watch.models import GeoPoint
from hazard_watch.service import HazardService, build_default_service

ERROR_STATUS = {
    ValidationError: 400,
    OwnershipError: 403,
    NotFoundError: 404,
    AlreadyDeletedError: 409,
}

logger = logging.getLogger(__name__)

app = FastAPI(title="Hazard Watch")
app.state.service = None


class Waypoint(BaseModel):
    latitude: float
    longitude: float


class RouteCheckRequest(BaseModel):
    points: List[Waypoint]
    buffer_m: Optional[float] = None


@app.on_event("startup")
def startup() -> None:
    build_logger(config.LOG_LEVEL)
    app.state.service = build_default_service()


def get_service() -> HazardService:
    return app.state.service


def envelope(data: Any, message: str = "Success") -> dict:
    return {"success": True, "message": message, "data": data}


@app.exception_handler(HazardWatchError)
async def hazard_error_handler(request: Request, exc: HazardWatchError) -> JSONResponse:
    status = next((code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)), 500)
    log_event(
        logger,
        f"{request.method} {request.url.path} failed: {exc}",
        event="request_failed",
        error_code=exc.error_code,
        status=str(status),
    )
    return JSONResponse(
        status_code=status,
        content={"success": False, "message": str(exc), "error_code": exc.error_code, "data": None},
    )


@app.post("/api/hazards/report")
def report_hazard(
    category: str = Form(...),
    latitude: float = Form(...),
    longitude: float = Form(...),
    description: Optional[str] = Form(None),
    image_ref: Optional[str] = Form(None),
    x_reporter_id: str = Header(...),
    service: HazardService = Depends(get_service),
):
    record = service.report_hazard(
        reporter_id=x_reporter_id,
        category=category,
        latitude=latitude,
        longitude=longitude,
        description=description,
        image_ref=image_ref,
    )
    return envelope(record.to_dict(), "Hazard reported")


@app.get("/api/hazards/nearby")
def nearby_hazards(
    latitude: float,
    longitude: float,
    radius: Optional[float] = None,
    category: Optional[str] = None,
    since: Optional[datetime] = None,
    service: HazardService = Depends(get_service),
):
    records = service.nearby_hazards(latitude, longitude, radius, category=category, since=since)
    return envelope([r.to_dict() for r in records])


@app.get("/api/hazards/category/{category}")
def hazards_by_category(category: str, service: HazardService = Depends(get_service)):
    return envelope([r.to_dict() for r in service.hazards_by_category(category)])


@app.get("/api/hazards/export/pdf")
def export_hazards_pdf(service: HazardService = Depends(get_service)):
    content = build_hazard_pdf(service.active_hazards())
    return StreamingResponse(
        io.BytesIO(content),
        media_type="application/pdf",
        headers={"Content-Disposition": "attachment; filename=hazard_summary.pdf"},
    )


@app.get("/api/hazards/{hazard_id}")
def get_hazard(hazard_id: int, service: HazardService = Depends(get_service)):
    return envelope(service.get_hazard(hazard_id).to_dict())


@app.put("/api/hazards/{hazard_id}")
def update_hazard(
    hazard_id: int,
    category: Optional[str] = Form(None),
    latitude: Optional[float] = Form(None),
    longitude: Optional[float] = Form(None),
    description: Optional[str] = Form(None),
    image_ref: Optional[str] = Form(None),
    x_reporter_id: str = Header(...),
    service: HazardService = Depends(get_service),
):
    record = service.update_hazard(
        hazard_id,
        reporter_id=x_reporter_id,
        category=category,
        description=description,
        latitude=latitude,
        longitude=longitude,
        image_ref=image_ref,
    )
    return envelope(record.to_dict(), "Hazard updated")


@app.delete("/api/hazards/{hazard_id}")
def delete_hazard(
    hazard_id: int,
    x_reporter_id: str = Header(...),
    service: HazardService = Depends(get_service),
):
    service.delete_hazard(hazard_id, reporter_id=x_reporter_id)
    return envelope(None, "Hazard deleted")


@app.post("/api/emergency/report")
def report_emergency(
    latitude: float,
    longitude: float,
    emergency_type: str = Query("", alias="emergencyType"),
    service: HazardService = Depends(get_service),
):
    response = service.handle_emergency(latitude, longitude, emergency_type)
    return envelope(response.to_dict(), "Emergency received")


@app.get("/api/emergency/safe-route")
def safe_route(
    start_lat: float = Query(..., alias="startLat"),
    start_lng: float = Query(..., alias="startLng"),
    end_lat: float = Query(..., alias="endLat"),
    end_lng: float = Query(..., alias="endLng"),
    service: HazardService = Depends(get_service),
):
    recommendation = service.recommend_safe_route(start_lat, start_lng, end_lat, end_lng)
    return envelope(recommendation.to_dict())


@app.post("/api/emergency/route-check")
def route_check(body: RouteCheckRequest, service: HazardService = Depends(get_service)):
    points = [GeoPoint(latitude=p.latitude, longitude=p.longitude) for p in body.points]
    report = service.coordinator.check_route(points, body.buffer_m)
    return envelope(
        {
            "has_hazard": report.has_hazard,
            "segments_checked": report.segments_checked,
            "hazards": [r.to_dict() for r in report.hazards],
        }
    )


@app.get("/health")
def health():
    return {"status": "ok"}


def run(host: str = "0.0.0.0", port: int = 8080) -> None:
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run()
