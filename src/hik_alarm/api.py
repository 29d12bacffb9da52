from __future__ import annotations

from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException, Response, status
from pydantic import BaseModel, Field

from .alert_event import AlarmStatus
from .plugin import HikAlarmPlugin


class HealthOut(BaseModel):
    status: str
    time_utc: datetime
    cameras: int

    model_config = {"json_schema_extra": {"examples": [{"status": "ok", "time_utc": "2026-02-18T12:00:00Z", "cameras": 2}]}}


class CameraIn(BaseModel):
    name: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    username: str
    password: str


class CameraUpdate(BaseModel):
    address: str = Field(..., min_length=1)
    username: str
    password: str = ""  # empty keeps the stored password


class CameraOut(BaseModel):
    device_id: int
    name: str
    address: str
    username: str
    status: int
    status_label: str

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "device_id": 1,
                    "name": "Front door",
                    "address": "192.168.1.64",
                    "username": "admin",
                    "status": 0,
                    "status_label": "No Motion",
                }
            ]
        }
    }


class StatusOut(BaseModel):
    device_id: int
    status: int
    status_label: str


def create_app(plugin: HikAlarmPlugin) -> FastAPI:
    """
    Create the camera management / status HTTP API.
    """
    app = FastAPI(
        title="HikVision Alarm Check API",
        version="0.1.0",
        description="Camera management and motion status polling for HikVision alert streams.",
    )

    def _camera_out(device_id: int) -> CameraOut:
        camera = plugin.get_camera(device_id)
        current = plugin.get_status(device_id)
        if camera is None or current is None:
            raise HTTPException(status_code=404, detail=f"Camera {device_id} not found")

        return CameraOut(
            device_id=device_id,
            name=plugin.host.device_name(device_id),
            address=camera.address,
            username=camera.username,
            status=int(current),
            status_label=current.label,
        )

    @app.get("/health", response_model=HealthOut, tags=["health"])
    def health() -> HealthOut:
        """Liveness check: returns OK if the process is running."""
        return HealthOut(status="ok", time_utc=datetime.now(timezone.utc), cameras=len(plugin.registry))

    @app.get("/cameras", response_model=list[CameraOut], tags=["cameras"])
    def list_cameras() -> list[CameraOut]:
        return [_camera_out(device_id) for device_id in plugin.registry.device_ids()]

    @app.post("/cameras", response_model=CameraOut, status_code=status.HTTP_201_CREATED, tags=["cameras"])
    def add_camera(body: CameraIn) -> CameraOut:
        device_id = plugin.create_camera(body.name, body.address, body.username, body.password)
        return _camera_out(device_id)

    @app.get("/cameras/{device_id}", response_model=CameraOut, tags=["cameras"])
    def get_camera(device_id: int) -> CameraOut:
        return _camera_out(device_id)

    @app.get("/cameras/{device_id}/status", response_model=StatusOut, tags=["cameras"])
    def get_status(device_id: int) -> StatusOut:
        """Point-in-time alarm status: -1 unknown, 0 no motion, 1 motion."""
        current = plugin.get_status(device_id)
        if current is None:
            raise HTTPException(status_code=404, detail=f"Camera {device_id} not found")
        return StatusOut(device_id=device_id, status=int(current), status_label=AlarmStatus(current).label)

    @app.put("/cameras/{device_id}", response_model=CameraOut, tags=["cameras"])
    def update_camera(device_id: int, body: CameraUpdate) -> CameraOut:
        if not plugin.update_camera(device_id, body.address, body.username, body.password):
            raise HTTPException(status_code=404, detail=f"Camera {device_id} not found")
        return _camera_out(device_id)

    @app.delete("/cameras/{device_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["cameras"])
    def delete_camera(device_id: int) -> Response:
        if device_id not in plugin.registry and not plugin.host.has_device(device_id):
            raise HTTPException(status_code=404, detail=f"Camera {device_id} not found")
        plugin.delete_camera(device_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return app
