"""
라이브 방송 / 채팅 워커 관리 API (admin)

- GET  /admin/livestreams: 방송 목록 + 워커 상태
- POST /admin/livestreams: 방송 등록 (이전 active 방송은 종료)
- POST /admin/livestreams/{id}/finish
- GET  /admin/worker/status, POST /admin/worker/start, POST /admin/worker/stop
"""

from fastapi import APIRouter, Depends, Path, status
from dependency_injector.wiring import inject, Provide

from loyaltyapi.containers import Container
from loyaltyapi.core.auth_middleware import require_admin
from loyaltyapi.deps import get_livestream_service
from loyaltyapi.schemas.livestream import (
    LivestreamCreateRequest,
    LivestreamOverviewResponse,
    LivestreamResponse,
    WorkerActionResponse,
    WorkerStatusResponse,
)
from loyaltyapi.schemas.user import User as UserSchema
from loyaltyapi.services.livestream_service import LivestreamService
from loyaltyapi.workers.control import WorkerControl

router = APIRouter(prefix="/admin", tags=["livestream"])


@router.get("/livestreams", response_model=LivestreamOverviewResponse)
@inject
def list_livestreams(
    _: UserSchema = Depends(require_admin),
    livestream_service: LivestreamService = Depends(get_livestream_service),
    worker_control: WorkerControl = Depends(Provide[Container.external.worker_control]),
) -> LivestreamOverviewResponse:
    return LivestreamOverviewResponse(
        streams=livestream_service.list_streams(), worker_status=worker_control.status()
    )


@router.post(
    "/livestreams", response_model=LivestreamResponse, status_code=status.HTTP_201_CREATED
)
async def create_livestream(
    request: LivestreamCreateRequest,
    _: UserSchema = Depends(require_admin),
    livestream_service: LivestreamService = Depends(get_livestream_service),
) -> LivestreamResponse:
    """유튜브 영상 ID로 live chat ID를 조회해 active 방송으로 등록"""
    return await livestream_service.create_livestream(request.title, request.video_id)


@router.post("/livestreams/{stream_id}/finish", response_model=LivestreamResponse)
def finish_livestream(
    stream_id: int = Path(..., gt=0),
    _: UserSchema = Depends(require_admin),
    livestream_service: LivestreamService = Depends(get_livestream_service),
) -> LivestreamResponse:
    return livestream_service.finish_stream(stream_id)


@router.get("/worker/status", response_model=WorkerStatusResponse)
@inject
def worker_status(
    _: UserSchema = Depends(require_admin),
    worker_control: WorkerControl = Depends(Provide[Container.external.worker_control]),
) -> WorkerStatusResponse:
    return WorkerStatusResponse(status=worker_control.status())


@router.post("/worker/start", response_model=WorkerActionResponse)
@inject
async def start_worker(
    _: UserSchema = Depends(require_admin),
    worker_control: WorkerControl = Depends(Provide[Container.external.worker_control]),
) -> WorkerActionResponse:
    started = await worker_control.start()
    return WorkerActionResponse(
        success=started,
        message="Worker started" if started else "Worker already running",
    )


@router.post("/worker/stop", response_model=WorkerActionResponse)
@inject
async def stop_worker(
    _: UserSchema = Depends(require_admin),
    worker_control: WorkerControl = Depends(Provide[Container.external.worker_control]),
) -> WorkerActionResponse:
    stopped = await worker_control.stop()
    return WorkerActionResponse(
        success=stopped,
        message="Worker stopped" if stopped else "Worker is not running",
    )
