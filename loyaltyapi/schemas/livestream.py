from enum import Enum
from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional


class LivestreamCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    video_id: str = Field(..., min_length=1, max_length=64)


class LivestreamResponse(BaseModel):
    id: int
    title: str
    youtube_video_id: str
    live_chat_id: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class WorkerStatus(str, Enum):
    ONLINE = "ONLINE"
    OFFLINE = "OFFLINE"


class LivestreamOverviewResponse(BaseModel):
    streams: List[LivestreamResponse]
    worker_status: WorkerStatus


class WorkerStatusResponse(BaseModel):
    status: WorkerStatus


class WorkerActionResponse(BaseModel):
    success: bool
    message: str


class ChatMessage(BaseModel):
    """유튜브 라이브 채팅 메시지 (필요한 필드만)"""

    author_channel_id: str
    published_at: datetime
    text: str = ""


class ChatMessagePage(BaseModel):
    messages: List[ChatMessage] = Field(default_factory=list)
    next_page_token: Optional[str] = None
    polling_interval_ms: Optional[int] = None
