from typing import List, Literal, Optional

from fastapi import APIRouter, HTTPException
from sqlmodel import SQLModel, Field

from lash_studio.core.signature import CANVAS_HEIGHT, CANVAS_WIDTH, SurfaceRect, replay


router = APIRouter(prefix="/signatures", tags=["signatures"])

# limite de eventos por requisição de replay
MAX_EVENTS = 5000


EventType = Literal[
    "mousedown",
    "mousemove",
    "mouseup",
    "mouseleave",
    "touchstart",
    "touchmove",
    "touchend",
    "clear",
]


class SignatureEvent(SQLModel):
    type: EventType
    client_x: Optional[float] = None
    client_y: Optional[float] = None


class SignatureRect(SQLModel):
    left: float = 0.0
    top: float = 0.0
    width: float = Field(default=CANVAS_WIDTH, gt=0)
    height: float = Field(default=CANVAS_HEIGHT, gt=0)


class SignatureRenderRequest(SQLModel):
    events: List[SignatureEvent] = Field(max_length=MAX_EVENTS)
    rect: SignatureRect = Field(default_factory=SignatureRect)


@router.post("/render")
def render_signature(data: SignatureRenderRequest):
    rect = SurfaceRect(**data.rect.model_dump())
    try:
        signature = replay([e.model_dump() for e in data.events], rect=rect)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    return {"signature": signature}
