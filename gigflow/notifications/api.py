from fastapi import APIRouter, Depends
from starlette.responses import StreamingResponse

from gigflow.shared.auth import Requester, get_stream_requester
from gigflow.notifications.sse import event_stream

router = APIRouter(prefix="/notifications", tags=["Notifications"])

@router.get("/stream")
async def stream(user: Requester = Depends(get_stream_requester)):
    return StreamingResponse(
        event_stream(user.id),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
