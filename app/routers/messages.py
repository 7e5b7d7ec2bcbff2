from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import db_session
from app.models.api.messages import MessageResponse, SendMessageRequest
from app.realtime.feed import ChangeFeed, get_change_feed
from app.routers.errors import raise_http_error
from app.services.send_message_service import SendMessageService

router = APIRouter()


@router.post("", response_model=MessageResponse, status_code=201)
async def send_message(
    request: SendMessageRequest,
    db: AsyncSession = Depends(db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> MessageResponse:
    """Send a message in a conversation."""
    try:
        service = SendMessageService(db, feed)
        return await service.send_message(request)
    except Exception as e:
        raise_http_error(e)
