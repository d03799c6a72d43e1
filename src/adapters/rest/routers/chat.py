"""Protected chat endpoint."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from factory import ServiceFactory
from adapters.rest.dependencies import get_factory, get_current_user, CurrentUser
from adapters.rest.schemas import ChatBody, ChatOut
from application.context import SessionContext
from domain.exceptions import InvalidQueryError, ModelDecisionError, PortfolioDataError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["chat"])


@router.post("/chat", response_model=ChatOut)
async def chat(
    body: ChatBody,
    user: CurrentUser = Depends(get_current_user),
    factory: ServiceFactory = Depends(get_factory),
):
    agent = factory.create_agent()
    ctx = SessionContext.for_request(user.user_id, body.sessionId)
    try:
        result = await agent.run(ctx, body.query)
    except InvalidQueryError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except ModelDecisionError as exc:
        logger.error("Chat failed for session %s: %s", ctx.conversation_id, exc)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="The language model is unavailable. Please try again.",
        )
    except PortfolioDataError as exc:
        logger.error("Portfolio back-end unavailable for session %s: %s", ctx.conversation_id, exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Portfolio data is unavailable. Please try again.",
        )
    return result.to_dict()
