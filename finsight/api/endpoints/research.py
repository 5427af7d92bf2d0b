"""
Synchronous research endpoints.

Query answers, subject analyses (optionally with an uploaded document)
and follow-up questions, each returned as one assembled response.
"""

from typing import Optional
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from finsight.api.dependencies import rate_limited
from finsight.api.models import (
    ChatRequest,
    ChatResponse,
    AnalysisRequest,
    AnalysisResponse,
    FollowUpRequest,
    FollowUpResponse
)
from finsight.api.services import pipeline_service
from finsight.core.ratelimit import DEFAULT_PROFILE, UPLOAD_PROFILE
from finsight.utils.logging import get_logger
from finsight.utils.exceptions import FinsightException

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["research"])


@router.post("/chat", response_model=ChatResponse)
async def chat(request: ChatRequest, identity: str = Depends(rate_limited(DEFAULT_PROFILE))):
    """Answer a free-text query."""
    try:
        result = await pipeline_service.chat(request.query, identity=identity)
        return ChatResponse(**result)

    except FinsightException:
        raise
    except Exception as e:
        logger.error(f"❌ Chat failed: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Chat failed: {str(e)}")


@router.post("/analysis", response_model=AnalysisResponse)
async def analysis(request: AnalysisRequest, identity: str = Depends(rate_limited(DEFAULT_PROFILE))):
    """Analyze a subject for a time horizon."""
    try:
        result = await pipeline_service.analyze(request.subject, request.time_horizon, identity=identity)
        return AnalysisResponse(**result)

    except FinsightException:
        raise
    except Exception as e:
        logger.error(f"❌ Analysis failed: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Analysis failed: {str(e)}")


@router.post("/analysis/document", response_model=AnalysisResponse)
async def analysis_with_document(
    file: UploadFile = File(...),
    subject: Optional[str] = Form(default=None),
    time_horizon: Optional[str] = Form(default=None),
    identity: str = Depends(rate_limited(DEFAULT_PROFILE)),
    _upload: str = Depends(rate_limited(UPLOAD_PROFILE))
):
    """Analyze a subject using an uploaded document as additional context. Not cached."""
    try:
        data = await file.read()
        logger.info(f"📎 Received {file.filename} ({len(data)} bytes)")
        result = await pipeline_service.analyze_document(
            subject, file.filename or "", data, time_horizon=time_horizon, identity=identity
        )
        return AnalysisResponse(**result)

    except FinsightException:
        raise
    except Exception as e:
        logger.error(f"❌ Document analysis failed: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Document analysis failed: {str(e)}")
    finally:
        await file.close()


@router.post("/analysis/chat", response_model=FollowUpResponse)
async def chat_about_analysis(request: FollowUpRequest, identity: str = Depends(rate_limited(DEFAULT_PROFILE))):
    """Answer a question about a previous analysis."""
    try:
        result = await pipeline_service.follow_up(
            request.subject, request.analysis, request.message, identity=identity
        )
        return FollowUpResponse(**result)

    except FinsightException:
        raise
    except Exception as e:
        logger.error(f"❌ Follow-up failed: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Follow-up failed: {str(e)}")
