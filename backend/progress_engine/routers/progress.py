"""
Progress API Router

Endpoints for recording learner activity and reading progress.

Every endpoint acts on the authenticated learner (X-Learner-Id header);
no endpoint accepts another learner's id. Mutations return the persisted
record plus the achievements unlocked by this call, so clients can show
unlock notifications without diffing records.

Endpoints:
- GET /api/progress - Get the learner's progress (created on first access)
- POST /api/progress/topic/complete - Mark a topic completed
- POST /api/progress/protocol/viewed - Mark a massage protocol viewed
- POST /api/progress/guideline/viewed - Mark a hygiene guideline viewed
- POST /api/progress/3d-model/viewed - Mark an anatomy 3D model viewed
- POST /api/progress/trigger-point/viewed - Mark a trigger point viewed
- POST /api/progress/quiz/result - Record a quiz attempt
- GET /api/progress/achievements - Achievement catalog with unlock status
"""

import logging

from fastapi import APIRouter, Depends, Request

from progress_engine.dependencies import CurrentLearner, get_progress_service
from progress_engine.middleware.error_handling import handle_endpoint_errors
from progress_engine.middleware.rate_limit import limit_read, limit_write
from progress_engine.models.progress import (
    AchievementCatalogResponse,
    CompleteTopicRequest,
    ProgressRecord,
    ProgressUpdate,
    ProgressUpdateResponse,
    QuizResultRequest,
    View3DModelRequest,
    ViewGuidelineRequest,
    ViewProtocolRequest,
    ViewTriggerPointRequest,
)
from progress_engine.services.progress import ProgressService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/progress", tags=["progress"])


def _respond(message: str, update: ProgressUpdate) -> ProgressUpdateResponse:
    return ProgressUpdateResponse(
        message=message,
        progress=update.progress,
        new_achievements=update.new_achievements,
    )


# ===========================================
# Read Endpoints
# ===========================================


@router.get("", response_model=ProgressRecord)
@limit_read
@handle_endpoint_errors("Get progress")
async def get_progress(
    request: Request,
    learner_id: str = CurrentLearner,
    service: ProgressService = Depends(get_progress_service),
) -> ProgressRecord:
    """
    Get the learner's progress record.

    A learner without a record gets an empty one, created on this call.
    """
    return await service.get_progress(learner_id)


@router.get("/achievements", response_model=AchievementCatalogResponse)
@limit_read
@handle_endpoint_errors("Get achievements")
async def get_achievements(
    request: Request,
    learner_id: str = CurrentLearner,
    service: ProgressService = Depends(get_progress_service),
) -> AchievementCatalogResponse:
    """
    List every achievement with unlock status and progress towards it.
    """
    return await service.get_achievement_catalog(learner_id)


# ===========================================
# Completion Endpoints
# ===========================================


@router.post("/topic/complete", response_model=ProgressUpdateResponse)
@limit_write
@handle_endpoint_errors("Complete topic")
async def complete_topic(
    request: Request,
    body: CompleteTopicRequest,
    learner_id: str = CurrentLearner,
    service: ProgressService = Depends(get_progress_service),
) -> ProgressUpdateResponse:
    """
    Mark a topic as completed.

    Completing an already completed topic is not an error: the topic is
    not added twice, but the time spent and the day's activity count.
    """
    update = await service.complete_topic(
        learner_id, body.topic_id, body.time_spent_seconds
    )
    return _respond("Topic marked as completed", update)


@router.post("/protocol/viewed", response_model=ProgressUpdateResponse)
@limit_write
@handle_endpoint_errors("Mark protocol viewed")
async def view_protocol(
    request: Request,
    body: ViewProtocolRequest,
    learner_id: str = CurrentLearner,
    service: ProgressService = Depends(get_progress_service),
) -> ProgressUpdateResponse:
    update = await service.view_protocol(
        learner_id, body.protocol_id, body.time_spent_seconds
    )
    return _respond("Protocol marked as viewed", update)


@router.post("/guideline/viewed", response_model=ProgressUpdateResponse)
@limit_write
@handle_endpoint_errors("Mark guideline viewed")
async def view_guideline(
    request: Request,
    body: ViewGuidelineRequest,
    learner_id: str = CurrentLearner,
    service: ProgressService = Depends(get_progress_service),
) -> ProgressUpdateResponse:
    update = await service.view_guideline(learner_id, body.guideline_id)
    return _respond("Guideline marked as viewed", update)


@router.post("/3d-model/viewed", response_model=ProgressUpdateResponse)
@limit_write
@handle_endpoint_errors("Mark 3D model viewed")
async def view_3d_model(
    request: Request,
    body: View3DModelRequest,
    learner_id: str = CurrentLearner,
    service: ProgressService = Depends(get_progress_service),
) -> ProgressUpdateResponse:
    update = await service.view_3d_model(learner_id, body.model_id)
    return _respond("3D model marked as viewed", update)


@router.post("/trigger-point/viewed", response_model=ProgressUpdateResponse)
@limit_write
@handle_endpoint_errors("Mark trigger point viewed")
async def view_trigger_point(
    request: Request,
    body: ViewTriggerPointRequest,
    learner_id: str = CurrentLearner,
    service: ProgressService = Depends(get_progress_service),
) -> ProgressUpdateResponse:
    update = await service.view_trigger_point(learner_id, body.trigger_point_id)
    return _respond("Trigger point marked as viewed", update)


# ===========================================
# Quiz Endpoints
# ===========================================


@router.post("/quiz/result", response_model=ProgressUpdateResponse)
@limit_write
@handle_endpoint_errors("Save quiz result")
async def record_quiz_result(
    request: Request,
    body: QuizResultRequest,
    learner_id: str = CurrentLearner,
    service: ProgressService = Depends(get_progress_service),
) -> ProgressUpdateResponse:
    """
    Record a quiz attempt.

    Every submission is kept, including retakes of the same quiz; the
    passed count and average score cover all attempts.
    """
    update = await service.record_quiz_result(
        learner_id,
        quiz_id=body.quiz_id,
        score=body.score,
        total_questions=body.total_questions,
        correct_answers=body.correct_answers,
        time_spent_seconds=body.time_spent_seconds,
        mode=body.mode,
    )
    logger.debug(
        f"Quiz {body.quiz_id} scored {body.score} for {learner_id}; "
        f"{len(update.new_achievements)} new achievements"
    )
    return _respond("Quiz result saved", update)
