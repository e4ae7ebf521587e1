import fastapi

from voxinterview.models.schemas.interview import (
    AskQuestionRequest,
    AskQuestionResponse,
    RandomQuestionResponse,
    Role,
)
from voxinterview.services.question_audio import get_or_create_question_audio
from voxinterview.services.question_bank import question_at, random_question

UPLOADS_PATH = "/uploads"

router = fastapi.APIRouter(prefix="/interview", tags=["interview"])


@router.post(
    path="/ask",
    name="interview:ask",
    response_model=AskQuestionResponse,
    status_code=fastapi.status.HTTP_200_OK,
    summary="Get a question by role and index, with spoken audio when available",
)
async def ask_question(request: fastapi.Request, payload: AskQuestionRequest) -> AskQuestionResponse:
    question = question_at(payload.role, payload.question_index)
    if question is None:
        raise fastapi.HTTPException(
            status_code=fastapi.status.HTTP_400_BAD_REQUEST,
            detail="Question index out of range",
        )

    audio_filename = await get_or_create_question_audio(question)
    audio_url = None
    if audio_filename:
        audio_url = f"{str(request.base_url).rstrip('/')}{UPLOADS_PATH}/{audio_filename}"

    return AskQuestionResponse(
        question=question.text,
        question_id=question.id,
        audio_url=audio_url,
        role=payload.role,
        question_index=payload.question_index,
    )


@router.get(
    path="/question",
    name="interview:random-question",
    response_model=RandomQuestionResponse,
    status_code=fastapi.status.HTTP_200_OK,
    summary="Get a random question for a role",
)
async def get_random_question(role: Role = Role.FRONTEND) -> RandomQuestionResponse:
    question = random_question(role)
    return RandomQuestionResponse(role=role, question=question.text, question_id=question.id)
