import logging

import fastapi
from fastapi import File, Form, UploadFile

from voxinterview.api.dependencies.services import get_speech_transcriber, get_transcript_analyzer
from voxinterview.config.manager import settings
from voxinterview.models.schemas.feedback import AnalyzeMeta, AnalyzeResponse, TranscriptionFailure
from voxinterview.models.schemas.interview import Role
from voxinterview.services.audio_processor import validate_audio_file
from voxinterview.services.confidence import score_confidence
from voxinterview.services.feedback import TranscriptAnalyzer
from voxinterview.services.transcription import SpeechTranscriber, TranscriptionError

logger = logging.getLogger(__name__)

router = fastapi.APIRouter(prefix="", tags=["analysis"])


@router.post(
    path="/analyze",
    name="analysis:analyze-answer",
    response_model=AnalyzeResponse,
    status_code=fastapi.status.HTTP_200_OK,
    summary="Transcribe a recorded answer and return STAR feedback",
    description=(
        "Accepts an audio answer (.wav, .mp3, .ogg, .webm, .m4a), transcribes it with ElevenLabs, "
        "scores confidence locally and requests STAR feedback from the LLM. When the LLM is unavailable "
        "the response still contains complete feedback and `meta.fallbackMode` is true. "
        "A failed transcription returns 502."
    ),
    responses={fastapi.status.HTTP_502_BAD_GATEWAY: {"model": TranscriptionFailure}},
)
async def analyze_answer(
    audio: UploadFile = File(..., description="Recorded answer audio"),
    role: Role = Form(default=Role.FRONTEND, description="Interview track"),
    question_index: int = Form(default=0, ge=0, alias="questionIndex", description="Index of the question being answered"),
    transcriber: SpeechTranscriber = fastapi.Depends(get_speech_transcriber),
    analyzer: TranscriptAnalyzer = fastapi.Depends(get_transcript_analyzer),
) -> AnalyzeResponse:
    """
    1. Validate the upload (type, size, header)
    2. Speech to text; failure here is fatal for the request
    3. Local confidence heuristic (always available)
    4. LLM feedback, degrading to fallback feedback
    """
    audio_bytes, file_metadata = await validate_audio_file(audio)

    try:
        transcript = await transcriber.transcribe(
            audio_bytes,
            file_metadata["content_type"],
            filename=file_metadata["filename"],
        )
    except TranscriptionError as e:
        logger.error("Transcription failed for %s (%d bytes): %s", file_metadata["filename"], file_metadata["size"], e)
        raise fastapi.HTTPException(
            status_code=fastapi.status.HTTP_502_BAD_GATEWAY,
            detail=TranscriptionFailure(message=str(e)).model_dump(by_alias=True),
        )

    confidence = score_confidence(transcript)
    feedback, fallback_mode = await analyzer.analyze_with_meta(transcript, role, question_index)

    return AnalyzeResponse(
        transcript=transcript[: settings.TRANSCRIPT_MAX_CHARS],
        feedback=feedback,
        confidence=confidence,
        meta=AnalyzeMeta(fallback_mode=fallback_mode),
    )
