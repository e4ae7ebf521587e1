from pathlib import Path
from typing import Tuple

import fastapi
from fastapi import UploadFile

from voxinterview.config.manager import settings

SUPPORTED_AUDIO_TYPES = {
    "audio/wav",
    "audio/wave",
    "audio/x-wav",
    "audio/mpeg",
    "audio/mp3",
    "audio/ogg",
    "audio/webm",      # MediaRecorder default in Chromium/Firefox
    "audio/m4a",
    "audio/x-m4a",
    "audio/mp4",
}

# Extension to MIME type mapping for fallback detection
EXTENSION_TO_MIME = {
    ".wav": "audio/wav",
    ".mp3": "audio/mpeg",
    ".ogg": "audio/ogg",
    ".webm": "audio/webm",
    ".m4a": "audio/mp4",
    ".mp4": "audio/mp4",
}

READ_CHUNK_SIZE = 64 * 1024


def _normalize_content_type(content_type: str) -> str:
    # Browsers send e.g. "audio/webm;codecs=opus"
    return content_type.split(";", 1)[0].strip().lower()


async def validate_audio_file(file: UploadFile, max_size_mb: int | None = None) -> Tuple[bytes, dict]:
    """
    Validate uploaded audio file and return file bytes with metadata.

    Args:
        file: FastAPI UploadFile object
        max_size_mb: Size limit; defaults to MAX_AUDIO_SIZE_MB

    Returns:
        Tuple of (file_bytes, metadata_dict)

    Raises:
        HTTPException: 415 unsupported type, 413 too large, 422 empty/corrupted
    """
    max_size_bytes = (max_size_mb or settings.MAX_AUDIO_SIZE_MB) * 1024 * 1024
    content_type = _normalize_content_type(file.content_type or "")
    filename = file.filename or ""
    file_ext = Path(filename).suffix.lower()

    # Infer MIME type from extension if header is missing/non-standard
    if content_type not in SUPPORTED_AUDIO_TYPES and file_ext in EXTENSION_TO_MIME:
        content_type = EXTENSION_TO_MIME[file_ext]

    if content_type not in SUPPORTED_AUDIO_TYPES:
        supported_list = sorted(SUPPORTED_AUDIO_TYPES)
        raise fastapi.HTTPException(
            status_code=fastapi.status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=f"Invalid file type: {content_type or 'unknown'}. Supported formats: {', '.join(supported_list)}"
        )

    # Read file with size validation
    total_size = 0
    buffer = bytearray()
    while True:
        chunk = await file.read(READ_CHUNK_SIZE)
        if not chunk:
            break
        total_size += len(chunk)
        if total_size > max_size_bytes:
            raise fastapi.HTTPException(
                status_code=fastapi.status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"Audio file exceeds {max_size_bytes // (1024 * 1024)}MB limit"
            )
        buffer.extend(chunk)

    audio_bytes = bytes(buffer)

    if not _is_valid_audio_file(audio_bytes, content_type):
        raise fastapi.HTTPException(
            status_code=fastapi.status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Invalid or corrupted audio file"
        )

    metadata = {
        "filename": filename or f"answer{file_ext or '.wav'}",
        "content_type": content_type,
        "size": total_size,
    }
    return audio_bytes, metadata


def _is_valid_audio_file(audio_bytes: bytes, content_type: str) -> bool:
    """
    Basic audio file validation by checking file headers.

    Formats without a known signature are accepted as long as they are not trivially short.
    """
    if len(audio_bytes) < 12:
        return False

    header = audio_bytes[:4]

    if content_type in ("audio/mpeg", "audio/mp3"):
        # ID3 tag or an MPEG audio frame sync (0xFFE*/0xFFF*)
        return header.startswith(b"ID3") or (audio_bytes[0] == 0xFF and (audio_bytes[1] & 0xE0) == 0xE0)

    elif content_type in ("audio/wav", "audio/x-wav", "audio/wave"):
        # WAV files must have both "RIFF" header and "WAVE" format
        return header.startswith(b"RIFF") and audio_bytes[8:12] == b"WAVE"

    elif content_type in ("audio/mp4", "audio/m4a", "audio/x-m4a"):
        return audio_bytes[4:8] == b"ftyp"

    elif content_type == "audio/webm":
        # EBML magic
        return header == b"\x1a\x45\xdf\xa3"

    elif content_type == "audio/ogg":
        return header == b"OggS"

    return True
