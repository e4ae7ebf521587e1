import enum

import pydantic

from voxinterview.models.schemas.base import BaseSchemaModel


class Role(str, enum.Enum):
    FRONTEND = "frontend"
    BACKEND = "backend"
    SECURITY = "security"


class QuestionItem(BaseSchemaModel):
    id: str = pydantic.Field(description="Stable question identifier, e.g. 'fe-1'")
    text: str


class RoleProfile(BaseSchemaModel):
    title: str
    focus: list[str] = pydantic.Field(default_factory=list)
    questions: list[QuestionItem] = pydantic.Field(default_factory=list)


class AskQuestionRequest(BaseSchemaModel):
    role: Role = Role.FRONTEND
    question_index: int = pydantic.Field(default=0, ge=0)

    # Swagger example
    model_config = BaseSchemaModel.model_config.copy()
    model_config["json_schema_extra"] = {
        "examples": [
            {"role": "backend", "questionIndex": 0}
        ]
    }


class AskQuestionResponse(BaseSchemaModel):
    question: str
    question_id: str | None = None
    audio_url: str | None = pydantic.Field(default=None, description="URL of cached question audio, null when TTS is unavailable")
    role: Role
    question_index: int


class RandomQuestionResponse(BaseSchemaModel):
    role: Role
    question: str
    question_id: str | None = None
