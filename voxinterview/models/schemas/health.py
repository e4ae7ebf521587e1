import pydantic

from voxinterview.models.schemas.base import BaseSchemaModel


class CircuitStatus(BaseSchemaModel):
    """Snapshot of the LLM circuit breaker"""
    open: bool = pydantic.Field(description="True while LLM calls are being short-circuited to fallback feedback")
    failures: int = pydantic.Field(ge=0, description="Consecutive failed analysis requests")
    retry_after_seconds: float | None = pydantic.Field(default=None, description="Seconds until the breaker closes again")


class HealthResponse(BaseSchemaModel):
    status: str = "healthy"
    service: str = "voxinterview-backend"
    llm_circuit: CircuitStatus
