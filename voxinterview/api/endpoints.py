import fastapi

from voxinterview.api.dependencies.services import get_circuit_breaker
from voxinterview.api.routes.analyze import router as analyze_router
from voxinterview.api.routes.interview import router as interview_router
from voxinterview.models.schemas.health import HealthResponse
from voxinterview.services.resilience import CircuitBreaker

router = fastapi.APIRouter()


# Health check endpoint for ECS/Load Balancer
@router.get("/health", status_code=200, response_model=HealthResponse, tags=["health"])
async def health_check(
    circuit_breaker: CircuitBreaker = fastapi.Depends(get_circuit_breaker),
) -> HealthResponse:
    return HealthResponse(llm_circuit=circuit_breaker.status())

router.include_router(router=analyze_router)
router.include_router(router=interview_router)
