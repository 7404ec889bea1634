from fastapi import APIRouter

from appointment_scheduler.scheduling.time_range import utc_naive_now

router = APIRouter(tags=["health"])


@router.get("/up")
@router.get("/health")
async def health() -> dict:
    return {"status": "ok", "timestamp": utc_naive_now().isoformat()}
