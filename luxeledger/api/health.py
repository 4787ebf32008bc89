from fastapi import APIRouter

from luxeledger.config import get_settings

router = APIRouter()


@router.get("/health")
def health():
    settings = get_settings()
    return {
        "ok": True,
        "mock_data": settings.use_mock_data,
        "identity": settings.identity_strategy,
        "currency": settings.currency,
    }
