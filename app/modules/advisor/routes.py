from fastapi import APIRouter, Depends
from app.modules.advisor.schemas import AdviceRequest, AdviceResponse
from app.modules.advisor.service import AdvisorService
from app.core.dependencies import require_admin
from typing import Dict

router = APIRouter(prefix="/advisor", tags=["advisor"])


def get_advisor_service() -> AdvisorService:
    return AdvisorService()


@router.post("", response_model=AdviceResponse)
def get_advice(
    body: AdviceRequest,
    user_data: Dict = Depends(require_admin),
    service: AdvisorService = Depends(get_advisor_service)
):
    """Free-text management advice from the AI advisor (admin only)"""
    return AdviceResponse(advice=service.get_admin_advice(body.prompt))
