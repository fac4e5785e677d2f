"""Dashboard router"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Dict

from propledger.database import get_db
from propledger.models.user import User
from propledger.routers.auth import get_current_user, UserResponse
from propledger.routers.properties import property_to_response
from propledger.routers.transactions import detail_from_row
from propledger.services.dashboard import DashboardService

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("")
async def get_dashboard(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> Dict[str, Any]:
    """Get dashboard data for the current user's role"""
    data = await DashboardService(db).for_user(current_user)

    response: Dict[str, Any] = {
        "user": UserResponse.model_validate(data.user).model_dump(mode="json"),
        "stats": data.stats,
        "recentTransactions": [detail_from_row(row).model_dump(mode="json") for row in data.recent_transactions],
        "properties": [property_to_response(p).model_dump(mode="json") for p in data.properties],
    }

    if data.pending_verifications is not None:
        response["pendingVerifications"] = [
            detail_from_row(row).model_dump(mode="json") for row in data.pending_verifications
        ]

    if data.recent_users is not None:
        response["recentUsers"] = [
            UserResponse.model_validate(u).model_dump(mode="json") for u in data.recent_users
        ]

    return response
