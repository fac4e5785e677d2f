"""Role-specific dashboard aggregation"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy import select, func, case
from sqlalchemy.ext.asyncio import AsyncSession

from propledger.models.property import Property
from propledger.models.transaction import Transaction, TransactionStatus
from propledger.models.user import User, UserRole
from propledger.services.transactions import transaction_details_query

RECENT_TRANSACTIONS_LIMIT = 10
RECENT_USERS_LIMIT = 5


@dataclass
class DashboardData:
    """Everything shown on a user's dashboard"""
    user: User
    stats: Dict[str, Any] = field(default_factory=dict)
    properties: List[Property] = field(default_factory=list)
    recent_transactions: list = field(default_factory=list)
    pending_verifications: Optional[list] = None
    recent_users: Optional[List[User]] = None


def _completed():
    return Transaction.status == TransactionStatus.COMPLETED


def _count_where(condition):
    return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)


def _amount_where(condition):
    return func.coalesce(func.sum(case((condition, Transaction.amount), else_=0)), 0)


class DashboardService:
    """Builds dashboard data for sellers, buyers, agents and admins"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def for_user(self, user: User) -> DashboardData:
        data = DashboardData(user=user)
        role = UserRole(user.role)

        if role == UserRole.SELLER:
            await self._seller(user, data)
        elif role == UserRole.BUYER:
            await self._buyer(user, data)
        elif role == UserRole.AGENT:
            await self._agent(user, data)
        elif role == UserRole.ADMIN:
            await self._admin(data)

        return data

    async def _seller(self, user: User, data: DashboardData) -> None:
        result = await self.db.execute(
            select(Property)
            .where(Property.owner_id == user.id)
            .order_by(Property.created_at.desc(), Property.id.desc())
        )
        data.properties = list(result.scalars().all())

        tx = (await self.db.execute(
            select(
                func.count(Transaction.id),
                _count_where(_completed()),
                _amount_where(_completed()),
            ).where(Transaction.seller_id == user.id)
        )).one()

        data.stats = {
            "total_properties": len(data.properties),
            "verified_properties": sum(1 for p in data.properties if p.is_verified),
            "total_listings": tx[0],
            "sold_properties": int(tx[1]),
            "total_earnings": float(tx[2]),
        }

    async def _buyer(self, user: User, data: DashboardData) -> None:
        tx = (await self.db.execute(
            select(
                func.count(Transaction.id),
                _count_where(_completed()),
                _amount_where(_completed()),
            ).where(Transaction.buyer_id == user.id)
        )).one()

        data.stats = {
            "total_offers": tx[0],
            "completed_purchases": int(tx[1]),
            "total_spent": float(tx[2]),
        }

    async def _agent(self, user: User, data: DashboardData) -> None:
        tx = (await self.db.execute(
            select(
                func.count(Transaction.id),
                _count_where(Transaction.status == TransactionStatus.VERIFIED),
                _count_where(_completed()),
            ).where(Transaction.agent_id == user.id)
        )).one()

        data.stats = {
            "total_verifications": tx[0],
            "pending_completion": int(tx[1]),
            "completed_verifications": int(tx[2]),
        }

        # Work queue: pending sales nobody has picked up yet
        result = await self.db.execute(
            transaction_details_query().where(
                Transaction.status == TransactionStatus.PENDING,
                Transaction.agent_id.is_(None),
            )
        )
        data.pending_verifications = result.all()

    async def _admin(self, data: DashboardData) -> None:
        total_users = (await self.db.execute(select(func.count(User.id)))).scalar_one()
        total_properties = (await self.db.execute(select(func.count(Property.id)))).scalar_one()
        tx = (await self.db.execute(
            select(
                func.count(Transaction.id),
                _count_where(_completed()),
                _amount_where(_completed()),
            )
        )).one()

        data.stats = {
            "total_users": total_users,
            "total_properties": total_properties,
            "total_transactions": tx[0],
            "completed_transactions": int(tx[1]),
            "total_volume": float(tx[2]),
        }

        result = await self.db.execute(transaction_details_query().limit(RECENT_TRANSACTIONS_LIMIT))
        data.recent_transactions = result.all()

        result = await self.db.execute(
            select(User).order_by(User.created_at.desc(), User.id.desc()).limit(RECENT_USERS_LIMIT)
        )
        data.recent_users = list(result.scalars().all())
