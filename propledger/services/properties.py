"""Property catalogue service"""
from decimal import Decimal
from typing import Optional
import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from propledger.exceptions import AuthorizationError, NotFoundError, ValidationError
from propledger.models.property import Property
from propledger.models.transaction import Transaction
from propledger.models.user import User, UserRole

logger = logging.getLogger(__name__)


def _owner_name_query():
    return (
        select(Property, User.name.label("owner_name"))
        .join(User, Property.owner_id == User.id)
    )


class PropertyService:
    """Listing, verification and removal of properties"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_verified(self) -> list:
        """Verified properties with their owner's name; unverified listings stay hidden"""
        result = await self.db.execute(
            _owner_name_query()
            .where(Property.is_verified.is_(True))
            .order_by(Property.created_at.desc(), Property.id.desc())
        )
        return result.all()

    async def get(self, property_id: int):
        """Any property by id, verified or not, with owner_name"""
        result = await self.db.execute(
            _owner_name_query().where(Property.id == property_id)
        )
        row = result.first()
        if not row:
            raise NotFoundError(message="Property not found")
        return row

    async def _get_for_change(self, property_id: int, requester: User, action: str) -> Property:
        property_obj = await self.db.get(Property, property_id)
        if not property_obj:
            raise NotFoundError(message="Property not found")

        if property_obj.owner_id != requester.id and UserRole(requester.role) != UserRole.ADMIN:
            raise AuthorizationError(message=f"Not authorized to {action} this property")
        return property_obj

    async def create(
        self,
        requester: User,
        title: str,
        description: str,
        location: str,
        price: Decimal,
        blockchain_hash: Optional[str] = None,
    ) -> Property:
        """List a new, unverified property owned by the requesting seller"""
        if UserRole(requester.role) != UserRole.SELLER:
            raise AuthorizationError(message="Not authorized to list properties")

        property_obj = Property(
            owner_id=requester.id,
            title=title,
            description=description,
            location=location,
            price=price,
            blockchain_hash=blockchain_hash or None,
            is_verified=False,
        )
        self.db.add(property_obj)
        await self.db.commit()
        await self.db.refresh(property_obj)

        logger.info(f"Property {property_obj.id} listed by seller {requester.id}")
        return property_obj

    async def update(
        self,
        property_id: int,
        requester: User,
        title: Optional[str] = None,
        description: Optional[str] = None,
        location: Optional[str] = None,
        price: Optional[Decimal] = None,
        is_verified: Optional[bool] = None,
    ) -> Property:
        """
        Update listing fields for the owner or an admin.

        Omitted fields keep their current value. ``is_verified`` is ignored
        unless the requester is an admin.
        """
        property_obj = await self._get_for_change(property_id, requester, "update")

        if title:
            property_obj.title = title
        if description:
            property_obj.description = description
        if location:
            property_obj.location = location
        if price is not None:
            property_obj.price = price

        if is_verified is not None and UserRole(requester.role) == UserRole.ADMIN:
            if property_obj.is_verified != is_verified:
                logger.info(f"Admin {requester.id} set property {property_id} is_verified={is_verified}")
            property_obj.is_verified = is_verified

        await self.db.commit()
        await self.db.refresh(property_obj)
        return property_obj

    async def delete(self, property_id: int, requester: User) -> None:
        """Remove a property that has never been part of a sale"""
        property_obj = await self._get_for_change(property_id, requester, "delete")

        result = await self.db.execute(
            select(func.count(Transaction.id)).where(Transaction.property_id == property_id)
        )
        if result.scalar_one() > 0:
            raise ValidationError(message="Property has transactions and cannot be removed")

        await self.db.delete(property_obj)
        await self.db.commit()
        logger.info(f"Property {property_id} removed by user {requester.id}")
