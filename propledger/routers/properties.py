"""Property listing router"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from propledger.database import get_db
from propledger.models.property import Property
from propledger.models.user import User
from propledger.routers.auth import get_current_user
from propledger.services.properties import PropertyService

router = APIRouter(prefix="/properties", tags=["Properties"])


class PropertyCreate(BaseModel):
    """Request to list a new property"""
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1, max_length=255)
    price: Decimal = Field(..., ge=0, max_digits=15, decimal_places=2)
    blockchain_hash: Optional[str] = Field(None, max_length=255)


class PropertyUpdate(BaseModel):
    """Partial update; is_verified only takes effect for admins"""
    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    location: Optional[str] = Field(None, max_length=255)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=15, decimal_places=2)
    is_verified: Optional[bool] = None


class PropertyResponse(BaseModel):
    """Property response model"""
    id: int
    owner_id: int
    title: str
    description: str
    location: str
    price: float
    is_verified: bool
    blockchain_hash: Optional[str]
    owner_name: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)


def property_to_response(property_obj: Property, owner_name: Optional[str] = None) -> PropertyResponse:
    response = PropertyResponse.model_validate(property_obj)
    response.owner_name = owner_name
    return response


@router.get("", response_model=List[PropertyResponse])
async def list_properties(db: AsyncSession = Depends(get_db)):
    """Get all verified properties"""
    rows = await PropertyService(db).list_verified()
    return [property_to_response(row.Property, row.owner_name) for row in rows]


@router.get("/{property_id}", response_model=PropertyResponse)
async def get_property(property_id: int, db: AsyncSession = Depends(get_db)):
    """Get property by ID"""
    row = await PropertyService(db).get(property_id)
    return property_to_response(row.Property, row.owner_name)


@router.post("", response_model=PropertyResponse, status_code=status.HTTP_201_CREATED)
async def create_property(
    request: PropertyCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List a property (sellers only)"""
    property_obj = await PropertyService(db).create(
        requester=current_user,
        title=request.title,
        description=request.description,
        location=request.location,
        price=request.price,
        blockchain_hash=request.blockchain_hash,
    )
    return property_to_response(property_obj, current_user.name)


@router.put("/{property_id}", response_model=PropertyResponse)
async def update_property(
    property_id: int,
    request: PropertyUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update a property (owner or admin)"""
    property_obj = await PropertyService(db).update(
        property_id,
        current_user,
        **request.model_dump(exclude_unset=True),
    )
    return property_to_response(property_obj)


@router.delete("/{property_id}")
async def delete_property(
    property_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Delete a property (owner or admin)"""
    await PropertyService(db).delete(property_id, current_user)
    return {"message": "Property removed"}
