"""API routes for station management."""

from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, ConfigDict, StringConstraints
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db_session
from ..services.station_service import (
    DuplicateStationNameError,
    InvalidStationNameError,
    StationInUseError,
    StationService,
    UnknownStationError,
)

router = APIRouter()


class StationCreate(BaseModel):
    """Schema for creating a station."""
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]


class StationResponse(BaseModel):
    """Schema for station response."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


@router.post("", response_model=StationResponse, status_code=status.HTTP_201_CREATED)
async def create_station(
    payload: StationCreate,
    response: Response,
    db: AsyncSession = Depends(get_db_session)
):
    """Register a new station."""
    try:
        station = await StationService(db).create_station(payload.name)
    except (DuplicateStationNameError, InvalidStationNameError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    response.headers["Location"] = f"/stations/{station.id}"
    return station


@router.get("", response_model=List[StationResponse])
async def list_stations(db: AsyncSession = Depends(get_db_session)):
    """List every station."""
    return await StationService(db).list_stations()


@router.delete("/{station_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_station(
    station_id: int,
    db: AsyncSession = Depends(get_db_session)
):
    """Delete a station that is not registered on any line."""
    try:
        await StationService(db).delete_station(station_id)
    except UnknownStationError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except StationInUseError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
