"""API routes for lines and their sections."""

from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel, ConfigDict, Field, StrictInt, StringConstraints
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db_session
from ..domain import Section, SectionDiff, SubwayError
from ..services.line_service import DuplicateLineError, LineDetails, LineNotFoundError, LineService
from ..services.station_service import UnknownStationError
from .stations import StationResponse

router = APIRouter()


class LineUpdate(BaseModel):
    """Schema for renaming or recoloring a line."""
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=100)] = Field(
        description="Line name, at least 2 characters"
    )
    color: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=30)] = Field(
        description="Line color"
    )


class SectionCreate(BaseModel):
    """Schema for adding a section to a line."""
    model_config = ConfigDict(populate_by_name=True)

    up_station_id: int = Field(alias="upStationId")
    down_station_id: int = Field(alias="downStationId")
    distance: StrictInt


class LineCreate(LineUpdate, SectionCreate):
    """Schema for creating a line with its first section."""


class SectionResponse(BaseModel):
    """One directed section of a line."""
    model_config = ConfigDict(populate_by_name=True)

    up_station_id: int = Field(alias="upStationId")
    down_station_id: int = Field(alias="downStationId")
    distance: int


class LineResponse(BaseModel):
    """Schema for line response, stations in travel order."""
    id: int
    name: str
    color: str
    distance: int
    stations: List[StationResponse]
    sections: List[SectionResponse]


class SectionDiffResponse(BaseModel):
    """Sections added and removed by a topology change, plus the resulting line."""
    added: List[SectionResponse]
    removed: List[SectionResponse]
    line: LineResponse


def _serialize_section(section: Section) -> SectionResponse:
    return SectionResponse(
        up_station_id=section.up_station_id,
        down_station_id=section.down_station_id,
        distance=section.distance,
    )


def _serialize_line(details: LineDetails) -> LineResponse:
    """Convert a line and its topology into the response schema."""
    return LineResponse(
        id=details.line.id,
        name=details.line.name,
        color=details.line.color,
        distance=details.distance,
        stations=[StationResponse.model_validate(station) for station in details.stations],
        sections=[_serialize_section(section) for section in details.topology.ordered_sections()],
    )


def _serialize_diff(diff: SectionDiff, details: LineDetails) -> SectionDiffResponse:
    return SectionDiffResponse(
        added=[_serialize_section(section) for section in diff.added],
        removed=[_serialize_section(section) for section in diff.removed],
        line=_serialize_line(details),
    )


@router.post("", response_model=LineResponse, status_code=status.HTTP_201_CREATED)
async def create_line(
    payload: LineCreate,
    response: Response,
    db: AsyncSession = Depends(get_db_session)
):
    """
    Create a line together with the section between its two first stations.

    Both stations must already exist; name and color must be unused.
    """
    try:
        details = await LineService(db).create_line(
            name=payload.name,
            color=payload.color,
            up_station_id=payload.up_station_id,
            down_station_id=payload.down_station_id,
            distance=payload.distance,
        )
    except (DuplicateLineError, UnknownStationError, SubwayError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    response.headers["Location"] = f"/lines/{details.line.id}"
    return _serialize_line(details)


@router.get("", response_model=List[LineResponse])
async def list_lines(db: AsyncSession = Depends(get_db_session)):
    """List every line with its stations in order."""
    return [_serialize_line(details) for details in await LineService(db).list_lines()]


@router.get("/{line_id}", response_model=LineResponse)
async def get_line(
    line_id: int,
    db: AsyncSession = Depends(get_db_session)
):
    """Get one line with its stations in order."""
    try:
        details = await LineService(db).get_line_details(line_id)
    except LineNotFoundError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _serialize_line(details)


@router.put("/{line_id}")
async def update_line(
    line_id: int,
    payload: LineUpdate,
    db: AsyncSession = Depends(get_db_session)
):
    """Rename or recolor a line."""
    try:
        line = await LineService(db).update_line(line_id, payload.name, payload.color)
    except (LineNotFoundError, DuplicateLineError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"id": line.id, "name": line.name, "color": line.color}


@router.delete("/{line_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_line(
    line_id: int,
    db: AsyncSession = Depends(get_db_session)
):
    """Delete a line and all of its sections."""
    try:
        await LineService(db).delete_line(line_id)
    except LineNotFoundError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{line_id}/sections", response_model=SectionDiffResponse)
async def add_section(
    line_id: int,
    payload: SectionCreate,
    db: AsyncSession = Depends(get_db_session)
):
    """
    Insert a section into a line.

    The new section either extends one end of the line or splits the
    existing section that shares one of its stations.
    """
    service = LineService(db)
    try:
        diff = await service.add_section(
            line_id,
            payload.up_station_id,
            payload.down_station_id,
            payload.distance,
        )
    except (LineNotFoundError, UnknownStationError, SubwayError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _serialize_diff(diff, await service.get_line_details(line_id))


@router.delete("/{line_id}/sections", response_model=SectionDiffResponse)
async def remove_station(
    line_id: int,
    station_id: int = Query(..., alias="stationId", description="Station to take off the line"),
    db: AsyncSession = Depends(get_db_session)
):
    """Remove a station from a line, merging its neighbouring sections."""
    service = LineService(db)
    try:
        diff = await service.remove_station(line_id, station_id)
    except (LineNotFoundError, SubwayError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _serialize_diff(diff, await service.get_line_details(line_id))
