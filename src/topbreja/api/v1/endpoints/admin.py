"""Administrator catalog endpoints for the TopBreja API."""

import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, status

from topbreja.api.v1.dependencies import AdminDep, SessionDep
from topbreja.schemas.beer import BeerCreate, BeerDetail, BeerUpdate
from topbreja.services.catalog import (
    admin_beer_detail,
    create_beer,
    delete_beer,
    list_admin_beers,
    update_beer,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/beers", tags=["admin"])


@router.get("", response_model=list[BeerDetail])
async def read_all_beers(db: SessionDep, admin: AdminDep) -> list[BeerDetail]:
    """List every beer, including inactive ones."""
    return list_admin_beers(db)


@router.post("", response_model=BeerDetail, status_code=status.HTTP_201_CREATED)
async def add_beer(beer_data: BeerCreate, db: SessionDep, admin: AdminDep) -> BeerDetail:
    """Add a beer to the catalog."""
    beer = create_beer(db, beer_data)
    logger.info("Admin %s created beer %s", admin.uuid, beer.uuid)
    return admin_beer_detail(db, beer.uuid)


@router.put("/{beer_id}", response_model=BeerDetail)
async def edit_beer(
    beer_id: UUID, beer_data: BeerUpdate, db: SessionDep, admin: AdminDep
) -> BeerDetail:
    """Update catalog fields or the active flag of a beer."""
    beer = update_beer(db, beer_id, beer_data)
    return admin_beer_detail(db, beer.uuid)


@router.delete("/{beer_id}")
async def remove_beer(beer_id: UUID, db: SessionDep, admin: AdminDep) -> dict[str, Any]:
    """Delete a beer; beers with engagement are deactivated instead."""
    outcome = delete_beer(db, beer_id)
    logger.info("Admin %s removed beer %s (%s)", admin.uuid, beer_id, outcome)
    return {"uuid": str(beer_id), "result": outcome}
