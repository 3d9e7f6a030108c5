"""Address autocomplete endpoint."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...errors import GatewayError
from ...models.domain import Coordinates
from ...schemas.places import PlaceSuggestionModel
from ...services.geocoding import PlacesClient
from ..dependencies import get_places_client

router = APIRouter(prefix="/places", tags=["places"])


@router.get("/suggestions", response_model=List[PlaceSuggestionModel])
async def place_suggestions(
    q: str = Query(default=""),
    lat: Optional[float] = Query(default=None, ge=-90, le=90),
    lng: Optional[float] = Query(default=None, ge=-180, le=180),
    places: Optional[PlacesClient] = Depends(get_places_client),
) -> List[PlaceSuggestionModel]:
    """Suggest addresses for ``q``, biased toward ``lat``/``lng`` when both are given."""
    if places is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Address suggestions are not configured.")
    near = Coordinates(lat=lat, lng=lng) if lat is not None and lng is not None else None
    try:
        suggestions = await places.suggest(q, near)
    except GatewayError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return [PlaceSuggestionModel.from_domain(suggestion) for suggestion in suggestions]
