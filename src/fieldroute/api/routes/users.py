"""Current-user endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ...persistence.store import JobStore
from ...schemas.users import HomeAddressRequest, SettingsRequest, UserModel
from ...services.jobs import geocode_best_effort
from ..dependencies import get_geocoder, get_store, get_user_id

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserModel)
async def current_user(
    user_id: str = Depends(get_user_id),
    store: JobStore = Depends(get_store),
) -> UserModel:
    return UserModel.from_domain(await store.get_user(user_id))


@router.put("/me/home", response_model=UserModel)
async def update_home(
    payload: HomeAddressRequest,
    user_id: str = Depends(get_user_id),
    store: JobStore = Depends(get_store),
    geocoder=Depends(get_geocoder),
) -> UserModel:
    """Set the home address used as the route's fixed destination."""
    if payload.coordinates is not None:
        coordinates = payload.coordinates.to_domain()
    else:
        coordinates = await geocode_best_effort(geocoder, payload.address)
    return UserModel.from_domain(await store.update_home_address(user_id, payload.address, coordinates))


@router.put("/me/settings", response_model=UserModel)
async def update_settings(
    payload: SettingsRequest,
    user_id: str = Depends(get_user_id),
    store: JobStore = Depends(get_store),
) -> UserModel:
    return UserModel.from_domain(await store.update_settings(user_id, payload.theme))
