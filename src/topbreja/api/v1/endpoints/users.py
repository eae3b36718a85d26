"""Profile endpoints for the signed-in user."""

from fastapi import APIRouter

from topbreja.api.v1.dependencies import CurrentUserDep, ResolverDep, SessionDep, TokenDep
from topbreja.schemas.beer import BeerSummary
from topbreja.schemas.user import ProfileUpdate, UserOut
from topbreja.services.catalog import summarize_beers
from topbreja.services.engagement import list_favorites
from topbreja.services.users import get_profile, update_profile

router = APIRouter(prefix="/me", tags=["users"])


@router.get("", response_model=UserOut)
async def read_profile(db: SessionDep, current_user: CurrentUserDep) -> UserOut:
    """Return the signed-in user's profile."""
    return UserOut.model_validate(get_profile(db, current_user.uuid))


@router.patch("", response_model=UserOut)
async def edit_profile(
    update_data: ProfileUpdate,
    db: SessionDep,
    current_user: CurrentUserDep,
    token: TokenDep,
    resolver: ResolverDep,
) -> UserOut:
    """Change the display name or profile picture."""
    user = update_profile(db, current_user.uuid, update_data)
    # The cached session carries the old profile.
    if token:
        resolver.invalidate(token)
    return UserOut.model_validate(user)


@router.get("/favorites", response_model=list[BeerSummary])
async def read_favorites(db: SessionDep, current_user: CurrentUserDep) -> list[BeerSummary]:
    """Return the beers the user has favorited."""
    return summarize_beers(db, list_favorites(db, current_user.uuid), current_user.uuid)
