"""Catalog and engagement endpoints for the TopBreja API."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, status

from topbreja.api.v1.dependencies import AuthStateDep, CurrentUserDep, SessionDep
from topbreja.models import Usuario
from topbreja.schemas.beer import BeerDetail, BeerSummary, PaginatedResponse, SortOption
from topbreja.schemas.comment import CommentCreate, CommentOut
from topbreja.schemas.engagement import EngagementResponse, RatingCreate, RatingResponse
from topbreja.services.catalog import CatalogQuery, get_beer_detail, list_beers
from topbreja.services.comments import CommentNode, add_comment, list_comments
from topbreja.services.engagement import submit_rating, toggle_favorite, toggle_vote
from topbreja.services.engagement_state import EngagementState

router = APIRouter(prefix="/beers", tags=["beers"])


def _engagement_response(state: EngagementState) -> EngagementResponse:
    return EngagementResponse(state=state, active=state == EngagementState.ACTIVE)


@router.get("", response_model=PaginatedResponse[BeerSummary])
async def search_beers(
    db: SessionDep,
    auth: AuthStateDep,
    q: Annotated[str | None, Query(max_length=120)] = None,
    estilo: Annotated[str | None, Query(max_length=120)] = None,
    sort: SortOption = SortOption.NAME,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int | None, Query(ge=1)] = None,
) -> PaginatedResponse[BeerSummary]:
    """Search the catalog; the viewer's flags are filled when signed in."""
    query = CatalogQuery(q=q, estilo=estilo, sort=sort, page=page, page_size=page_size)
    user_id = auth.user.uuid if auth.user else None
    return list_beers(db, query, user_id)


@router.get("/{beer_id}", response_model=BeerDetail)
async def read_beer(beer_id: UUID, db: SessionDep, auth: AuthStateDep) -> BeerDetail:
    """Return a beer page."""
    user_id = auth.user.uuid if auth.user else None
    return get_beer_detail(db, beer_id, user_id)


@router.post("/{beer_id}/vote", response_model=EngagementResponse)
async def vote_beer(beer_id: UUID, db: SessionDep, current_user: CurrentUserDep) -> EngagementResponse:
    """Toggle the user's vote for a beer."""
    return _engagement_response(toggle_vote(db, current_user.uuid, beer_id))


@router.post("/{beer_id}/favorite", response_model=EngagementResponse)
async def favorite_beer(
    beer_id: UUID, db: SessionDep, current_user: CurrentUserDep
) -> EngagementResponse:
    """Toggle the user's favorite mark on a beer."""
    return _engagement_response(toggle_favorite(db, current_user.uuid, beer_id))


@router.put("/{beer_id}/rating", response_model=RatingResponse)
async def rate_beer(
    beer_id: UUID,
    rating: RatingCreate,
    db: SessionDep,
    current_user: CurrentUserDep,
) -> RatingResponse:
    """Store or replace the user's star rating."""
    ok = submit_rating(db, current_user.uuid, beer_id, rating.stars)
    return RatingResponse(ok=ok, stars=rating.stars)


@router.get("/{beer_id}/comments", response_model=list[CommentOut])
async def read_comments(beer_id: UUID, db: SessionDep, auth: AuthStateDep) -> list[CommentOut]:
    """Return the beer's comment threads."""
    viewer_id = auth.user.uuid if auth.user else None
    return [CommentOut.from_node(node) for node in list_comments(db, beer_id, viewer_id)]


@router.post(
    "/{beer_id}/comments",
    response_model=CommentOut,
    status_code=status.HTTP_201_CREATED,
)
async def create_comment(
    beer_id: UUID,
    comment_data: CommentCreate,
    db: SessionDep,
    current_user: CurrentUserDep,
) -> CommentOut:
    """Post a comment, or a reply when ``reply_to_comment_id`` is given."""
    comment = add_comment(
        db,
        current_user.uuid,
        beer_id,
        comment_data.descricao,
        reply_to_comment_id=comment_data.reply_to_comment_id,
    )
    author = db.get(Usuario, current_user.uuid)
    return CommentOut.from_node(CommentNode(comment=comment, author=author))
