from fastapi import APIRouter, Depends, status
from shortlink_app.schemas.link import LinkCreate, CreatedLink, LinkStats, ApiSuccess
from shortlink_app.services.link_service import LinkService
from shortlink_app.dependencies import get_link_service

router = APIRouter(tags=["links"])


@router.post(
    "/shorten",
    response_model=ApiSuccess[CreatedLink],
    status_code=status.HTTP_201_CREATED
)
async def shorten(
    payload: LinkCreate,
    link_service: LinkService = Depends(get_link_service)
):
    """Create a short link; 409 if the custom code is taken"""
    created = await link_service.create(
        payload.url,
        custom_code=payload.custom_code,
        expires_at=payload.expires_at
    )
    return ApiSuccess[CreatedLink](data=created)


@router.get("/links/{short_code}/stats", response_model=ApiSuccess[LinkStats])
async def link_stats(
    short_code: str,
    link_service: LinkService = Depends(get_link_service)
):
    """Raw click count for an active link"""
    stats = await link_service.stats(short_code)
    return ApiSuccess[LinkStats](data=stats)
