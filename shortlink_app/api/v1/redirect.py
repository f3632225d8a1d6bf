from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse
from shortlink_app.services.link_service import LinkService
from shortlink_app.dependencies import get_link_service

router = APIRouter(tags=["redirect"])


@router.get("/{short_code}")
async def redirect_to_original_url(
    short_code: str,
    link_service: LinkService = Depends(get_link_service)
):
    """
    Redirect to the original URL.

    Always a temporary (307) redirect: the link may still expire or be
    deactivated later.

    The click is recorded in the background; the redirect never waits for it.
    """
    original_url = await link_service.resolve(short_code)
    return RedirectResponse(url=original_url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
