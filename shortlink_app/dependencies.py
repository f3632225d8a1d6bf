"""
FastAPI dependencies for dependency injection.

Shared resources (link store, click recorder, short code strategy) are
created once by the application factory and kept on app.state. These
dependencies hand them to routes; nothing here is a module-level
singleton, so every app (and every test) gets its own set.
"""

from fastapi import Request

from shortlink_app.services.link_service import LinkService


def get_link_service(request: Request) -> LinkService:
    """
    Get LinkService with all dependencies injected.

    The service is cheap and stateless; building one per request keeps
    routes free of wiring.
    """
    state = request.app.state
    return LinkService(
        store=state.link_store,
        short_code_strategy=state.short_code_strategy,
        clicks=state.click_recorder,
        base_url=state.settings.base_url
    )
