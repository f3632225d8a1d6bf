import uvicorn

from shortlink_app.app_factory import create_app
from shortlink_app.config import settings
from shortlink_app.logging_config import configure_logging

configure_logging(settings.log_level)

# Create FastAPI app
app = create_app(settings)


if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.port)
