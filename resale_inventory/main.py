from prometheus_fastapi_instrumentator import Instrumentator

from resale_inventory import app
from resale_inventory.core.config import settings
from resale_inventory.core.logging import configure_logging

configure_logging(settings.LOG_LEVEL)
instrumentator = Instrumentator()
instrumentator.instrument(app).expose(app)


def run() -> None:
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
