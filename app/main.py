"""fileanalyse-api - File metadata microservice powered by Robyn."""

from robyn import ALLOW_CORS, Robyn

from app.api.fileanalyse import router as fileanalyse_router
from app.api.health import router as health_router
from app.core.lifespan import create_lifespan
from app.core.logger import LogIcon, logger
from app.core.router import UPLOAD_ENDPOINTS
from app.core.settings import settings as st
from app.events.pipeline import PipelineEvent
from app.events.storage import StorageEvent
from app.intake.composer import compose_internal_error
from app.intake.receiver import SizeBoundedReceiver
from app.middlewares.base import MiddlewareHandler
from app.middlewares.files import FileUploadOpenAPIMiddleware, PayloadLimitMiddleware

app = Robyn(__file__)
ALLOW_CORS(app, origins=st.CORS_ORIGINS)

# Lifespan events: storage first, the pipeline is ready before the server accepts requests
lifespan = create_lifespan(app)
lifespan.register(StorageEvent).register(PipelineEvent)

app.startup_handler(lifespan.startup)
app.shutdown_handler(lifespan.shutdown)

# Routers
app.include_router(health_router)
app.include_router(fileanalyse_router)

# Middlewares
middlewares = MiddlewareHandler(app)
middlewares.register(
    PayloadLimitMiddleware(
        SizeBoundedReceiver(field=st.UPLOAD_FIELD, max_file_size=st.MAX_FILE_SIZE, overhead=st.MULTIPART_OVERHEAD),
        UPLOAD_ENDPOINTS,
    )
)
middlewares.register(FileUploadOpenAPIMiddleware(UPLOAD_ENDPOINTS))


@app.exception
def handle_exception(error: Exception):
    logger.error("Unhandled error", icon=LogIcon.CRITICAL, error=repr(error), exc_info=error)
    return compose_internal_error()


def main() -> None:
    logger.info(f"Starting {st.API_NAME}", icon=LogIcon.START, url=st.api_url, max_file_size=st.MAX_FILE_SIZE)
    app.start(host=st.API_HOST, port=st.API_PORT)


if __name__ == "__main__":
    main()
