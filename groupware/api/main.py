from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from groupware import __version__
from groupware.core.config import get_settings
from groupware.core.logger import setup_logger
from groupware.core.approval import ApprovalError
from groupware.api.errors import approval_error_handler
from groupware.api.routers import approvals, notifications, health
from groupware.api.middleware.request_log import RequestLogMiddleware

settings = get_settings()

setup_logger(settings)

app = FastAPI(
    title=settings.app_name,
    description="Electronic approval workflow service",
    version=__version__,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.debug else settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLogMiddleware)

app.add_exception_handler(ApprovalError, approval_error_handler)

app.include_router(health.router)
app.include_router(approvals.router, prefix="/api")
app.include_router(notifications.router, prefix="/api")


@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "version": __version__,
        "docs": "/docs" if settings.debug else None,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("groupware.api.main:app", host="0.0.0.0", port=5000, reload=settings.debug)
