import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from letsplay.base_service import BaseService
from letsplay.auth.middleware import authentication_gate
from letsplay.auth.router import router as auth_router, users_router, start_auth_service
from letsplay.errors import register_exception_handlers
from letsplay.products.router import router as products_router

DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://localhost:4200,http://localhost:8081"
CORS_ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ALLOWED_ORIGINS", DEFAULT_CORS_ORIGINS).split(",")
    if origin.strip()
]

# Create shared base service instance
base_service = BaseService("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI.
    Handles startup and shutdown events.
    """
    base_service.log_event("service.startup", {"service": "main"})
    await start_auth_service()
    yield
    base_service.log_event("service.shutdown", {"service": "main"})


# Create main FastAPI app with lifespan
app = FastAPI(
    title="Let's Play API",
    description="Users and products with JWT authentication and role-based access control",
    version="1.0.0",
    lifespan=lifespan
)

register_exception_handlers(app)

# Authentication gate runs before routing
app.middleware("http")(authentication_gate)

# CORS wraps the gate so rejections still carry CORS headers
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"],
    allow_headers=["*"],
    expose_headers=["Authorization", "Content-Type", "X-Total-Count"],
    max_age=3600,
)

# Include routers with prefixes
app.include_router(auth_router, prefix="/api/auth")
app.include_router(users_router, prefix="/api/users")
app.include_router(products_router, prefix="/api/products")


@app.get("/", tags=["root"])
async def root():
    """Root endpoint returning API information."""
    return base_service.api_response(
        {
            "name": "Let's Play API",
            "version": app.version,
            "services": ["auth", "users", "products"],
        },
        message="Let's Play API",
    )


@app.get("/health", tags=["health"])
async def health_check():
    """Overall system health check."""
    return base_service.api_response(
        {
            "services": {
                "auth": "online",
                "users": "online",
                "products": "online"
            }
        },
        message="System health",
    )


# For running directly with uvicorn
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("letsplay.main:app", host="0.0.0.0", port=8000, reload=True)
