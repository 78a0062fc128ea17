# privchat/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from privchat.api import auth, messages, realtime
from privchat.core.config import get_settings
from privchat.core.keys import get_key_pair
from privchat.core.rate_limit import limiter
from privchat.infra.database import init_db
from privchat.utils.logger import setup_logger

setup_logger()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    settings.check()
    # key pair exists before the first request; a failure here stops startup
    get_key_pair()
    init_db()
    yield


settings = get_settings()
limiter.enabled = settings.rate_limit_enabled

app = FastAPI(
    title="Privchat Backend",
    version="1.0.0",
    description="Personal multi-device chat with encrypted login and compressed storage",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.allowed_origins),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
)

# Register routers
app.include_router(auth.router, tags=["Auth"])
app.include_router(messages.router, tags=["Messages"])
app.include_router(realtime.router, tags=["Realtime"])


@app.get("/health")
def health_check():
    return {"status": "ok"}


if __name__ == "__main__":
    import os

    import uvicorn

    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "3000")))
