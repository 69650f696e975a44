"""FastAPI application: account API under API_V1_PREFIX and public author pages. Wiring only."""

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import authors
from app.api.v1 import router as v1_router
from app.core.config import settings

app = FastAPI(
    title=f"{settings.SITE_TITLE} Accounts API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.APP_ENV == "dev" else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(v1_router, prefix=settings.API_V1_PREFIX)
app.include_router(authors.router, prefix=f"/{settings.FRAG_AUTHOR}", tags=["authors"])


@app.get("/")
def root() -> dict[str, str]:
    """Root route; names the site and where its API and author pages live."""
    return {
        "message": app.title,
        "api": settings.API_V1_PREFIX,
        "authors": f"{settings.SITE_URL}/{settings.FRAG_AUTHOR}",
    }
