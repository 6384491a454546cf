from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dominant_colors import __version__
from dominant_colors.api.v1 import router as v1_router
from dominant_colors.config import config

app = FastAPI(
    title="Dominant Colors Service",
    description="Ranked, perceptually distinct dominant colors for theming and palettes",
    version=__version__
)

allowed_origins = config.allowed_origins()
if allowed_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"]
    )

app.include_router(v1_router)


@app.get("/")
async def root():
    return {"service": "dominant-colors", "version": __version__, "docs": "/docs"}
