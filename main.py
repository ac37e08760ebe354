"""
Math Taxonomy API — Main Application
FastAPI application for the curriculum taxonomy, AI problem classification
and difficulty-distribution exam assembly.
"""

from dotenv import load_dotenv
load_dotenv()

import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from database.database import engine, Base
from database import models  # noqa: F401  (registers tables on Base.metadata)
from routers import expanded_types, classifications, exams

logging.basicConfig(level=logging.INFO, format="%(asctime)s  %(levelname)s  %(message)s")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: create tables."""
    Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(
    title="Math Taxonomy API",
    description="Expanded math type taxonomy, AI classification and exam assembly",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ─── Routers ───────────────────────────────────────────────────────────────────

app.include_router(expanded_types.router)     # /expanded-types/*
app.include_router(classifications.router)    # /problems/*/classify, /classifications/*
app.include_router(exams.router)              # /exams/*


@app.get("/")
def root():
    return {
        "name": "Math Taxonomy API",
        "version": "1.0.0",
        "endpoints": {
            "docs": "/docs",
            "expanded_types": "/expanded-types",
            "tree": "/expanded-types/tree",
            "stats": "/expanded-types/stats",
            "exams": "/exams",
        },
    }


@app.get("/health")
def health_check():
    return {"status": "healthy", "service": "math-taxonomy-api"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8001)
