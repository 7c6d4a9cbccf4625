import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from haulbook.config import settings
from haulbook.routers import billing, dispatchers, financials, receivables, trips

logging.basicConfig(level=settings.LOG_LEVEL)

app = FastAPI(title="Haulbook API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(financials.router)
app.include_router(receivables.router)
app.include_router(billing.router)
app.include_router(dispatchers.router)
app.include_router(trips.router)


@app.get("/")
def root():
    return {"status": "ok"}


@app.get("/health")
def health():
    return {"status": "ok", "env": settings.ENV}
