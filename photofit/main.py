from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from photofit.config import get_settings
from photofit.handlers import process_handler

logging.basicConfig(level=get_settings().log_level.upper())

app = FastAPI(title="Photofit API")

app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

app.include_router(process_handler.router)


@app.get("/api/health")
async def health():
    return {"status": "ok", "message": "Server is running"}
