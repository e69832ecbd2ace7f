from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pathlib import Path
import json
import os

app = FastAPI(title="Mock Rate Server", version="1.0.0")
# Support both local development and Docker
DATA_DIR = Path("/rate_stub") if os.path.exists("/rate_stub") else Path(__file__).resolve().parents[1] / "rate_stub"

@app.get("/health")
def health(): return {"status": "ok"}

@app.get("/daily_json.js")
def daily_rates():
    file = DATA_DIR / "daily_json.json"
    if not file.exists():
        raise HTTPException(status_code=503, detail="rates not published")
    return JSONResponse(content=json.loads(file.read_text()))
