# api.py (thin HTTP layer over the analysis service)
import logging
from functools import lru_cache
from typing import Optional

from fastapi import Depends, FastAPI, Header, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from config import CORS_ALLOW_ORIGINS
from errors import PersistenceError, UnknownRoleError
from export import history_to_csv
from history import DEFAULT_RESUME_NAME, scope_for_user
from service import ResumeAnalysisService, build_service_from_env

logger = logging.getLogger(__name__)

app = FastAPI(title="Resume Analyzer")
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class AnalyzeRequest(BaseModel):
    resume_text: str
    role_id: str
    resume_name: Optional[str] = None


@lru_cache(maxsize=1)
def get_service() -> ResumeAnalysisService:
    return build_service_from_env()


@app.exception_handler(PersistenceError)
async def _persistence_error_handler(request, exc: PersistenceError):
    logger.error("History backend failure on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "History storage is unavailable."})


@app.get("/roles")
async def list_roles(service: ResumeAnalysisService = Depends(get_service)):
    return {"roles": service.role_summaries(), "ai_enabled": service.ai_enabled}


@app.post("/analyze")
def analyze(
    payload: AnalyzeRequest,
    x_user_id: Optional[str] = Header(None),
    service: ResumeAnalysisService = Depends(get_service),
):
    try:
        entry = service.analyze_and_record(
            payload.resume_text,
            payload.role_id,
            resume_name=payload.resume_name or DEFAULT_RESUME_NAME,
            user_id=x_user_id,
        )
    except UnknownRoleError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return entry.to_dict()


@app.get("/history")
def get_history(
    x_user_id: Optional[str] = Header(None),
    service: ResumeAnalysisService = Depends(get_service),
):
    entries = service.history.list(scope=scope_for_user(x_user_id))
    return {"entries": [entry.to_dict() for entry in entries]}


@app.get("/history/export.csv", response_class=PlainTextResponse)
def export_history(
    x_user_id: Optional[str] = Header(None),
    service: ResumeAnalysisService = Depends(get_service),
):
    entries = service.history.list(scope=scope_for_user(x_user_id))
    return PlainTextResponse(history_to_csv(entries), media_type="text/csv")


@app.get("/history/{entry_id}")
def get_history_entry(
    entry_id: str,
    x_user_id: Optional[str] = Header(None),
    service: ResumeAnalysisService = Depends(get_service),
):
    entry = service.history.get(entry_id, scope=scope_for_user(x_user_id))
    if entry is None:
        raise HTTPException(status_code=404, detail="Analysis not found.")
    return entry.to_dict()


@app.delete("/history/{entry_id}")
def delete_history_entry(
    entry_id: str,
    x_user_id: Optional[str] = Header(None),
    service: ResumeAnalysisService = Depends(get_service),
):
    if not service.history.remove(entry_id, scope=scope_for_user(x_user_id)):
        raise HTTPException(status_code=404, detail="Analysis not found.")
    return {"deleted": entry_id}


@app.delete("/history")
def clear_history(
    x_user_id: Optional[str] = Header(None),
    service: ResumeAnalysisService = Depends(get_service),
):
    service.history.clear(scope=scope_for_user(x_user_id))
    return {"cleared": True}


@app.get("/stats")
def get_stats(
    x_user_id: Optional[str] = Header(None),
    service: ResumeAnalysisService = Depends(get_service),
):
    return service.history.stats(scope=scope_for_user(x_user_id)).to_dict()


@app.get("/stats/chart")
def get_chart(
    x_user_id: Optional[str] = Header(None),
    service: ResumeAnalysisService = Depends(get_service),
):
    points = service.history.chart_series(scope=scope_for_user(x_user_id))
    return {"points": [point.to_dict() for point in points]}
