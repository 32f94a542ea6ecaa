from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, model_validator
from typing import List, Optional
from datetime import datetime
import logging
import traceback
import uvicorn

from config.logging_config import configure_logging
from config.settings import settings
from services.act_sat_conversion import act_to_sat, sat_to_act
from services.alternate_scales import act_no_science_composite, check_nmsqt, score_psat
from services.college_match import TIER_DESCRIPTIONS, group_by_tier
from services.exceptions import InsufficientDataError, ReferenceDataError
from services.models import (
    Attempt,
    CompositeScore,
    ConcordanceEntry,
    Difficulty,
    GoalData,
    GoalProgress,
    InstitutionRange,
    NMSQTCutoff,
    NMSQTResult,
    PSATScore,
    SATState,
    ScoreEntry,
    ScoreTrend,
    SuperscoreResult,
)
from services.reference_data import load_concordance_table, load_nmsqt_cutoffs, preload_reference_data
from services.sat_scoring import estimate_percentile, get_full_score
from services.score_tracking import (
    JsonFileStorage,
    ScoreGoalTracker,
    ScoreHistory,
    ScoreStorage,
    format_share_text,
)
from services.superscore import superscore

configure_logging()
logger = logging.getLogger(__name__)

# =====================================================
# Setup FastAPI
# =====================================================

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="API for estimating SAT, PSAT and ACT scores from raw module counts",
    version=settings.VERSION
)

@app.on_event("startup")
async def startup_event():
    logger.info("FastAPI application startup...")
    preload_reference_data()
    logger.info("FastAPI application startup complete.")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Error in {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"detail": f"Internal error while handling {request.url.path}: {str(exc)}"}
    )

def get_storage() -> ScoreStorage:
    """Storage for history and goals; overridden in tests."""
    return JsonFileStorage(settings.SCORE_STORE_PATH)

# =====================================================
# Models (requests)
# =====================================================

class SATScoreRequest(BaseModel):
    rw_m1: int = Field(..., ge=0, le=27, example=20)
    rw_m2: int = Field(..., ge=0, le=27, example=18)
    math_m1: int = Field(..., ge=0, le=22, example=15)
    math_m2: int = Field(..., ge=0, le=22, example=12)
    rw_difficulty: Difficulty = Difficulty.UNKNOWN
    math_difficulty: Difficulty = Difficulty.UNKNOWN

class PSATScoreRequest(BaseModel):
    rw_m1: int = Field(..., ge=0, le=27)
    rw_m2: int = Field(..., ge=0, le=27)
    math_m1: int = Field(..., ge=0, le=22)
    math_m2: int = Field(..., ge=0, le=22)
    state: Optional[str] = Field(None, example="California")

class ACTNoScienceRequest(BaseModel):
    english: int = Field(..., ge=1, le=36, example=25)
    math: int = Field(..., ge=1, le=36, example=26)
    reading: int = Field(..., ge=1, le=36, example=28)

class AttemptIn(BaseModel):
    id: str
    label: str = Field("", max_length=20)
    rw: int = Field(..., ge=200, le=800)
    math: int = Field(..., ge=200, le=800)

class SuperscoreRequest(BaseModel):
    attempts: List[AttemptIn] = Field(..., min_length=2)

class HistoryEntryRequest(BaseModel):
    total: int = Field(..., ge=400, le=1600)
    rw: int = Field(..., ge=200, le=800)
    math: int = Field(..., ge=200, le=800)
    label: Optional[str] = None

    @model_validator(mode="after")
    def check_total(self):
        if self.total != self.rw + self.math:
            raise ValueError(f"total {self.total} must equal rw + math ({self.rw + self.math})")
        return self

class GoalRequest(BaseModel):
    target_score: Optional[int] = Field(None, ge=400, le=1600, example=1400)
    target_college: str = ""

class ShareRequest(BaseModel):
    total: int = Field(..., ge=400, le=1600)
    rw: int = Field(..., ge=200, le=800)
    math: int = Field(..., ge=200, le=800)
    percentile: Optional[int] = Field(None, ge=1, le=99)

# =====================================================
# Models (responses)
# =====================================================

class SATScoreResponse(BaseModel):
    score: CompositeScore
    total_percentile: int
    timestamp: str

class PSATScoreResponse(BaseModel):
    score: PSATScore
    nmsqt: Optional[NMSQTResult] = None
    timestamp: str

class ACTNoScienceResponse(BaseModel):
    composite: int

class ConversionResponse(BaseModel):
    act: int
    sat: int

class CollegeTierGroup(BaseModel):
    tier: str
    description: str
    colleges: List[InstitutionRange]

class CollegeMatchResponse(BaseModel):
    total: int
    tiers: List[CollegeTierGroup]
    total_colleges: int

class HistoryResponse(BaseModel):
    entries: List[ScoreEntry]
    trend: Optional[ScoreTrend] = None
    total_entries: int

class ShareResponse(BaseModel):
    text: str

# =====================================================
# Endpoints
# =====================================================

@app.get("/")
async def root():
    return {
        "message": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "endpoints": {
            "sat": "/sat/score (POST)",
            "psat": "/psat/score (POST)",
            "act": "/act/no-science (POST)",
            "concordance": "/concordance (GET)",
            "superscore": "/superscore (POST)",
            "colleges": "/colleges/match (GET)",
            "history": "/history (GET, POST, DELETE)",
            "goal": "/goal (GET, PUT, DELETE)"
        }
    }

@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {
        "status": "healthy",
        "timestamp": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        "version": settings.VERSION
    }

# --- Scoring ---

@app.post("/sat/score", response_model=SATScoreResponse)
async def score_sat(request: SATScoreRequest):
    """Estimates both SAT sections and the composite total from raw module counts."""
    score = get_full_score(SATState(**request.model_dump()))
    # Percentile of the total, read off the section curve at the mean section score
    total_percentile = estimate_percentile(score.total // 2)
    return SATScoreResponse(
        score=score,
        total_percentile=total_percentile,
        timestamp=datetime.now().isoformat()
    )

@app.post("/psat/score", response_model=PSATScoreResponse)
async def score_psat_endpoint(request: PSATScoreRequest):
    score = score_psat(request.rw_m1, request.rw_m2, request.math_m1, request.math_m2)
    nmsqt = check_nmsqt(score.selection_index, request.state) if request.state else None
    return PSATScoreResponse(score=score, nmsqt=nmsqt, timestamp=datetime.now().isoformat())

@app.get("/psat/cutoffs", response_model=List[NMSQTCutoff])
async def get_psat_cutoffs():
    return list(load_nmsqt_cutoffs())

@app.post("/act/no-science", response_model=ACTNoScienceResponse)
async def score_act_no_science(request: ACTNoScienceRequest):
    return ACTNoScienceResponse(
        composite=act_no_science_composite(request.english, request.math, request.reading)
    )

# --- Concordance ---

@app.get("/concordance", response_model=List[ConcordanceEntry])
async def get_concordance_table():
    return list(load_concordance_table())

@app.get("/concordance/act-to-sat/{act}", response_model=ConversionResponse)
async def convert_act_to_sat(act: int):
    sat = act_to_sat(act)
    if sat is None:
        raise HTTPException(status_code=404, detail=f"No concordant SAT score for ACT {act}")
    return ConversionResponse(act=act, sat=sat)

@app.get("/concordance/sat-to-act/{sat}", response_model=ConversionResponse)
async def convert_sat_to_act(sat: int):
    if sat < 400 or sat > 1600:
        raise HTTPException(status_code=422, detail="SAT total must be between 400 and 1600")
    return ConversionResponse(act=sat_to_act(sat), sat=sat)

# --- Superscore & college match ---

@app.post("/superscore", response_model=SuperscoreResult)
async def get_superscore(request: SuperscoreRequest):
    try:
        attempts = [Attempt(**a.model_dump()) for a in request.attempts]
        return superscore(attempts)
    except InsufficientDataError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.get("/colleges/match", response_model=CollegeMatchResponse)
async def match_colleges(total: int = Query(..., ge=400, le=1600)):
    """Groups the bundled colleges into target, safety and reach for a total score."""
    try:
        grouped = group_by_tier(total)
    except (InsufficientDataError, ReferenceDataError) as e:
        logger.error(f"Error in /colleges/match: {e}\n{traceback.format_exc()}")
        raise HTTPException(status_code=500, detail=f"College data unavailable: {str(e)}")

    tiers = [
        CollegeTierGroup(tier=tier.value, description=TIER_DESCRIPTIONS[tier], colleges=colleges)
        for tier, colleges in grouped.items()
    ]
    return CollegeMatchResponse(
        total=total,
        tiers=tiers,
        total_colleges=sum(len(g.colleges) for g in tiers)
    )

# --- History ---

@app.get("/history", response_model=HistoryResponse)
async def get_history(storage: ScoreStorage = Depends(get_storage)):
    history = ScoreHistory(storage)
    entries = history.entries()
    return HistoryResponse(entries=entries, trend=history.trend(), total_entries=len(entries))

@app.post("/history", response_model=ScoreEntry, status_code=201)
async def add_history_entry(request: HistoryEntryRequest, storage: ScoreStorage = Depends(get_storage)):
    return ScoreHistory(storage).add_entry(request.total, request.rw, request.math, request.label)

@app.get("/history/trend", response_model=Optional[ScoreTrend])
async def get_history_trend(storage: ScoreStorage = Depends(get_storage)):
    return ScoreHistory(storage).trend()

@app.delete("/history/{entry_id}")
async def delete_history_entry(entry_id: str, storage: ScoreStorage = Depends(get_storage)):
    if not ScoreHistory(storage).remove_entry(entry_id):
        raise HTTPException(status_code=404, detail=f"History entry '{entry_id}' not found.")
    return {"deleted": entry_id}

@app.delete("/history")
async def clear_history(storage: ScoreStorage = Depends(get_storage)):
    ScoreHistory(storage).clear()
    return {"cleared": True}

# --- Goal ---

@app.get("/goal", response_model=GoalData)
async def get_goal(storage: ScoreStorage = Depends(get_storage)):
    goal = ScoreGoalTracker(storage).get_goal()
    if goal is None:
        raise HTTPException(status_code=404, detail="No score goal set.")
    return goal

@app.put("/goal", response_model=GoalData)
async def set_goal(request: GoalRequest, storage: ScoreStorage = Depends(get_storage)):
    """
    Sets the target score. When only a college is given, its average admitted
    score becomes the target.
    """
    tracker = ScoreGoalTracker(storage)
    if request.target_score is not None:
        return tracker.set_goal(request.target_score, request.target_college)
    if not request.target_college:
        raise HTTPException(status_code=422, detail="Provide a target_score or a target_college.")
    goal = tracker.set_goal_for_college(request.target_college)
    if goal is None:
        raise HTTPException(status_code=404, detail=f"College '{request.target_college}' not found.")
    return goal

@app.delete("/goal")
async def clear_goal(storage: ScoreStorage = Depends(get_storage)):
    ScoreGoalTracker(storage).clear_goal()
    return {"cleared": True}

@app.get("/goal/progress", response_model=GoalProgress)
async def get_goal_progress(
    current_total: int = Query(..., ge=400, le=1600),
    storage: ScoreStorage = Depends(get_storage)
):
    progress = ScoreGoalTracker(storage).progress(current_total)
    if progress is None:
        raise HTTPException(status_code=404, detail="No score goal set.")
    return progress

# --- Sharing ---

@app.post("/share", response_model=ShareResponse)
async def share_score(request: ShareRequest):
    percentile = request.percentile or estimate_percentile(request.total // 2)
    return ShareResponse(text=format_share_text(request.total, request.rw, request.math, percentile))

def main():
    uvicorn.run("app:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)

if __name__ == "__main__":
    main()
