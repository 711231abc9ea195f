from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn
import json
import os
import logging
from typing import Optional
from .catalog import Catalog
from .config import LOG_LEVEL
from .engine import predict
from .exceptions import NoEligibleColleges
from .models import PredictionInput
from .utils import (
    load_data,
    get_catalog,
    predictions_to_frame,
    chance_distribution_plot,
    get_college_details
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# FastAPI Application
app = FastAPI(
    title="MHT-CET College Predictor",
    description="Percentile-based admission chance prediction over multi-round CAP cutoffs",
    version="4.0.0"
)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)

# Startup event
@app.on_event("startup")
async def startup_event():
    """Load the catalog snapshot on startup"""
    catalog = load_data()
    if len(catalog):
        logger.info("Catalog loaded successfully on startup")
    else:
        logger.error("Catalog is empty after startup load")

@app.post("/api/predict")
async def predict_colleges(input: PredictionInput, catalog: Catalog = Depends(get_catalog)):
    """
    Predict admission chances for the requested courses

    Args:
        input (PredictionInput): Validated prediction query

    Returns:
        Dict containing ranked predictions, per-course results, metadata and plot data
    """
    try:
        result = predict(input, catalog)
    except NoEligibleColleges as e:
        logger.info(f"No eligible colleges: {e}")
        return JSONResponse(
            status_code=404,
            content={"success": False, "message": str(e)}
        )
    except Exception as e:
        logger.error(f"Error in predict endpoint: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    plot = chance_distribution_plot(predictions_to_frame(result))
    body = result.model_dump(by_alias=True, mode="json")
    return {
        "success": True,
        "predictions": body["predictions"],
        "courseResults": body["courseResults"],
        "metadata": body["metadata"],
        "inputPercentile": input.percentile,
        "category": input.category,
        "courses": input.courses,
        "plotData": json.loads(plot.to_json()) if plot else None
    }

@app.get("/api/colleges")
async def list_colleges(
    search: Optional[str] = None,
    institution_type: Optional[str] = Query(None, alias="type"),
    city: Optional[str] = None,
    course: Optional[str] = None,
    min_cutoff: Optional[float] = Query(None, alias="minCutoff", ge=0, le=100),
    max_cutoff: Optional[float] = Query(None, alias="maxCutoff", ge=0, le=100),
    featured: Optional[bool] = None,
    sort: str = "featured",
    limit: int = Query(20, ge=1, le=100),
    page: int = Query(1, ge=1),
    catalog: Catalog = Depends(get_catalog)
):
    """List colleges with search filters, sorting and pagination"""
    result = catalog.search(
        search=search,
        institution_type=institution_type,
        city=city,
        course=course,
        min_cutoff=min_cutoff,
        max_cutoff=max_cutoff,
        featured=featured,
        sort=sort,
        limit=limit,
        page=page
    )
    return {
        "success": True,
        "colleges": [
            {
                "name": inst.name,
                "location": inst.location,
                "city": inst.city,
                "type": inst.type.value,
                "courses": [c.name for c in inst.courses],
                "cutoff": inst.cutoff.model_dump(by_alias=True, exclude_none=True) if inst.cutoff else None,
                "fees": inst.fees.formatted,
                "placements": {
                    "averagePackage": inst.placements.average_package.formatted,
                    "highestPackage": inst.placements.highest_package.formatted,
                    "placementRate": f"{inst.placements.placement_rate:g}%",
                    "topRecruiters": inst.placements.top_recruiters
                },
                "featured": inst.featured
            }
            for inst in result["colleges"]
        ],
        "pagination": result["pagination"]
    }

@app.get("/api/colleges/{name}")
async def college_details(name: str, catalog: Catalog = Depends(get_catalog)):
    """
    Retrieve detailed information about a specific college

    Args:
        name (str): Institute name

    Returns:
        Dict containing college details with per-course round trends
    """
    details = get_college_details(catalog, name)
    if "error" in details:
        raise HTTPException(status_code=404, detail=details["error"])
    return {"success": True, "college": details}

@app.get("/api/stats")
async def stats(catalog: Catalog = Depends(get_catalog)):
    """Catalog statistics"""
    try:
        return {"success": True, "stats": catalog.stats()}
    except Exception as e:
        logger.error(f"Error in stats endpoint: {e}")
        raise HTTPException(status_code=500, detail=str(e))

# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}

if __name__ == "__main__":
    uvicorn.run(
        "cet_predictor.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=True
    )
