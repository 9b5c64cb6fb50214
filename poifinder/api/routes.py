from fastapi import APIRouter, Depends, HTTPException, Request
from .schemas import DiscoverRequest, DiscoverResponse, POIOut, SourceFailureOut
from ..core.errors import AllSourcesFailed, InvalidCoordinate
from ..core.orchestrator import POIAggregator
from ..providers.base import Coordinate

router = APIRouter()

def get_aggregator(request: Request) -> POIAggregator:
    aggregator = getattr(request.app.state, "aggregator", None)
    if aggregator is None:
        raise HTTPException(status_code=503, detail="aggregator not ready")
    return aggregator

@router.get("/health")
async def health():
    return {"status": "ok"}

@router.post("/pois/discover", response_model=DiscoverResponse)
async def discover(req: DiscoverRequest, aggregator: POIAggregator = Depends(get_aggregator)):
    try:
        result = await aggregator.discover_pois(
            Coordinate(req.latitude, req.longitude),
            radius_m=req.radius_m,
            enabled_sources=req.sources,
            enabled_types=req.types,
            force_refresh=req.force_refresh,
        )
    except InvalidCoordinate as e:
        raise HTTPException(status_code=422, detail=str(e))
    except AllSourcesFailed as e:
        raise HTTPException(
            status_code=502,
            detail={"message": "all sources failed", "failures": [f.to_dict() for f in e.failures]},
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return DiscoverResponse(
        pois=[POIOut(**p.to_dict()) for p in result.pois],
        failures=[SourceFailureOut(**f.to_dict()) for f in result.failures],
        partial=result.is_partial,
        from_cache=result.from_cache,
    )
