from pydantic import BaseModel, Field
from typing import Optional, List, Literal

SourceName = Literal["geosearch", "tag_query", "structured_data"]
TypeName = Literal[
    "monument", "museum", "landmark", "religious_site", "park",
    "viewpoint", "tourist_attraction", "historic_site", "square", "other",
]

class DiscoverRequest(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    radius_m: Optional[int] = Field(default=None, gt=0, le=50_000)
    sources: Optional[List[SourceName]] = None
    types: Optional[List[TypeName]] = None
    force_refresh: bool = False

class POIOut(BaseModel):
    id: str
    name: str
    type: TypeName
    latitude: float
    longitude: float
    distance_from_origin: float
    sources: List[SourceName]
    notability_score: int
    discovered_at: str
    description: Optional[str] = None
    wikipedia_title: Optional[str] = None
    external_entity_id: Optional[str] = None
    image_url: Optional[str] = None
    website: Optional[str] = None
    opening_hours: Optional[str] = None
    heritage_status: Optional[str] = None
    year_established: Optional[int] = None
    annual_visitors: Optional[int] = None

class SourceFailureOut(BaseModel):
    source: SourceName
    kind: str
    message: str

class DiscoverResponse(BaseModel):
    pois: List[POIOut]
    failures: List[SourceFailureOut] = []
    partial: bool = False
    from_cache: bool = False
