import re
from typing import Any, List, Optional
from pydantic import BaseModel, Field, AliasChoices, ConfigDict, field_validator

DEFAULT_OPENING_HOURS = "Hours not available"
EXPLANATION_MAX_WORDS = 10

# ------- Shared value types -------
class Coordinate(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    lat: float = Field(..., validation_alias=AliasChoices("lat", "latitude"))
    lon: float = Field(..., validation_alias=AliasChoices("lon", "lng", "longitude"))

class TimeWindow(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: str
    end: str

# ------- Request models -------
class SearchParameters(BaseModel):
    """Everything a planning run needs besides the origin."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    search_queries: List[str] = Field(
        ..., validation_alias=AliasChoices("search_queries", "searchQueries", "categories")
    )
    budget: int = Field(..., ge=0, validation_alias=AliasChoices("budget", "budget_total"))
    distance: float = Field(5.0, gt=0, validation_alias=AliasChoices("distance", "radius"))
    time_range: TimeWindow = Field(..., validation_alias=AliasChoices("time_range", "timeRange"))

    @field_validator("search_queries", mode="before")
    @classmethod
    def _split_terms(cls, value: Any) -> Any:
        # The planning form sends "coffee, park"; keep duplicates, drop blanks.
        if isinstance(value, str):
            value = value.split(",")
        if isinstance(value, (list, tuple)):
            return [str(term).strip() for term in value if term is not None and str(term).strip()]
        return value

    @field_validator("budget", mode="before")
    @classmethod
    def _digits_only(cls, value: Any) -> Any:
        if isinstance(value, str):
            digits = re.sub(r"\D", "", value)
            if not digits:
                raise ValueError("budget must contain at least one digit")
            return int(digits)
        if isinstance(value, float):
            return int(value)
        return value

class PlanRequest(SearchParameters):
    origin: Coordinate

    def search_parameters(self) -> SearchParameters:
        return SearchParameters.model_validate(self.model_dump(exclude={"origin"}))

class RouteRequest(BaseModel):
    waypoints: List[Coordinate] = Field(default_factory=list)

# ------- Pipeline records -------
class Candidate(BaseModel):
    name: str
    lat: float
    lon: float
    distance: float = 0.0
    category: str = ""
    address: str = ""
    opening_hours: Optional[str] = DEFAULT_OPENING_HOURS

class RankedSelection(Candidate):
    # Hours only survive ranking when the model echoes them back.
    opening_hours: Optional[str] = None
    explanation: str = ""
    ranking: Optional[float] = None
    image_url: Optional[str] = None

    @field_validator("explanation", mode="before")
    @classmethod
    def _cap_explanation(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, str):
            return " ".join(value.split()[:EXPLANATION_MAX_WORDS])
        return value

    @field_validator("ranking", mode="before")
    @classmethod
    def _lenient_ranking(cls, value: Any) -> Optional[float]:
        if value is None or value == "":
            return None
        try:
            return float(value)
        except (TypeError, ValueError):
            return None

# ------- Response models -------
class FormattedLocation(BaseModel):
    name: str
    distance: str
    address: str
    times: str
    budget: str
    lat: float
    lon: float
    image_url: str = ""


class TripMarker(BaseModel):
    id: str
    coordinate: Coordinate
    title: str
    description: str
    order: int

class PlanResponse(BaseModel):
    locations: List[FormattedLocation] = Field(default_factory=list)
    markers: List[TripMarker] = Field(default_factory=list)
    budget_per_category: int
    categories: int

class RouteResponse(BaseModel):
    coordinates: List[Coordinate] = Field(default_factory=list)

class LocationSearchResponse(BaseModel):
    query: str
    results: List[FormattedLocation] = Field(default_factory=list)
