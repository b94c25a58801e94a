# paniyal/routers/location.py
from fastapi import APIRouter, Depends, HTTPException, Query, status

from paniyal.models.user import User
from paniyal.schemas.location import GeocodeResult, ParsedLocationOut
from paniyal.services.geocoding import geocoder, GeocodingError
from paniyal.utils.auth import get_current_user
from paniyal.utils.location import parse_location

router = APIRouter(prefix="/locations", tags=["Locations"])


@router.get("/search", response_model=GeocodeResult)
def search_location(
    q: str = Query(..., min_length=1, description="Free-text place to look up"),
    current_user: User = Depends(get_current_user)
):
    """Resolve a place name to coordinates using the public geocoder"""
    try:
        result = geocoder.search(q)
    except GeocodingError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"An error occurred while searching for the location: {e}"
        )
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No results found")
    return result


@router.get("/parse", response_model=ParsedLocationOut)
def parse_coordinates(value: str = Query(..., min_length=1)):
    """Interpret a stored coordinates string the way task listings do"""
    return parse_location(value).as_dict()
