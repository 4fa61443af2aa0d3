from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ..deps import ensure_city_exists, get_store, parse_city_id
from ..errors import MissingParameter
from ..schemas import ErrorOut, PredictionIn, PredictionOut
from ..storage import Storage

router = APIRouter(prefix="/api/predictions", tags=["predictions"], responses={400: {"model": ErrorOut}})


@router.get("", response_model=List[PredictionOut], response_model_exclude_none=True)
def list_predictions(city_id: Optional[str] = Query(None), store: Storage = Depends(get_store)):
    city = parse_city_id(city_id)
    if city is None:
        raise MissingParameter("city_id is required")
    return store.get_predictions_by_city_id(city)


@router.post("", response_model=List[PredictionOut], response_model_exclude_none=True)
def create_predictions(payload: List[PredictionIn], store: Storage = Depends(get_store)):
    # Elemente einzeln und in Reihenfolge; bei Fehler bleiben die vorherigen gespeichert
    created: List[PredictionOut] = []
    for item in payload:
        ensure_city_exists(store, item.city_id)
        prediction_id = store.create_prediction(item)
        created.append(store.get_prediction_by_id(prediction_id))
    return created
