# backend/weatherhub/routes/weather.py
from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.encoders import jsonable_encoder

from ..deps import ensure_city_exists, get_store, parse_city_id, path_id
from ..errors import MissingParameter
from ..filters import created_within_hours, last_n, parse_get_last
from ..schemas import DeletedOut, ErrorOut, WeatherIn, WeatherOut, WeatherUpdate
from ..storage import Storage

router = APIRouter(prefix="/api/weather", tags=["weather"], responses={400: {"model": ErrorOut}})


# ---------- SELECT ----------
@router.get("")
def list_weather(
    city_id: Optional[str] = Query(None),
    hourly_average: Optional[str] = Query(None),
    get_last: Optional[str] = Query(None),
    store: Storage = Depends(get_store),
):
    # Liste von WeatherOut oder (hourly_average=true) von HourlyAverage
    last = parse_get_last(get_last)
    city = parse_city_id(city_id)

    if hourly_average == "true":
        if city is None:
            raise MissingParameter("city_id is required for hourly averages")
        averages = store.get_hourly_averages_by_city_id(city)
        if last is not None:
            averages = last_n(averages, last)
        return jsonable_encoder(averages)

    if city is not None:
        weathers = store.get_weathers_by_city_id(city)
    else:
        weathers = store.get_weathers()

    if last is not None:
        weathers = created_within_hours(weathers, last)

    return jsonable_encoder(weathers, exclude_none=True)


@router.get("/{id}", response_model=WeatherOut, response_model_exclude_none=True)
def get_weather(weather_id: UUID = Depends(path_id), store: Storage = Depends(get_store)):
    return store.get_weather_by_id(weather_id)


# ---------- INSERT ----------
@router.post("", response_model=WeatherOut, response_model_exclude_none=True)
def create_weather(payload: WeatherIn, store: Storage = Depends(get_store)):
    ensure_city_exists(store, payload.city_id)

    weather_id = store.create_weather(payload)
    return store.get_weather_by_id(weather_id)


# ---------- UPDATE ----------
@router.put("/{id}", response_model=WeatherOut, response_model_exclude_none=True)
def update_weather(payload: WeatherUpdate, weather_id: UUID = Depends(path_id), store: Storage = Depends(get_store)):
    store.get_weather_by_id(weather_id)

    if payload.city_id is not None:
        ensure_city_exists(store, payload.city_id)

    store.update_weather(weather_id, payload)
    return store.get_weather_by_id(weather_id)


# ---------- DELETE ----------
@router.delete("/{id}", response_model=DeletedOut)
def delete_weather(weather_id: UUID = Depends(path_id), store: Storage = Depends(get_store)):
    store.delete_weather(weather_id)
    return DeletedOut(deleted=str(weather_id))
