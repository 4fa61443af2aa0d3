from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends

from ..deps import get_store, path_id
from ..schemas import CityIn, CityOut, CityUpdate, DeletedOut, ErrorOut
from ..storage import Storage

router = APIRouter(prefix="/api/cities", tags=["cities"], responses={400: {"model": ErrorOut}})


@router.get("", response_model=List[CityOut], response_model_exclude_none=True)
def list_cities(store: Storage = Depends(get_store)):
    return store.get_cities()


@router.post("", response_model=CityOut, response_model_exclude_none=True)
def create_city(payload: CityIn, store: Storage = Depends(get_store)):
    city_id = store.create_city(payload)
    # Reload aus der DB, damit id/created_at vom Server kommen
    return store.get_city_by_id(city_id)


@router.get("/{id}", response_model=CityOut, response_model_exclude_none=True)
def get_city(city_id: UUID = Depends(path_id), store: Storage = Depends(get_store)):
    return store.get_city_by_id(city_id)


@router.put("/{id}", response_model=CityOut, response_model_exclude_none=True)
def update_city(payload: CityUpdate, city_id: UUID = Depends(path_id), store: Storage = Depends(get_store)):
    # Gibt es den Datensatz?
    store.get_city_by_id(city_id)

    store.update_city(city_id, payload)

    # Reload für Antwort
    return store.get_city_by_id(city_id)


@router.delete("/{id}", response_model=DeletedOut)
def delete_city(city_id: UUID = Depends(path_id), store: Storage = Depends(get_store)):
    store.delete_city(city_id)
    return DeletedOut(deleted=str(city_id))
