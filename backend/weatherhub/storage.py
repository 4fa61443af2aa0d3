from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Generator, List, Protocol
from uuid import UUID

from sqlalchemy import DateTime, delete, func, insert, literal_column, select, text, type_coerce, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .db import make_session_factory, session_scope
from .errors import NotFound, StoreError
from .models import Base, City, Prediction, Weather
from .schemas import (
    CityIn, CityOut, CityUpdate,
    HourlyAverage,
    PredictionIn, PredictionOut, PredictionUpdate,
    WeatherIn, WeatherOut, WeatherUpdate,
)
from .triggers import install_timestamp_triggers

logger = logging.getLogger(__name__)


class Storage(Protocol):
    """Persistenz-Operationen, die die Routes brauchen."""

    def init(self) -> None: ...
    def ping(self) -> None: ...

    def create_city(self, payload: CityIn) -> UUID: ...
    def get_city_by_id(self, city_id: UUID) -> CityOut: ...
    def get_cities(self) -> List[CityOut]: ...
    def update_city(self, city_id: UUID, payload: CityUpdate) -> None: ...
    def delete_city(self, city_id: UUID) -> None: ...

    def create_weather(self, payload: WeatherIn) -> UUID: ...
    def get_weather_by_id(self, weather_id: UUID) -> WeatherOut: ...
    def get_weathers(self) -> List[WeatherOut]: ...
    def get_weathers_by_city_id(self, city_id: UUID) -> List[WeatherOut]: ...
    def get_hourly_averages_by_city_id(self, city_id: UUID) -> List[HourlyAverage]: ...
    def update_weather(self, weather_id: UUID, payload: WeatherUpdate) -> None: ...
    def delete_weather(self, weather_id: UUID) -> None: ...

    def create_prediction(self, payload: PredictionIn) -> UUID: ...
    def get_prediction_by_id(self, prediction_id: UUID) -> PredictionOut: ...
    def get_predictions_by_city_id(self, city_id: UUID) -> List[PredictionOut]: ...
    def update_prediction(self, prediction_id: UUID, payload: PredictionUpdate) -> None: ...
    def delete_prediction(self, prediction_id: UUID) -> None: ...


# ---------- Row -> Record ----------
def _city_out(r: City) -> CityOut:
    return CityOut(id=r.id, name=r.name, created_at=r.created_at, updated_at=r.updated_at)


def _weather_out(r: Weather) -> WeatherOut:
    return WeatherOut(
        id=r.id,
        temperature=r.temperature,
        humidity=r.humidity,
        city_id=r.city_id,
        created_at=r.created_at,
        updated_at=r.updated_at,
    )


def _prediction_out(r: Prediction) -> PredictionOut:
    return PredictionOut(
        id=r.id,
        city_id=r.city_id,
        temperature=r.temperature,
        humidity=r.humidity,
        forecast_for=r.forecast_for,
        created_at=r.created_at,
        updated_at=r.updated_at,
    )


class SqlStore:
    """Storage auf einer SQLAlchemy-Engine (PostgreSQL oder SQLite).

    Jede Operation holt sich eine eigene Session, es gibt keine Transaktion
    über zwei Aufrufe. Insert und anschließendes Reload sind also zwei
    unabhängige Statements.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self._sessions = make_session_factory(engine)

    @contextmanager
    def _session(self) -> Generator[Session, None, None]:
        with session_scope(self._sessions) as s:
            try:
                yield s
            except SQLAlchemyError as exc:
                s.rollback()
                logger.error("store operation failed: %s", exc)
                raise StoreError(str(exc.orig) if getattr(exc, "orig", None) else str(exc)) from exc

    # ---------- Lifecycle ----------
    def ping(self) -> None:
        with self._session() as s:
            s.execute(text("SELECT 1"))

    def init(self) -> None:
        """Tabellen + Trigger anlegen (idempotent)."""
        try:
            Base.metadata.create_all(bind=self.engine)
            with self.engine.begin() as conn:
                install_timestamp_triggers(conn)
        except SQLAlchemyError as exc:
            logger.error("schema provisioning failed: %s", exc)
            raise StoreError(str(exc)) from exc

    # ---------- City ----------
    def create_city(self, payload: CityIn) -> UUID:
        with self._session() as s:
            new_id = s.execute(
                insert(City).values(name=payload.name).returning(City.id)
            ).scalar_one()
            s.commit()
        logger.info("created city %s", new_id)
        return new_id

    def get_city_by_id(self, city_id: UUID) -> CityOut:
        with self._session() as s:
            row = s.execute(select(City).where(City.id == city_id)).scalar_one_or_none()
        if row is None:
            raise NotFound(f"city [{city_id}] not found")
        return _city_out(row)

    def get_cities(self) -> List[CityOut]:
        with self._session() as s:
            rows = s.execute(select(City).order_by(City.created_at, City.id)).scalars().all()
        return [_city_out(r) for r in rows]

    def update_city(self, city_id: UUID, payload: CityUpdate) -> None:
        # updated_at setzt der Trigger, nur wenn sich name wirklich ändert
        with self._session() as s:
            s.execute(update(City).where(City.id == city_id).values(name=payload.name))
            s.commit()
        logger.debug("updated city %s", city_id)

    def delete_city(self, city_id: UUID) -> None:
        with self._session() as s:
            s.execute(delete(City).where(City.id == city_id))
            s.commit()
        logger.info("deleted city %s", city_id)

    # ---------- Weather ----------
    def create_weather(self, payload: WeatherIn) -> UUID:
        with self._session() as s:
            new_id = s.execute(
                insert(Weather)
                .values(
                    temperature=payload.temperature,
                    humidity=payload.humidity,
                    city_id=payload.city_id,
                )
                .returning(Weather.id)
            ).scalar_one()
            s.commit()
        logger.info("created weather %s for city %s", new_id, payload.city_id)
        return new_id

    def get_weather_by_id(self, weather_id: UUID) -> WeatherOut:
        with self._session() as s:
            row = s.execute(select(Weather).where(Weather.id == weather_id)).scalar_one_or_none()
        if row is None:
            raise NotFound(f"weather [{weather_id}] not found")
        return _weather_out(row)

    def get_weathers(self) -> List[WeatherOut]:
        with self._session() as s:
            rows = s.execute(select(Weather).order_by(Weather.created_at, Weather.id)).scalars().all()
        return [_weather_out(r) for r in rows]

    def get_weathers_by_city_id(self, city_id: UUID) -> List[WeatherOut]:
        with self._session() as s:
            rows = s.execute(
                select(Weather)
                .where(Weather.city_id == city_id)
                .order_by(Weather.created_at, Weather.id)
            ).scalars().all()
        return [_weather_out(r) for r in rows]

    def _hour_bucket(self, column):
        if self.engine.dialect.name == "sqlite":
            expr = func.strftime(literal_column("'%Y-%m-%d %H:00:00'"), column)
        else:
            # Literal statt Bind-Parameter, sonst passt GROUP BY nicht zum SELECT
            expr = func.date_trunc(literal_column("'hour'"), column)
        return type_coerce(expr, DateTime())

    def get_hourly_averages_by_city_id(self, city_id: UUID) -> List[HourlyAverage]:
        bucket = self._hour_bucket(Weather.created_at)
        q = (
            select(
                bucket.label("bucket_time"),
                func.avg(Weather.temperature).label("avg_temperature"),
                func.avg(Weather.humidity).label("avg_humidity"),
            )
            .where(Weather.city_id == city_id)
            .group_by(bucket)
            .order_by(bucket.asc())
        )
        with self._session() as s:
            rows = s.execute(q).mappings().all()
        return [
            HourlyAverage(
                bucket_time=r["bucket_time"],
                avg_temperature=float(r["avg_temperature"]),
                avg_humidity=float(r["avg_humidity"]),
            )
            for r in rows
        ]

    def update_weather(self, weather_id: UUID, payload: WeatherUpdate) -> None:
        values = {"temperature": payload.temperature, "humidity": payload.humidity}
        if payload.city_id is not None:
            values["city_id"] = payload.city_id
        with self._session() as s:
            s.execute(update(Weather).where(Weather.id == weather_id).values(**values))
            s.commit()
        logger.debug("updated weather %s", weather_id)

    def delete_weather(self, weather_id: UUID) -> None:
        with self._session() as s:
            s.execute(delete(Weather).where(Weather.id == weather_id))
            s.commit()
        logger.info("deleted weather %s", weather_id)

    # ---------- Prediction ----------
    def create_prediction(self, payload: PredictionIn) -> UUID:
        with self._session() as s:
            new_id = s.execute(
                insert(Prediction)
                .values(
                    city_id=payload.city_id,
                    temperature=payload.temperature,
                    humidity=payload.humidity,
                    forecast_for=payload.forecast_for,
                )
                .returning(Prediction.id)
            ).scalar_one()
            s.commit()
        logger.info("created prediction %s for city %s", new_id, payload.city_id)
        return new_id

    def get_prediction_by_id(self, prediction_id: UUID) -> PredictionOut:
        with self._session() as s:
            row = s.execute(
                select(Prediction).where(Prediction.id == prediction_id)
            ).scalar_one_or_none()
        if row is None:
            raise NotFound(f"prediction [{prediction_id}] not found")
        return _prediction_out(row)

    def get_predictions_by_city_id(self, city_id: UUID) -> List[PredictionOut]:
        with self._session() as s:
            rows = s.execute(
                select(Prediction)
                .where(Prediction.city_id == city_id)
                .order_by(Prediction.forecast_for.asc())
            ).scalars().all()
        return [_prediction_out(r) for r in rows]

    def update_prediction(self, prediction_id: UUID, payload: PredictionUpdate) -> None:
        values = {
            "temperature": payload.temperature,
            "humidity": payload.humidity,
            "forecast_for": payload.forecast_for,
        }
        if payload.city_id is not None:
            values["city_id"] = payload.city_id
        with self._session() as s:
            s.execute(update(Prediction).where(Prediction.id == prediction_id).values(**values))
            s.commit()
        logger.debug("updated prediction %s", prediction_id)

    def delete_prediction(self, prediction_id: UUID) -> None:
        with self._session() as s:
            s.execute(delete(Prediction).where(Prediction.id == prediction_id))
            s.commit()
        logger.info("deleted prediction %s", prediction_id)
