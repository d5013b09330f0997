from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from hazard_watch.errors import AlreadyDeletedError, NotFoundError
from hazard_watch.geomath import bounding_box, ensure_point
from hazard_watch.index import Clock, apply_patch, rank_within_radius, utc_now
from hazard_watch.logs import log_event
from hazard_watch.models import (
    Active,
    Deleted,
    GeoPoint,
    HazardCategory,
    HazardPatch,
    HazardRecord,
)

logger = logging.getLogger(__name__)

_COLUMNS = "id, category, description, latitude, longitude, image_ref, reporter_id, created_at, deleted_at"


def _row_to_record(row: sqlite3.Row) -> HazardRecord:
    deleted_at = row["deleted_at"]
    return HazardRecord(
        id=row["id"],
        category=HazardCategory(row["category"]),
        location=GeoPoint(latitude=row["latitude"], longitude=row["longitude"]),
        reporter_id=row["reporter_id"],
        created_at=datetime.fromisoformat(row["created_at"]),
        description=row["description"],
        image_ref=row["image_ref"],
        state=Deleted(at=datetime.fromisoformat(deleted_at)) if deleted_at else Active(),
    )


class SqliteHazardIndex:
    """Hazard index persisted in a sqlite file.

    The SQL only narrows candidates to a bounding box; inclusion and ordering
    are decided by the same haversine ranking the in-memory index uses, so
    both backends answer queries identically.
    """

    def __init__(self, db_path: Union[str, Path], clock: Optional[Clock] = None) -> None:
        self.db_path = Path(db_path)
        self._clock = clock or utc_now
        self._write_lock = threading.Lock()
        self.init_db()

    def init_db(self) -> None:
        with self.get_conn() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS hazards (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    category TEXT NOT NULL,
                    description TEXT,
                    latitude REAL NOT NULL,
                    longitude REAL NOT NULL,
                    image_ref TEXT,
                    reporter_id TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    deleted_at TEXT
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS ix_hazard_category_created ON hazards (category, created_at)")
            conn.execute("CREATE INDEX IF NOT EXISTS ix_hazard_lat_lon ON hazards (latitude, longitude)")

    @contextmanager
    def get_conn(self):
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def _fetch(self, conn: sqlite3.Connection, hazard_id: int) -> HazardRecord:
        row = conn.execute(f"SELECT {_COLUMNS} FROM hazards WHERE id=?", (hazard_id,)).fetchone()
        if row is None:
            raise NotFoundError(f"Hazard {hazard_id} not found")
        return _row_to_record(row)

    def insert(
        self,
        *,
        category: HazardCategory,
        location: GeoPoint,
        reporter_id: str,
        description: Optional[str] = None,
        image_ref: Optional[str] = None,
    ) -> HazardRecord:
        category = HazardCategory.parse(category)
        location = ensure_point(location)
        with self._write_lock, self.get_conn() as conn:
            cursor = conn.execute(
                """
                INSERT INTO hazards (category,description,latitude,longitude,image_ref,reporter_id,created_at)
                VALUES (?,?,?,?,?,?,?)
                """,
                (
                    category.value,
                    description,
                    location.latitude,
                    location.longitude,
                    image_ref,
                    reporter_id,
                    self._clock().isoformat(),
                ),
            )
            record = self._fetch(conn, cursor.lastrowid)
        log_event(logger, "hazard inserted", event="hazard_inserted", hazard_id=record.id, category=category.value)
        return record

    def update(self, hazard_id: int, patch: HazardPatch) -> HazardRecord:
        with self._write_lock, self.get_conn() as conn:
            current = self._fetch(conn, hazard_id)
            if not current.is_active:
                raise NotFoundError(f"Hazard {hazard_id} not found")
            updated = apply_patch(current, patch)
            conn.execute(
                "UPDATE hazards SET category=?, description=?, latitude=?, longitude=?, image_ref=? WHERE id=?",
                (
                    updated.category.value,
                    updated.description,
                    updated.location.latitude,
                    updated.location.longitude,
                    updated.image_ref,
                    hazard_id,
                ),
            )
        log_event(logger, "hazard updated", event="hazard_updated", hazard_id=hazard_id)
        return updated

    def soft_delete(self, hazard_id: int) -> HazardRecord:
        with self._write_lock, self.get_conn() as conn:
            current = self._fetch(conn, hazard_id)
            if not current.is_active:
                raise AlreadyDeletedError(f"Hazard {hazard_id} is already deleted")
            deleted_at = self._clock()
            conn.execute("UPDATE hazards SET deleted_at=? WHERE id=? AND deleted_at IS NULL", (deleted_at.isoformat(), hazard_id))
        log_event(logger, "hazard deleted", event="hazard_deleted", hazard_id=hazard_id)
        return replace(current, state=Deleted(at=deleted_at))

    def get(self, hazard_id: int) -> HazardRecord:
        with self.get_conn() as conn:
            return self._fetch(conn, hazard_id)

    def find_within_radius(
        self,
        center: GeoPoint,
        radius_m: float,
        category: Optional[HazardCategory] = None,
        since: Optional[datetime] = None,
    ) -> List[HazardRecord]:
        center = ensure_point(center)
        if category is not None:
            category = HazardCategory.parse(category)
        box = bounding_box(center, max(radius_m, 0.0))
        query = f"SELECT {_COLUMNS} FROM hazards WHERE deleted_at IS NULL AND latitude BETWEEN ? AND ?"
        params: list = [box.min_lat, box.max_lat]
        if box.limits_longitude:
            query += " AND longitude BETWEEN ? AND ?"
            params += [box.min_lon, box.max_lon]
        if category is not None:
            query += " AND category=?"
            params.append(category.value)
        with self.get_conn() as conn:
            rows = conn.execute(query, params).fetchall()
        return rank_within_radius((_row_to_record(row) for row in rows), center, radius_m, category, since)

    def find_by_category(self, category: HazardCategory) -> List[HazardRecord]:
        category = HazardCategory.parse(category)
        with self.get_conn() as conn:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM hazards WHERE deleted_at IS NULL AND category=? ORDER BY id",
                (category.value,),
            ).fetchall()
        return [_row_to_record(row) for row in rows]

    def active(self) -> List[HazardRecord]:
        with self.get_conn() as conn:
            rows = conn.execute(f"SELECT {_COLUMNS} FROM hazards WHERE deleted_at IS NULL ORDER BY id").fetchall()
        return [_row_to_record(row) for row in rows]

    def __len__(self) -> int:
        with self.get_conn() as conn:
            return conn.execute("SELECT COUNT(*) AS c FROM hazards WHERE deleted_at IS NULL").fetchone()["c"]
