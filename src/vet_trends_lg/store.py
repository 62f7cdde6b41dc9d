"""
Per-patient trend store.

Each stored entry has the persisted shape ``{patient, observations, updatedAt}``
with camelCase observation dicts. Merging an extraction into a patient's entry
is a read-merge-write cycle guarded by a per-patient lock, so concurrent
merges for the same patient are applied one after the other and none is lost.
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional
from sqlalchemy import select

from .db import bootstrap_db, get_engine, make_session_factory
from .merge import merge_observations
from .models import PatientTrends
from .records import ExtractionResult, Observation, PatientInfo

logger = logging.getLogger(__name__)


def _iso(ts: datetime | None) -> str | None:
    if ts is None:
        return None
    if ts.tzinfo is None:
        # sqlite hands back naive timestamps; they were written as UTC
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.isoformat().replace("+00:00", "Z")


def _as_dict(obs) -> dict:
    if isinstance(obs, Observation):
        return obs.model_dump(by_alias=True)
    return dict(obs)


class TrendStore:
    def __init__(self, session_factory):
        self.SessionLocal = session_factory
        self._locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    @classmethod
    def from_path(cls, path: str) -> "TrendStore":
        engine = get_engine(path)
        bootstrap_db(engine)
        return cls(make_session_factory(engine))

    def _lock_for(self, patient_id: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(patient_id)
            if lock is None:
                lock = self._locks[patient_id] = threading.Lock()
            return lock

    def merge_result(self, result: ExtractionResult) -> Optional[dict]:
        """Merge a successful extraction into its patient's entry; None when there is nothing to key it on."""
        if not result.ok or result.patient is None or not result.patient.id:
            return None
        return self.merge(result.patient, result.observations)

    def merge(self, patient: PatientInfo, observations: Iterable) -> dict:
        if not patient.id:
            raise ValueError("patient id is required to store trends")
        incoming = [_as_dict(o) for o in observations]
        with self._lock_for(patient.id):
            s = self.SessionLocal()
            try:
                row = s.execute(
                    select(PatientTrends).where(PatientTrends.patient_id == patient.id)
                ).scalar_one_or_none()
                if row is None:
                    row = PatientTrends(patient_id=patient.id, observations=[])
                    s.add(row)
                before = len(row.observations or [])
                # new list object so the JSON column is flagged dirty
                row.observations = merge_observations(list(row.observations or []), incoming)
                if patient.name:
                    row.name = patient.name
                if patient.owner_last_name:
                    row.owner_last_name = patient.owner_last_name
                row.updated_at = datetime.now(timezone.utc)
                s.commit()
                logger.info(
                    "Merged %d incoming observations for patient %s (%d -> %d)",
                    len(incoming), patient.id, before, len(row.observations),
                )
                return self._to_payload(row)
            except Exception:
                s.rollback()
                raise
            finally:
                s.close()

    def _to_payload(self, row: PatientTrends) -> dict:
        patient = PatientInfo(name=row.name, id=row.patient_id, owner_last_name=row.owner_last_name)
        return {
            "patient": patient.model_dump(by_alias=True),
            "observations": list(row.observations or []),
            "updatedAt": _iso(row.updated_at),
        }

    def export(self, patient_id: str) -> Optional[dict]:
        s = self.SessionLocal()
        try:
            row = s.execute(
                select(PatientTrends).where(PatientTrends.patient_id == patient_id)
            ).scalar_one_or_none()
            return self._to_payload(row) if row is not None else None
        finally:
            s.close()

    def load_observations(self, patient_id: str) -> List[Observation]:
        payload = self.export(patient_id)
        if payload is None:
            return []
        return [Observation.model_validate(o) for o in payload["observations"]]

    def list_patients(self) -> List[dict]:
        s = self.SessionLocal()
        try:
            rows = s.execute(
                select(PatientTrends).order_by(PatientTrends.updated_at.desc())
            ).scalars().all()
            return [
                {
                    "patient_id": r.patient_id,
                    "name": r.name,
                    "owner_last_name": r.owner_last_name,
                    "observations": len(r.observations or []),
                    "updated_at": _iso(r.updated_at),
                }
                for r in rows
            ]
        finally:
            s.close()

    def remove(self, patient_id: str) -> bool:
        with self._lock_for(patient_id):
            s = self.SessionLocal()
            try:
                row = s.execute(
                    select(PatientTrends).where(PatientTrends.patient_id == patient_id)
                ).scalar_one_or_none()
                if row is None:
                    return False
                s.delete(row)
                s.commit()
                return True
            except Exception:
                s.rollback()
                raise
            finally:
                s.close()

    def clear(self) -> int:
        s = self.SessionLocal()
        try:
            n = s.query(PatientTrends).delete()
            s.commit()
            return n
        except Exception:
            s.rollback()
            raise
        finally:
            s.close()
