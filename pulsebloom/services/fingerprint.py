"""
Fingerprint cache gate: decides whether an expensive downstream step
(insight generation) has to run again for the current input.

The input dataset is canonicalized (sorted keys, order-independent lists,
UTC ISO timestamps) and hashed with SHA-256. A stored fingerprint that
matches means the last computed payload is still valid.

The gate is an optimization only. A missed canonicalization edge case
costs a redundant recompute, never corrupt data.

Concurrency: read-then-conditionally-write. Two requests racing on the
same user both compute and both upsert; the row converges to the last
write, which carries an equal or newer hash.

Public API
----------
canonicalize(dataset)                         -> bytes
compute_fingerprint(dataset, now=None)        -> Fingerprint
should_recompute(dataset, stored)             -> bool
FingerprintGate(db).lookup(user_id)           -> CachedPayload | None
FingerprintGate(db).should_recompute(...)     -> bool
FingerprintGate(db).commit(user_id, dataset, payload) -> Fingerprint
"""
from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pulsebloom.models.insight_cache import InsightCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Fingerprint:
    hash: str
    computed_at: datetime


@dataclass(frozen=True)
class CachedPayload:
    fingerprint: Fingerprint
    payload: list[dict]


# ---------------------------------------------------------------------------
# Canonical form
# ---------------------------------------------------------------------------

def _utc(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def _canonical(value: Any) -> Any:
    """Reduce value to JSON primitives with a stable, order-free layout."""
    if isinstance(value, dict):
        return {str(k): _canonical(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        items = [_canonical(v) for v in value]
        return sorted(items, key=lambda v: json.dumps(v, sort_keys=True, separators=(",", ":")))
    if isinstance(value, datetime):
        return _utc(value).strftime("%Y-%m-%dT%H:%M:%S.%fZ")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Enum):
        return _canonical(value.value)
    if isinstance(value, Decimal):
        return str(value.normalize())
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def canonicalize(dataset: Any) -> bytes:
    return json.dumps(
        _canonical(dataset),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")


def compute_fingerprint(dataset: Any, now: Optional[datetime] = None) -> Fingerprint:
    digest = hashlib.sha256(canonicalize(dataset)).hexdigest()
    return Fingerprint(hash=digest, computed_at=now or datetime.now(tz=timezone.utc))


def should_recompute(dataset: Any, stored: Optional[Fingerprint]) -> bool:
    if stored is None:
        return True
    return compute_fingerprint(dataset).hash != stored.hash


# ---------------------------------------------------------------------------
# Persistent gate
# ---------------------------------------------------------------------------

def _jload(text: Optional[str]) -> list[dict]:
    if not text:
        return []
    try:
        result = json.loads(text)
        return result if isinstance(result, list) else []
    except (ValueError, TypeError):
        return []


class FingerprintGate:
    """Fingerprint store backed by the `insight_cache` table (one row per user)."""

    def __init__(self, db: Session):
        self.db = db

    def _row(self, user_id: str) -> Optional[InsightCache]:
        return (
            self.db.query(InsightCache)
            .filter(InsightCache.user_id == user_id)
            .first()
        )

    def lookup(self, user_id: str) -> Optional[CachedPayload]:
        row = self._row(user_id)
        if row is None:
            return None
        return CachedPayload(
            fingerprint=Fingerprint(hash=row.data_hash, computed_at=row.generated_at),
            payload=_jload(row.insights),
        )

    def should_recompute(self, user_id: str, dataset: Any) -> bool:
        cached = self.lookup(user_id)
        return should_recompute(dataset, cached.fingerprint if cached else None)

    def commit(
        self,
        user_id: str,
        dataset: Any,
        payload: list[dict],
        now: Optional[datetime] = None,
    ) -> Fingerprint:
        """Upsert the fingerprint and payload for user_id."""
        fingerprint = compute_fingerprint(dataset, now)
        self._write(user_id, fingerprint, payload)
        try:
            self.db.commit()
        except IntegrityError:
            # A concurrent request inserted the row first; overwrite it.
            self.db.rollback()
            self._write(user_id, fingerprint, payload)
            self.db.commit()
        logger.info("Committed fingerprint %s… for user %s", fingerprint.hash[:12], user_id)
        return fingerprint

    def _write(self, user_id: str, fingerprint: Fingerprint, payload: list[dict]) -> None:
        encoded = json.dumps(payload, ensure_ascii=False)
        existing = self._row(user_id)
        if existing is not None:
            existing.data_hash = fingerprint.hash
            existing.insights = encoded
            existing.generated_at = fingerprint.computed_at
        else:
            self.db.add(InsightCache(
                user_id=user_id,
                data_hash=fingerprint.hash,
                insights=encoded,
                generated_at=fingerprint.computed_at,
            ))
