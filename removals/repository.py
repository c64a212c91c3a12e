"""
QuoteRecord persistence — one document per customer session.

Both repositories are bound to a single session id and expose the same two
operations: load() and save(record). load() raises QuoteRecordNotFound when
nothing was stored, which the HTTP layer turns into "start over at the
inventory stage".
"""

import uuid
from datetime import datetime

from pydantic import ValidationError
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified

from . import models
from .errors import QuoteRecordNotFound
from .quote_record import QuoteRecord, Stage


def new_session_id() -> str:
    return str(uuid.uuid4())


class SqlQuoteRepository:
    """quote_sessions table, record stored in a JSON column."""

    def __init__(self, db: Session, session_id: str):
        self.db = db
        self.session_id = session_id

    def _row(self):
        return self.db.query(models.QuoteSession).filter(
            models.QuoteSession.id == self.session_id
        ).first()

    def exists(self) -> bool:
        return self._row() is not None

    def load(self) -> QuoteRecord:
        row = self._row()
        if not row or not row.record_json:
            raise QuoteRecordNotFound(self.session_id)
        try:
            record = QuoteRecord.from_json_dict(row.record_json)
        except ValidationError as e:
            # A document we can't read is as good as missing
            raise QuoteRecordNotFound(self.session_id) from e
        record.session_id = self.session_id
        return record

    def save(self, record: QuoteRecord) -> QuoteRecord:
        record.session_id = self.session_id
        row = self._row()
        if row is None:
            row = models.QuoteSession(id=self.session_id, created_at=record.created_at)
            self.db.add(row)

        # Use flag_modified for JSON columns on SQLite
        row.record_json = record.to_json_dict()
        row.stage = record.stage.value
        row.quote_reference = record.quote_reference
        if record.stage == Stage.ACCEPTED:
            row.status = models.SessionStatus.ACCEPTED.value
            row.accepted_quote_json = record.accepted_quote
            flag_modified(row, "accepted_quote_json")
        else:
            row.status = models.SessionStatus.ACTIVE.value
        row.updated_at = datetime.utcnow()
        flag_modified(row, "record_json")
        self.db.commit()
        return record


class InMemoryQuoteRepository:
    """Dict-backed store for tests and scripts. Records are copied both ways."""

    def __init__(self, session_id: str, store: dict = None):
        self.session_id = session_id
        self.store = {} if store is None else store

    def exists(self) -> bool:
        return self.session_id in self.store

    def load(self) -> QuoteRecord:
        data = self.store.get(self.session_id)
        if data is None:
            raise QuoteRecordNotFound(self.session_id)
        return QuoteRecord.from_json_dict(data)

    def save(self, record: QuoteRecord) -> QuoteRecord:
        record.session_id = self.session_id
        self.store[self.session_id] = record.to_json_dict()
        return record
