"""Export listing and cascade deletion."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from functools import lru_cache
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from chatvault.errors import TransactionError
from chatvault.live.binder import LiveQueryBuilder, LiveQueryDefinition
from chatvault.models.conversation import Conversation
from chatvault.models.export import Export
from chatvault.schemas.export import ExportDeleteResult, ExportRead
from chatvault.services.merges import delete_orphans

logger = logging.getLogger(__name__)


@lru_cache
def exports_query() -> LiveQueryDefinition[list[ExportRead]]:
    """Live query listing exports, newest import first."""

    return (
        LiveQueryBuilder(Export, name="exports")
        .outerjoin(Conversation, Conversation.export_id == Export.id)
        .columns(
            Export.id.label("id"),
            Export.source.label("source"),
            Export.checksum.label("checksum"),
            Export.imported_at.label("imported_at"),
            Export.meta_json.label("meta_json"),
            func.count(Conversation.id).label("conversation_count"),
        )
        .group_by(Export.id)
        .order_by(Export.imported_at.desc(), Export.id.desc())
        .transform(rows_to_exports)
        .build()
    )


def rows_to_exports(rows: Iterable[dict[str, Any]]) -> list[ExportRead]:
    return [ExportRead.model_validate(row) for row in rows]


def list_exports(db: Session) -> list[ExportRead]:
    """Return every export with its conversation count."""

    return exports_query().execute(db)


def delete_export(db: Session, export_id: int) -> ExportDeleteResult | None:
    """Delete one export; the schema cascades to its conversations and their rows.

    Canonical conversations still referenced by another export survive; the ones
    left empty are removed by the orphan cleanup in the same transaction.
    """

    exists = db.scalar(select(Export.id).where(Export.id == export_id))
    if exists is None:
        return None
    try:
        db.execute(delete(Export).where(Export.id == export_id).execution_options(synchronize_session=False))
        orphans = delete_orphans(db)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("export.delete_failed export_id=%d", export_id)
        raise TransactionError(f"Deleting export {export_id} failed and was rolled back.") from exc

    logger.info("export.deleted export_id=%d orphans_removed=%d", export_id, len(orphans))
    return ExportDeleteResult(id=export_id, deleted=True, orphans_removed=orphans)
