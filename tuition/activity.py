import logging
from collections.abc import Mapping
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from tuition import db
from tuition.models import ActivityLog

logger = logging.getLogger(__name__)


def log_activity(action, entity_type, entity_id, description, actor=None, details=None):
    """Record an audit entry in its own commit. Failures are logged, never raised."""
    if not current_app.config.get('ACTIVITY_LOG_ENABLED', True):
        return None
    if details is not None and not isinstance(details, Mapping):
        logger.warning(f"Dropping non-mapping activity details for {entity_type}:{entity_id}")
        details = None
    meta = dict(details or {})
    if actor is not None:
        meta.setdefault('role', actor.role)
    try:
        entry = ActivityLog(
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None,
            description=description,
            user_id=actor.user_id if actor is not None else None,
            details=meta,
        )
        db.session.add(entry)
        db.session.commit()
        return entry
    except SQLAlchemyError as _e:
        db.session.rollback()
        logger.warning(f"Failed to write activity log for {action} {entity_type}: {_e}")
        return None
