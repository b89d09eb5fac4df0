import json
import logging
from sqlalchemy import Text
from sqlalchemy.types import TypeDecorator

logger = logging.getLogger(__name__)


class JSONList(TypeDecorator):
    """List of strings stored as JSON array text.

    Callers always see a native list. Malformed text decodes to an empty
    list rather than raising.
    """

    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return "[]"
        return json.dumps(list(value))

    def process_result_value(self, value, dialect):
        if not value:
            return []
        try:
            decoded = json.loads(value)
        except (TypeError, ValueError):
            logger.warning(f"Discarding malformed list value: {value!r}")
            return []
        if not isinstance(decoded, list):
            return []
        return [str(entry) for entry in decoded if entry is not None]
