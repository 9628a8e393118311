"""Small shared utilities (time, ids)."""

from stallsync.shared.utils.datetime import date_key, ensure_utc, parse_date_key, utc_now
from stallsync.shared.utils.generators import daily_document_id, generate_cuid

__all__ = ["daily_document_id", "date_key", "ensure_utc", "generate_cuid", "parse_date_key", "utc_now"]
