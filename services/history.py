import logging
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError as SchemaError

from models.schemas import Call, CallStatus

logger = logging.getLogger(__name__)

TABS = ("completed", "active")

def parse_calls(records: List[Dict[str, Any]]) -> List[Call]:
    """Backend records as Call models, dropping the ones that do not parse."""
    calls = []
    for record in records or []:
        try:
            calls.append(Call.model_validate(record))
        except SchemaError as e:
            record_id = record.get("id") if isinstance(record, dict) else None
            logger.warning(f"Skipping malformed call record {record_id}: {str(e)}")
    return calls

def filter_calls(calls: Iterable[Call], tab: str = "completed", search: str = "") -> List[Call]:
    """Calls shown under a history tab, narrowed by a search term.

    The completed tab holds finished calls and the active tab everything
    else. The search term matches the destination number, the origin
    number or the provider call id, ignoring case.
    """
    if tab not in TABS:
        raise ValueError(f"Unknown tab: {tab}")

    if tab == "completed":
        filtered = [c for c in calls if c.status == CallStatus.COMPLETED]
    else:
        filtered = [c for c in calls if c.status != CallStatus.COMPLETED]

    term = (search or "").strip().lower()
    if term:
        filtered = [
            c for c in filtered
            if term in c.phone_number.lower()
            or term in (c.from_number or "").lower()
            or term in (c.bland_call_id or "").lower()
        ]
    return filtered

def call_stats(calls: Iterable[Call]) -> Dict[str, int]:
    calls = list(calls)
    return {
        "total": len(calls),
        "completed": sum(1 for c in calls if c.status == CallStatus.COMPLETED),
        "in_progress": sum(1 for c in calls if c.status == CallStatus.IN_PROGRESS),
        "not_answered": sum(1 for c in calls if c.status == CallStatus.NOT_ANSWERED),
    }

def format_duration(seconds: Optional[int]) -> str:
    if not seconds:
        return "0m 0s"
    return f"{seconds // 60}m {seconds % 60}s"

def format_clock(seconds: Optional[float]) -> str:
    # m:ss, as shown in the details view
    seconds = int(seconds or 0)
    return f"{seconds // 60}:{seconds % 60:02d}"

def short_call_id(bland_call_id: Optional[str]) -> str:
    if not bland_call_id:
        return "N/A"
    return f"{bland_call_id[:8]}..."
