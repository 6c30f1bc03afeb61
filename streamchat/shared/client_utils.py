from datetime import datetime, timezone


def make_turn_stats() -> dict:
    """
    Returns a fresh stats dictionary with zeroed counters.
    The turn controller calls this once in __init__ and keeps it across turns.
    Keys: turns_started, turns_failed, events_received, malformed_payloads,
          bytes_received, last_event_at, connected_at.
    """
    return {
        "turns_started": 0,
        "turns_failed": 0,
        "events_received": 0,
        "malformed_payloads": 0,
        "bytes_received": 0,
        "last_event_at": None,
        "connected_at": datetime.now(timezone.utc).isoformat()
    }


def mark_event(stats: dict) -> None:
    stats["events_received"] += 1
    stats["last_event_at"] = datetime.now(timezone.utc).isoformat()
