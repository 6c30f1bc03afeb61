from typing import Optional

from loguru import logger


async def log_connection(route: str, conversation_id: Optional[str], extra: Optional[dict] = None) -> None:
    """
    Single structured log entry for a chat stream opening or closing.
    Writes: route, conversation_id, and any extra fields.
    """
    log_str = f"route={route} conversation_id={conversation_id}"
    for k, v in (extra or {}).items():
        log_str += f" {k}={v}"
    logger.info(log_str)
