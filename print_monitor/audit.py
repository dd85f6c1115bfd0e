import json
import logging
import os
import time

from print_monitor import env

logger = logging.getLogger(__name__)


def audit(event: str, payload: dict, path: str | None = None):
    path = env.AUDIT_LOG_PATH if path is None else path
    if not path:
        return
    record = {
        "ts": time.time(),
        "agent_id": env.AGENT_ID,
        "event": event,
        "payload": payload,
    }
    try:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "a", encoding="utf-8") as f:
            f.write(json.dumps(record, ensure_ascii=False, default=str) + "\n")
    except OSError as e:
        logger.warning("Could not write audit record %s to %s: %s", event, path, e)
