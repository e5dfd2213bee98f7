import datetime
import json
import logging

REDACTED = "***REDACTED***"


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line, for log shippers.

    Dict messages are scrubbed recursively before rendering. Order context
    passed with `extra={"order_id": ...}` becomes a top-level field.
    """

    SENSITIVE_KEYS = frozenset({
        "password", "token", "secret", "authorization",
        "cookie", "session", "key", "signature", "dsn",
    })

    CONTEXT_KEYS = ("order_id", "order_item_id", "customer_id", "flavor_id")

    def scrub(self, data):
        if isinstance(data, dict):
            return {
                k: REDACTED if str(k).lower() in self.SENSITIVE_KEYS else self.scrub(v)
                for k, v in data.items()
            }
        if isinstance(data, (list, tuple)):
            return [self.scrub(v) for v in data]
        return data

    def format(self, record):
        if isinstance(record.msg, dict):
            record.msg = self.scrub(record.msg)
        if isinstance(record.args, dict):
            record.args = self.scrub(record.args)

        payload = {
            "ts": datetime.datetime.fromtimestamp(record.created, tz=datetime.timezone.utc).isoformat(),
            "lvl": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
        }
        payload.update({
            key: str(getattr(record, key))
            for key in self.CONTEXT_KEYS
            if getattr(record, key, None) is not None
        })

        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)
