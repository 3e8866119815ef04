import os
import sys
import socket
import logging
import requests
from typing import Dict, List, Optional, Tuple

from webhook_launcher.local import app_globals

# (level, source, step, state)
StreamKey = Tuple[str, str, str, str]


class LokiHandler(logging.Handler):
    """
    Ships the launcher's logs to a Grafana Loki instance.

    The launcher runs a handful of steps and then execs, so there is no
    background flush thread. Records are grouped into one stream per label set
    and pushed synchronously whenever the lifecycle step changes, when a batch
    fills up, on `flush()` and on `close()`.

    Supervisor records carry `step` and `state` attributes (passed with
    `extra=`). Relayed command output has neither and is labelled with the most
    recent ones, so a build line is tagged with the step that ran the build.
    """
    def __init__(self, url: str, org_id: Optional[str] = None, batch_size: Optional[int] = None):
        """
        :param url: The base URL of the Loki instance.
        :param org_id: The tenant ID for Loki (e.g., 'X-Scope-OrgID').
        :param batch_size: Push once this many records are buffered.
        """
        super().__init__()
        self.url = f"{url.rstrip('/')}/loki/api/v1/push"
        self.org_id = org_id
        self.batch_size = batch_size or app_globals.LOG_BUFFER_BATCH_SIZE
        self.hostname = os.getenv('HOSTNAME') or socket.gethostname()

        self.step = "startup"
        self.state = "Init"
        self.streams: Dict[StreamKey, List[List[str]]] = {}
        self.pending = 0

    def emit(self, record: logging.LogRecord) -> None:
        # `Handler.handle` holds `self.lock` here, so reader threads are serialized.
        try:
            step = getattr(record, 'step', None)
            if step is not None and step != self.step:
                self._push()
                self.step = step
            self.state = getattr(record, 'state', self.state)

            if record.name.startswith('proc.'):
                source, msg = record.name.split('.', 1)[1], record.getMessage()
            else:
                source, msg = "launcher", self.format(record)

            key = (record.levelname.lower(), source, self.step, self.state)
            self.streams.setdefault(key, []).append([str(int(record.created * 1e9)), msg])
            self.pending += 1
            if self.pending >= self.batch_size:
                self._push()
        except Exception as e:
            print(f"ERROR: LokiHandler failed to process a log record: {e}", file=sys.stderr)

    def _payload(self) -> Dict[str, list]:
        return {
            "streams": [
                {
                    "stream": {
                        "job": "webhook-launcher",
                        "hostname": self.hostname,
                        "level": level,
                        "source": source,
                        "step": step,
                        "state": state,
                    },
                    "values": values,
                }
                for (level, source, step, state), values in self.streams.items()
            ]
        }

    def _push(self) -> None:
        """Sends everything buffered so far. Callers hold `self.lock`."""
        if not self.streams:
            return

        payload, count = self._payload(), self.pending
        self.streams = {}
        self.pending = 0

        headers = {'Content-Type': 'application/json'}
        if self.org_id:
            headers['X-Scope-OrgID'] = self.org_id
        try:
            response = requests.post(self.url, json=payload, headers=headers, timeout=5)
            # 204 No Content is the success status for Loki push
            if response.status_code != 204:
                print(
                    f"ERROR: Loki returned non-204 status: {response.status_code} - {response.text}",
                    file=sys.stderr,
                )
        except requests.RequestException as e:
            print(f"CRITICAL: Failed to send {count} logs to Loki: {e}", file=sys.stderr)

    def flush(self) -> None:
        with self.lock:
            self._push()

    def close(self) -> None:
        self.flush()
        super().close()
