"""Read-only access to the `steps` table.

One point-in-time query per call: no ordering, paging or realtime channel.
Row level security on the table limits results to the signed-in user.
"""

import logging
import socket
from typing import Any, Dict, List
from urllib.parse import urlparse

from .config import Settings

logger = logging.getLogger(__name__)


class ConnectivityError(Exception):
    """No network path to the Supabase host."""


class StepStore:
    def __init__(self, client: Any, settings: Settings):
        self._client = client
        self._settings = settings

    def is_online(self) -> bool:
        """TCP probe of the Supabase host."""
        url = urlparse(self._settings.supabase_url)
        host = url.hostname
        if not host:
            return False
        port = url.port or (443 if url.scheme == "https" else 80)
        try:
            with socket.create_connection((host, port), timeout=self._settings.connect_timeout):
                return True
        except OSError as exc:
            logger.warning("Connectivity probe to %s:%s failed: %s", host, port, exc)
            return False

    def fetch_documents(self, uid: str) -> List[Dict[str, Any]]:
        """All rows whose user field equals `uid`."""
        if not self.is_online():
            raise ConnectivityError("No internet connection. Please check your network.")
        table = self._settings.steps_table
        logger.info("Querying %s where %s == %s", table, self._settings.user_field, uid)
        response = (
            self._client.table(table)
                .select("*")
                .eq(self._settings.user_field, uid)
                .execute()
        )
        return list(response.data or [])
