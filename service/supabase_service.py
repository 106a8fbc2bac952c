import logging
import time
from typing import Any, Callable, Dict, Iterable, List, TypeVar
from supabase import Client, create_client
from config import DatabaseCredentials

logger = logging.getLogger(__name__)

T = TypeVar("T")

_RETRYABLE_ERRORS = {
    "RemoteProtocolError",
    "ConnectError",
    "ReadTimeout",
    "WriteError",
    "NetworkError",
    "ProtocolError",
}


class SupabaseService:
    """Thin Supabase wrapper used for durable roster storage.
       Callers depend on this rather than the raw client so it can be faked in tests.
    """
    def __init__(self, creds: DatabaseCredentials, *, max_retries: int = 5, base_sleep: float = 1.0):
        # Supabase uses httpx under the hood; its INFO-level request logs are very noisy.
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)
        self._creds = creds
        self._max_retries = max(0, max_retries)
        self._base_sleep = max(0.0, base_sleep)
        self._client: Client = create_client(creds.url, creds.api_key)
        self._auth()

    def _auth(self) -> None:
        self._client.auth.sign_in_with_password({"email": self._creds.email, "password": self._creds.password})

    @staticmethod
    def _should_retry_exception(err: Exception) -> bool:
        mod = type(err).__module__
        return (mod.startswith("httpx") or mod.startswith("httpcore")) and type(err).__name__ in _RETRYABLE_ERRORS

    def _reset_client(self) -> None:
        self._client = create_client(self._creds.url, self._creds.api_key)
        self._auth()

    def _with_retries(self, op_name: str, fn: Callable[[], T]) -> T:
        attempt = 0
        while True:
            try:
                return fn()
            except Exception as err:
                attempt += 1
                if attempt > self._max_retries or not self._should_retry_exception(err):
                    raise

                # HTTP/2 connections may be dropped server-side; a fresh client gets a fresh pool.
                if type(err).__name__ == "RemoteProtocolError":
                    self._reset_client()

                sleep_time = self._base_sleep * (2 ** min(attempt, 6))
                logger.warning(
                    "Supabase %s failed (%s: %s). Retrying %s/%s in %.1fs",
                    op_name,
                    type(err).__name__,
                    err,
                    attempt,
                    self._max_retries,
                    sleep_time,
                )
                time.sleep(sleep_time)

    @property
    def client(self) -> Client:
        return self._client

    def select_eq(self, table: str, column: str, value: Any) -> List[Dict[str, Any]]:
        resp = self._with_retries(
            "select",
            lambda: self._client.table(table).select("*").eq(column, value).execute(),
        )
        return getattr(resp, "data", None) or []

    def upsert(self, table: str, rows: Iterable[Dict[str, Any]]) -> None:
        rows_list = list(rows)
        if not rows_list:
            return
        self._with_retries("upsert", lambda: self._client.table(table).upsert(rows_list).execute())

    def delete_eq(self, table: str, column: str, value: Any) -> None:
        """Delete rows where `column == value`."""
        self._with_retries(
            "delete",
            lambda: self._client.table(table).delete().eq(column, value).execute(),
        )
