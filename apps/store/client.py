"""Supabase (PostgREST) client for the participant table.

Every participant lives as one row in a single remote table. This client
covers the handful of calls the app needs: fetch everything, fetch one,
insert, bulk insert, update by id. There are no retries and no optimistic
locking: if two operators save the same record, the last write wins.

PostgREST docs: https://postgrest.org/en/stable/references/api.html
"""

import logging

import requests
from django.conf import settings

from .records import participant_from_record, participant_to_record

logger = logging.getLogger(__name__)

# Postgres "undefined_table" and PostgREST's "table not in schema cache"
RELATION_NOT_FOUND_CODES = ("42P01", "PGRST205")


class StoreNotConfigured(Exception):
    """Raised when SUPABASE_URL / SUPABASE_KEY are missing or invalid."""


class RecordStoreError(Exception):
    """Raised when a record store call fails."""

    def __init__(self, message, status_code=None, code=None, response_body=None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.response_body = response_body


class RelationNotFoundError(RecordStoreError):
    """The participant table does not exist in the remote database."""


class RecordNotFoundError(RecordStoreError):
    """No row matched the requested id."""


def validate_store_settings(url, key):
    """Return a list of human-readable problems with the store settings."""
    problems = []
    if not url:
        problems.append("SUPABASE_URL is not set.")
    elif not url.startswith("https://"):
        problems.append("SUPABASE_URL must be an https:// URL.")
    if not key:
        problems.append("SUPABASE_KEY is not set.")
    return problems


class SupabaseRecordStore:
    """Client for one PostgREST table.

    Usage:
        store = SupabaseRecordStore(
            base_url="https://xyz.supabase.co",
            api_key="eyJhbGciOi...",
        )
        participants = store.fetch_all()
    """

    def __init__(self, base_url, api_key, table="acolhidas", timeout=30):
        self.base_url = base_url.rstrip("/")
        self.table = table
        self.timeout = timeout
        self._session = requests.Session()
        self._session.headers.update({
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        })

    def _request(self, method, params=None, **kwargs):
        """Make a request against the table endpoint, raising on failure."""
        kwargs.setdefault("timeout", self.timeout)
        url = f"{self.base_url}/rest/v1/{self.table}"
        try:
            resp = self._session.request(method, url, params=params, **kwargs)
        except requests.RequestException as exc:
            logger.error("Record store %s %s failed: %s", method, self.table, exc)
            raise RecordStoreError(f"Could not reach the record store: {exc}") from exc

        if resp.status_code >= 400:
            code = None
            try:
                body = resp.json()
            except ValueError:
                body = None
            if isinstance(body, dict):
                code = body.get("code")
            error_cls = (
                RelationNotFoundError if code in RELATION_NOT_FOUND_CODES
                else RecordStoreError
            )
            logger.error(
                "Record store error %s (%s): %s %s",
                resp.status_code, code, method, self.table,
            )
            raise error_cls(
                f"API error {resp.status_code}: {method} {self.table}",
                status_code=resp.status_code,
                code=code,
                response_body=resp.text,
            )
        return resp

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def fetch_all(self):
        """Return every participant in the table."""
        rows = self._request("GET", params={"select": "*"}).json()
        return [participant_from_record(row) for row in rows or []]

    def get(self, participant_id):
        """Return one participant by id."""
        rows = self._request(
            "GET", params={"select": "*", "id": f"eq.{participant_id}"},
        ).json()
        if not rows:
            raise RecordNotFoundError(
                f"No participant with id {participant_id}", status_code=404,
            )
        return participant_from_record(rows[0])

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(self, draft):
        """Insert one draft participant; returns it with its new id."""
        created = self.insert_many([draft])
        if not created:
            raise RecordStoreError("Insert returned no rows")
        return created[0]

    def insert_many(self, drafts):
        """Insert several drafts in one request (used by CSV import)."""
        if not drafts:
            return []
        payload = [participant_to_record(d) for d in drafts]
        rows = self._request(
            "POST",
            json=payload,
            headers={"Prefer": "return=representation"},
        ).json()
        logger.info("Inserted %d participant(s)", len(rows or []))
        return [participant_from_record(row) for row in rows or []]

    def update(self, participant_id, participant, fields=None):
        """Write a participant's columns (or only `fields`) to its row.

        Returns the row as stored after the update.
        """
        rows = self._request(
            "PATCH",
            params={"id": f"eq.{participant_id}"},
            json=participant_to_record(participant, fields=fields),
            headers={"Prefer": "return=representation"},
        ).json()
        if not rows:
            raise RecordNotFoundError(
                f"No participant with id {participant_id}", status_code=404,
            )
        return participant_from_record(rows[0])


def get_record_store():
    """Build a store client from settings, or raise StoreNotConfigured."""
    problems = validate_store_settings(settings.SUPABASE_URL, settings.SUPABASE_KEY)
    if problems:
        raise StoreNotConfigured(" ".join(problems))
    return SupabaseRecordStore(
        base_url=settings.SUPABASE_URL,
        api_key=settings.SUPABASE_KEY,
        table=settings.SUPABASE_TABLE,
        timeout=settings.SUPABASE_TIMEOUT,
    )
