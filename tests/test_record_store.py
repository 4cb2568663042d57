"""Tests for the Supabase record store client and the row codec."""
from datetime import date
from unittest.mock import MagicMock

import requests
from django.test import SimpleTestCase, override_settings

from apps.acolhidas.models import (
    ATTENDANCE_ABSENT,
    GROUP_INDIVIDUAL_THERAPY,
    STATUS_ACTIVE,
    STATUS_INACTIVE,
    AttendanceEntry,
    Evaluation,
    Participant,
)
from apps.store.client import (
    RecordNotFoundError,
    RecordStoreError,
    RelationNotFoundError,
    StoreNotConfigured,
    SupabaseRecordStore,
    get_record_store,
)
from apps.store.records import INVALID_NAME, participant_from_record, participant_to_record

ROW = {
    "id": 7,
    "name": "Ana",
    "email": "ana@example.com",
    "cpf": "123",
    "phone": "9999",
    "startDate": "2025-10-01",
    "endDate": None,
    "observations": None,
    "groups": ["Terapia Individual"],
    "status": "ativa",
    "departureReason": None,
    "therapistName": "Dra. Lúcia",
    "therapistPhone": None,
    "therapistEmail": "lucia@example.com",
    "isOnWaitingList": None,
    "isOnWaitingListSocial": False,
    "attendance": {"2025-11-04": {"status": "absent", "time": "14:00"}},
    "evaluations": [{"id": "e1", "date": "2025-12-01", "notes": "Evoluindo"}],
}


def _response(status_code=200, json_data=None, text=""):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = json_data
    resp.text = text
    return resp


class RecordCodecTest(SimpleTestCase):

    def test_row_to_participant(self):
        participant = participant_from_record(ROW)
        self.assertEqual(participant.id, "7")
        self.assertEqual(participant.start_date, date(2025, 10, 1))
        self.assertIsNone(participant.end_date)
        self.assertEqual(participant.observations, "")
        self.assertEqual(participant.groups, (GROUP_INDIVIDUAL_THERAPY,))
        self.assertFalse(participant.is_on_waiting_list)
        self.assertEqual(
            participant.attendance["2025-11-04"],
            AttendanceEntry(status=ATTENDANCE_ABSENT, time="14:00"),
        )
        self.assertEqual(participant.evaluations, (Evaluation(id="e1", date=date(2025, 12, 1), notes="Evoluindo"),))

    def test_lenient_defaults(self):
        participant = participant_from_record({"id": "x", "name": None, "groups": None, "status": None})
        self.assertEqual(participant.name, INVALID_NAME)
        self.assertEqual(participant.groups, ())
        self.assertEqual(participant.status, STATUS_ACTIVE)
        self.assertIsNone(participant.start_date)
        self.assertEqual(participant.attendance, {})

    def test_participant_to_record(self):
        participant = Participant(
            id="7", name="Ana", start_date=date(2025, 10, 1),
            groups=("Outro",), status=STATUS_INACTIVE,
            attendance={"2025-10-08": AttendanceEntry(status=ATTENDANCE_ABSENT)},
        )
        record = participant_to_record(participant)
        self.assertNotIn("id", record)
        self.assertEqual(record["startDate"], "2025-10-01")
        self.assertIsNone(record["endDate"])
        self.assertEqual(record["groups"], ["Outro"])
        self.assertEqual(record["attendance"], {"2025-10-08": {"status": "absent"}})
        self.assertIsNone(record["therapistName"])
        self.assertIsNone(record["departureReason"])

    def test_partial_record(self):
        participant = Participant(name="Ana", start_date=date(2025, 10, 1), status=STATUS_INACTIVE)
        record = participant_to_record(participant, fields=["attendance", "status"])
        self.assertEqual(record, {"attendance": {}, "status": STATUS_INACTIVE})


class SupabaseRecordStoreTest(SimpleTestCase):
    """Store client with a mocked HTTP session."""

    def setUp(self):
        self.store = SupabaseRecordStore(
            base_url="https://xyz.supabase.co/",
            api_key="anon-key",
        )
        self.store._session = MagicMock()

    def test_auth_headers(self):
        store = SupabaseRecordStore(base_url="https://xyz.supabase.co", api_key="anon-key")
        self.assertEqual(store._session.headers["apikey"], "anon-key")
        self.assertEqual(store._session.headers["Authorization"], "Bearer anon-key")

    def test_fetch_all(self):
        self.store._session.request.return_value = _response(json_data=[ROW])
        participants = self.store.fetch_all()
        self.assertEqual([p.name for p in participants], ["Ana"])
        self.store._session.request.assert_called_once_with(
            "GET",
            "https://xyz.supabase.co/rest/v1/acolhidas",
            params={"select": "*"},
            timeout=30,
        )

    def test_get_filters_by_id(self):
        self.store._session.request.return_value = _response(json_data=[ROW])
        self.assertEqual(self.store.get("7").id, "7")
        params = self.store._session.request.call_args[1]["params"]
        self.assertEqual(params["id"], "eq.7")

    def test_get_missing_row(self):
        self.store._session.request.return_value = _response(json_data=[])
        with self.assertRaises(RecordNotFoundError):
            self.store.get("404")

    def test_relation_not_found(self):
        self.store._session.request.return_value = _response(
            status_code=404,
            json_data={"code": "42P01", "message": 'relation "public.acolhidas" does not exist'},
            text="...",
        )
        with self.assertRaises(RelationNotFoundError) as ctx:
            self.store.fetch_all()
        self.assertEqual(ctx.exception.code, "42P01")
        self.assertEqual(ctx.exception.status_code, 404)

    def test_schema_cache_miss_is_relation_not_found(self):
        self.store._session.request.return_value = _response(
            status_code=404, json_data={"code": "PGRST205"},
        )
        with self.assertRaises(RelationNotFoundError):
            self.store.fetch_all()

    def test_other_api_error(self):
        resp = _response(status_code=500, text="boom")
        resp.json.side_effect = ValueError("not json")
        self.store._session.request.return_value = resp
        with self.assertRaises(RecordStoreError) as ctx:
            self.store.fetch_all()
        self.assertNotIsInstance(ctx.exception, RelationNotFoundError)
        self.assertEqual(ctx.exception.response_body, "boom")

    def test_network_error_wrapped(self):
        self.store._session.request.side_effect = requests.ConnectionError("down")
        with self.assertRaises(RecordStoreError):
            self.store.fetch_all()

    def test_insert_returns_saved_participant(self):
        self.store._session.request.return_value = _response(status_code=201, json_data=[ROW])
        draft = Participant(name="Ana", start_date=date(2025, 10, 1), groups=("Outro",))
        saved = self.store.insert(draft)
        self.assertEqual(saved.id, "7")
        kwargs = self.store._session.request.call_args[1]
        self.assertEqual(kwargs["headers"], {"Prefer": "return=representation"})
        self.assertEqual(kwargs["json"][0]["name"], "Ana")

    def test_insert_many_empty_skips_request(self):
        self.assertEqual(self.store.insert_many([]), [])
        self.store._session.request.assert_not_called()

    def test_update_sends_only_requested_fields(self):
        self.store._session.request.return_value = _response(json_data=[ROW])
        participant = participant_from_record(ROW)
        self.store.update("7", participant, fields=["status"])
        args, kwargs = self.store._session.request.call_args
        self.assertEqual(args[0], "PATCH")
        self.assertEqual(kwargs["params"], {"id": "eq.7"})
        self.assertEqual(kwargs["json"], {"status": "ativa"})

    def test_update_missing_row(self):
        self.store._session.request.return_value = _response(json_data=[])
        with self.assertRaises(RecordNotFoundError):
            self.store.update("404", participant_from_record(ROW), fields=["status"])


class GetRecordStoreTest(SimpleTestCase):

    @override_settings(SUPABASE_URL="", SUPABASE_KEY="")
    def test_unconfigured(self):
        with self.assertRaises(StoreNotConfigured):
            get_record_store()

    @override_settings(SUPABASE_URL="https://abc.supabase.co", SUPABASE_KEY="k", SUPABASE_TABLE="acolhidas_test")
    def test_configured(self):
        store = get_record_store()
        self.assertEqual(store.table, "acolhidas_test")
        self.assertEqual(store.base_url, "https://abc.supabase.co")
