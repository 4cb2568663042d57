"""Tests for record store configuration: system check and middleware."""
from django.test import SimpleTestCase, TestCase, override_settings

from apps.store.checks import check_record_store_settings
from apps.store.client import validate_store_settings


class ValidateStoreSettingsTest(SimpleTestCase):

    def test_valid(self):
        self.assertEqual(validate_store_settings("https://xyz.supabase.co", "key"), [])

    def test_missing_both(self):
        self.assertEqual(len(validate_store_settings("", "")), 2)

    def test_http_url_rejected(self):
        problems = validate_store_settings("http://xyz.supabase.co", "key")
        self.assertEqual(len(problems), 1)
        self.assertIn("https", problems[0])


class StoreSettingsCheckTest(SimpleTestCase):

    def test_no_errors_when_configured(self):
        self.assertEqual(check_record_store_settings(None), [])

    @override_settings(SUPABASE_URL="", SUPABASE_KEY="")
    def test_missing_settings(self):
        ids = [error.id for error in check_record_store_settings(None)]
        self.assertEqual(ids, ["efemera.E001", "efemera.E002"])

    @override_settings(SUPABASE_URL="http://insecure.example.com")
    def test_insecure_url(self):
        ids = [error.id for error in check_record_store_settings(None)]
        self.assertEqual(ids, ["efemera.E001"])


@override_settings(SUPABASE_URL="", SUPABASE_KEY="")
class StoreConfigMiddlewareTest(TestCase):

    def test_pages_blocked_until_configured(self):
        resp = self.client.get("/")
        self.assertEqual(resp.status_code, 503)
        self.assertContains(resp, "SUPABASE_URL is not set.", status_code=503)
        self.assertContains(resp, "SUPABASE_KEY is not set.", status_code=503)

    def test_reports_blocked_too(self):
        resp = self.client.get("/reports/")
        self.assertEqual(resp.status_code, 503)

    def test_django_admin_exempt(self):
        resp = self.client.get("/django-admin/login/")
        self.assertEqual(resp.status_code, 200)
