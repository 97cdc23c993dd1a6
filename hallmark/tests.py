import uuid
from unittest import mock

from django.db import DatabaseError
from django.test import SimpleTestCase, TestCase
from django.urls import reverse

from hallmark.exceptions import ValidationError
from hallmark.ids import canonical_id, expand_ids, id_variants, parse_id, try_canonical_id


class IdHelperTests(SimpleTestCase):
    def setUp(self):
        self.value = uuid.UUID("6f1c2a34-8b7d-4e21-9a0b-1c2d3e4f5a6b")

    def test_both_forms_parse_to_the_canonical_form(self):
        self.assertEqual(canonical_id(self.value.hex), str(self.value))
        self.assertEqual(canonical_id(f" {self.value} "), str(self.value))
        self.assertEqual(parse_id(self.value), self.value)

    def test_invalid_ids(self):
        with self.assertRaisesMessage(ValidationError, "Valid Course ID is required"):
            canonical_id("abc", "Course ID")
        self.assertIsNone(try_canonical_id("abc"))
        self.assertIsNone(try_canonical_id(None))

    def test_variants(self):
        self.assertEqual(id_variants(self.value), [str(self.value), self.value.hex])
        self.assertEqual(id_variants("g1"), ["g1"])
        self.assertEqual(id_variants(None), [])

    def test_expand_ids_preserves_order_without_duplicates(self):
        other = uuid.uuid4()
        expanded = expand_ids([self.value, self.value.hex, other])
        self.assertEqual(expanded, [str(self.value), self.value.hex, str(other), other.hex])


class HealthViewTests(TestCase):
    def test_healthy(self):
        resp = self.client.get(reverse("health"))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], "healthy")
        self.assertEqual(resp.json()["database"], "connected")

    def test_unhealthy(self):
        with mock.patch("hallmark.views.connection.cursor", side_effect=DatabaseError("gone")):
            resp = self.client.get(reverse("health"))
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json()["status"], "unhealthy")
