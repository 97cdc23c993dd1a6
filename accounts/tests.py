from unittest import mock

from django.core import mail
from django.test import TestCase, override_settings
from django.urls import reverse

from accounts import services
from accounts.models import User
from hallmark.exceptions import DependencyFailure, ValidationError


@override_settings(
    EMAIL_BACKEND="django.core.mail.backends.locmem.EmailBackend",
    APP_URL="https://hallmark.test",
)
class CreateUserTests(TestCase):
    def create(self, **extra):
        data = {
            "email": "Ada@Uni.test",
            "role": User.Role.STUDENT,
            "first_name": "Ada",
            "last_name": "Lovelace",
            "identifier": "CSC/2021/001",
            "level": 300,
        }
        data.update(extra)
        return services.create_user(**data)

    def test_user_is_stored_and_welcomed(self):
        user = self.create()

        self.assertEqual(user.email, "ada@uni.test")
        self.assertEqual(user.level, 300)
        self.assertFalse(user.is_password_set)
        self.assertFalse(user.has_usable_password())
        self.assertEqual(len(mail.outbox), 1)
        message = mail.outbox[0]
        self.assertEqual(message.to, ["ada@uni.test"])
        self.assertIn("https://hallmark.test/auth/verify-email?uid=", message.alternatives[0][0])

    def test_duplicate_email_is_rejected(self):
        self.create()

        with self.assertRaisesMessage(ValidationError, "User with this email already exists"):
            self.create(email="ADA@uni.test")
        self.assertEqual(User.objects.count(), 1)

    def test_lecturer_has_no_level(self):
        user = self.create(email="turing@uni.test", role=User.Role.LECTURER, level=300)
        self.assertIsNone(user.level)

    def test_failed_welcome_email_removes_user(self):
        with mock.patch("notifications.emails.EmailMultiAlternatives.send", side_effect=ConnectionError):
            with self.assertRaises(DependencyFailure):
                self.create()

        self.assertFalse(User.objects.filter(email="ada@uni.test").exists())


class DirectoryTests(TestCase):
    def setUp(self):
        self.user = User.objects.create(
            email="grace@uni.test", first_name="Grace", last_name="Hopper", identifier="LEC-7"
        )

    def test_lookups_accept_both_id_forms(self):
        self.assertEqual(services.get_user(str(self.user.pk)), self.user)
        self.assertEqual(services.get_user(self.user.pk.hex), self.user)
        self.assertIsNone(services.get_user("not-an-id"))
        self.assertIsNone(services.get_user(None))

    def test_lookup_by_email_and_identifier(self):
        self.assertEqual(services.get_user_by_email(" Grace@uni.test "), self.user)
        self.assertEqual(services.get_user_by_identifier("LEC-7"), self.user)
        self.assertIsNone(services.get_user_by_identifier(""))

    def test_users_by_ids_skips_unknown(self):
        found = services.users_by_ids([self.user.pk.hex, "garbage", None])
        self.assertEqual(list(found), [str(self.user.pk)])


@override_settings(EMAIL_BACKEND="django.core.mail.backends.locmem.EmailBackend")
class AdminUserApiTests(TestCase):
    def setUp(self):
        self.admin = User.objects.create(
            email="admin@uni.test", role=User.Role.ADMIN, is_staff=True, first_name="Root"
        )

    def test_requires_admin(self):
        resp = self.client.get(reverse("admin-user-list"))
        self.assertEqual(resp.status_code, 403)

    def test_create_and_list(self):
        self.client.force_login(self.admin)

        resp = self.client.post(
            reverse("admin-user-list"),
            data={
                "email": "new@uni.test",
                "role": "student",
                "first_name": "New",
                "last_name": "Student",
                "level": 100,
            },
            content_type="application/json",
        )
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["user"]["email"], "new@uni.test")

        listed = self.client.get(reverse("admin-user-list")).json()["users"]
        self.assertEqual([u["email"] for u in listed], ["new@uni.test"])

    def test_student_requires_level(self):
        self.client.force_login(self.admin)

        resp = self.client.post(
            reverse("admin-user-list"),
            data={"email": "x@uni.test", "role": "student", "first_name": "X", "last_name": "Y"},
            content_type="application/json",
        )

        self.assertEqual(resp.status_code, 400)
        self.assertIn("level", resp.json())
