from unittest import mock

import requests
from django.core import mail
from django.core.mail import EmailMultiAlternatives
from django.test import SimpleTestCase, TestCase, override_settings

from notifications.backends import BrevoEmailBackend
from notifications.emails import EmailKind, build_message, send_templated_email
from notifications.rendering import render_rich_text


@override_settings(
    EMAIL_BACKEND="django.core.mail.backends.locmem.EmailBackend",
    DEFAULT_FROM_EMAIL="no-reply@uni.test",
)
class TemplatedEmailTests(TestCase):
    reminder = {
        "course_name": "CSC101 - Intro",
        "assignment_title": "Lab 1",
        "due_date": "Monday",
        "hours_remaining": 3,
    }

    def test_single_recipient_goes_to_to(self):
        self.assertTrue(send_templated_email("a@uni.test", EmailKind.DEADLINE_REMINDER, self.reminder))

        message = mail.outbox[0]
        self.assertEqual(message.to, ["a@uni.test"])
        self.assertEqual(message.bcc, [])
        self.assertEqual(message.subject, "[Reminder] Lab 1 is due in 3 hour(s)")
        self.assertIn("Lab 1", message.body)
        self.assertEqual(message.alternatives[0][1], "text/html")

    def test_batch_is_deduplicated_and_sent_in_bcc(self):
        send_templated_email(
            ["a@uni.test", "b@uni.test", "a@uni.test", ""],
            EmailKind.DEADLINE_REMINDER,
            self.reminder,
        )

        self.assertEqual(len(mail.outbox), 1)
        message = mail.outbox[0]
        self.assertEqual(message.to, ["no-reply@uni.test"])
        self.assertEqual(message.bcc, ["a@uni.test", "b@uni.test"])

    def test_no_recipients(self):
        self.assertFalse(send_templated_email([], EmailKind.GRADE, {}))
        self.assertEqual(mail.outbox, [])

    def test_delivery_failure_returns_false(self):
        with mock.patch.object(EmailMultiAlternatives, "send", side_effect=OSError("smtp down")):
            with self.assertLogs("notifications.emails", level="ERROR"):
                self.assertFalse(send_templated_email("a@uni.test", EmailKind.DEADLINE_REMINDER, self.reminder))

    def test_kind_accepts_plain_value(self):
        message = build_message(
            "a@uni.test",
            "grade",
            {"course_name": "X", "assignment_title": "Quiz", "final_score": 7, "total_marks": 10},
        )
        self.assertEqual(message.subject, "Grade Released: Quiz")


@override_settings(
    BREVO_API_KEY="key-123",
    BREVO_API_URL="https://api.brevo.test/v3/smtp/email",
    SENDER_NAME="Hallmark",
    DEFAULT_FROM_EMAIL="no-reply@uni.test",
)
class BrevoEmailBackendTests(SimpleTestCase):
    def message(self, **extra):
        message = EmailMultiAlternatives("Hello", "plain body", to=["a@uni.test"], **extra)
        message.attach_alternative("<p>html body</p>", "text/html")
        return message

    @mock.patch("notifications.backends.requests.Session.post")
    def test_posts_payload(self, post):
        post.return_value = mock.Mock(status_code=201)

        sent = BrevoEmailBackend().send_messages([self.message(bcc=["b@uni.test"])])

        self.assertEqual(sent, 1)
        args, kwargs = post.call_args
        self.assertEqual(args[0], "https://api.brevo.test/v3/smtp/email")
        self.assertEqual(kwargs["headers"]["api-key"], "key-123")
        payload = kwargs["json"]
        self.assertEqual(payload["sender"], {"name": "Hallmark", "email": "no-reply@uni.test"})
        self.assertEqual(payload["to"], [{"email": "a@uni.test"}])
        self.assertEqual(payload["bcc"], [{"email": "b@uni.test"}])
        self.assertEqual(payload["htmlContent"], "<p>html body</p>")
        self.assertEqual(payload["textContent"], "plain body")

    @mock.patch("notifications.backends.requests.Session.post")
    def test_http_error_raises_unless_silent(self, post):
        response = mock.Mock(status_code=401, text="unauthorized")
        response.raise_for_status.side_effect = requests.HTTPError("401")
        post.return_value = response

        with self.assertRaises(requests.HTTPError):
            BrevoEmailBackend().send_messages([self.message()])
        self.assertEqual(BrevoEmailBackend(fail_silently=True).send_messages([self.message()]), 0)


class RenderRichTextTests(SimpleTestCase):
    def test_markdown_is_rendered(self):
        html = render_rich_text("Read **chapter 2**\n\n- intro\n- summary")
        self.assertIn("<strong>chapter 2</strong>", html)
        self.assertIn("<li>intro</li>", html)

    def test_unsafe_markup_is_stripped(self):
        html = render_rich_text('<script>alert(1)</script><a href="javascript:x()">link</a>')
        self.assertNotIn("<script>", html)
        self.assertNotIn("javascript:", html)

    def test_empty(self):
        self.assertEqual(render_rich_text(None), "")
