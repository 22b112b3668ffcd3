import unittest
from unittest import mock

import requests

from backend.mailer import (
    RESEND_API_URL,
    ContactDetails,
    EmailMessage,
    MailerError,
    ResendMailer,
    build_confirmation_email,
    build_notification_email,
)

CONTACT = ContactDetails(
    first_name="Asha",
    last_name="<Rao>",
    email="asha@example.com",
    project_type="Office\r\nBcc: someone@example.com",
    message='Budget "flexible" & soon',
)


class EmailTemplateTests(unittest.TestCase):
    def test_confirmation(self):
        message = build_confirmation_email(
            CONTACT, sender="Remap <hello@remap.test>", whatsapp_number="+91 1234"
        )
        self.assertEqual(message.to, ["asha@example.com"])
        self.assertEqual(message.subject, "Thank you for your inquiry!")
        self.assertIn("Dear Asha &lt;Rao&gt;", message.html)
        self.assertIn("&#34;flexible&#34; &amp; soon", message.html)
        self.assertIn("+91 1234", message.html)

    def test_notification_subject_is_single_line(self):
        message = build_notification_email(
            CONTACT, sender="Form <form@remap.test>", recipient="owner@remap.test"
        )
        self.assertEqual(message.to, ["owner@remap.test"])
        self.assertEqual(
            message.subject,
            "New Contact Form Submission - Office Bcc: someone@example.com",
        )
        self.assertNotIn("<Rao>", message.html)

    def test_templates_are_autoescaped(self):
        contact = ContactDetails(
            first_name="Asha",
            last_name="Rao",
            email="asha@example.com",
            project_type="Office",
            message="<script>alert(1)</script>",
        )
        for message in (
            build_confirmation_email(contact, sender="a@remap.test", whatsapp_number="1"),
            build_notification_email(contact, sender="a@remap.test", recipient="b@remap.test"),
        ):
            with self.subTest(subject=message.subject):
                self.assertNotIn("<script>", message.html)
                self.assertIn("&lt;script&gt;alert(1)&lt;/script&gt;", message.html)


class ResendMailerTests(unittest.TestCase):
    def setUp(self):
        self.session = mock.Mock()
        self.mailer = ResendMailer("re_test_key", session=self.session)
        self.message = EmailMessage(
            sender="Remap <hello@remap.test>",
            to=["asha@example.com"],
            subject="Hi",
            html="<p>Hi</p>",
        )

    def test_requires_api_key(self):
        with self.assertRaises(ValueError):
            ResendMailer("")

    def test_posts_message(self):
        response = mock.Mock(ok=True, status_code=200)
        response.json.return_value = {"id": "email-1"}
        self.session.post.return_value = response

        self.assertEqual(self.mailer.send(self.message), {"id": "email-1"})
        args, kwargs = self.session.post.call_args
        self.assertEqual(args[0], RESEND_API_URL)
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer re_test_key")
        self.assertEqual(
            kwargs["json"],
            {
                "from": "Remap <hello@remap.test>",
                "to": ["asha@example.com"],
                "subject": "Hi",
                "html": "<p>Hi</p>",
            },
        )

    def test_rejected_message(self):
        self.session.post.return_value = mock.Mock(
            ok=False, status_code=422, text="invalid from"
        )
        with self.assertRaises(MailerError):
            self.mailer.send(self.message)

    def test_transport_error(self):
        self.session.post.side_effect = requests.Timeout("slow")
        with self.assertRaises(MailerError):
            self.mailer.send(self.message)


if __name__ == "__main__":
    unittest.main()
