# authx/tests/test_password_reset_api.py
import re

from django.contrib.auth import get_user_model
from django.core import mail
from django.core.cache import cache

from rest_framework.test import APITestCase, APIClient
from rest_framework import status

from authx.models import EmailVerification

User = get_user_model()


class PasswordResetApiTests(APITestCase):
    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.base_api = "/api/auth/"
        self.user = User.objects.create_user(
            username="member@x.com", email="member@x.com", password="Old-passw0rd!",
        )

    def _request_code(self, email="member@x.com"):
        return self.client.post(f"{self.base_api}password/forgot/", {"email": email}, format="json")

    def _mailed_code(self):
        return re.search(r"\b(\d{6})\b", mail.outbox[-1].body).group(1)

    def test_forgot_verify_reset_login(self):
        resp = self._request_code("Member@X.com")
        self.assertEqual(resp.status_code, status.HTTP_202_ACCEPTED, resp.content)
        self.assertEqual(mail.outbox[0].to, ["member@x.com"])
        otp = self._mailed_code()
        self.assertNotIn(otp, resp.content.decode())

        resp = self.client.post(
            f"{self.base_api}password/verify/", {"email": "member@x.com", "otp": otp}, format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.content)
        self.assertTrue(resp.data["valid"])

        resp = self.client.post(
            f"{self.base_api}password/reset/",
            {"email": "member@x.com", "otp": otp, "new_password": "N3w-passw0rd!"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.content)
        self.assertFalse(EmailVerification.objects.exists())

        resp = self.client.post(
            f"{self.base_api}login/", {"email": "member@x.com", "password": "Old-passw0rd!"}, format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST, resp.content)

        resp = self.client.post(
            f"{self.base_api}login/", {"email": "member@x.com", "password": "N3w-passw0rd!"}, format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.content)
        self.assertIn("access", resp.data)

    def test_unknown_email_gets_same_answer_and_no_mail(self):
        known = self._request_code()
        unknown = self._request_code("ghost@x.com")

        self.assertEqual(unknown.status_code, status.HTTP_202_ACCEPTED, unknown.content)
        self.assertEqual(unknown.data, known.data)
        self.assertEqual(len(mail.outbox), 1)
        self.assertFalse(EmailVerification.objects.filter(email="ghost@x.com").exists())

    def test_wrong_code_is_refused(self):
        self._request_code()
        otp = self._mailed_code()
        wrong = "1" + otp[1:] if otp[0] != "1" else "2" + otp[1:]

        resp = self.client.post(
            f"{self.base_api}password/reset/",
            {"email": "member@x.com", "otp": wrong, "new_password": "N3w-passw0rd!"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST, resp.content)
        self.assertEqual(resp.data["code"], "verification_mismatch")

        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password("Old-passw0rd!"))

    def test_weak_password_is_refused_before_code_is_spent(self):
        self._request_code()
        otp = self._mailed_code()

        resp = self.client.post(
            f"{self.base_api}password/reset/",
            {"email": "member@x.com", "otp": otp, "new_password": "123"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST, resp.content)
        self.assertTrue(EmailVerification.objects.filter(email="member@x.com").exists())

    def test_reset_rejects_unknown_fields(self):
        resp = self.client.post(
            f"{self.base_api}password/reset/",
            {"email": "member@x.com", "otp": "123456", "new_password": "N3w-passw0rd!", "is_staff": True},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST, resp.content)
