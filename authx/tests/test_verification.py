# authx/tests/test_verification.py
from datetime import timedelta
from unittest import mock

from django.contrib.auth import get_user_model
from django.db import IntegrityError
from django.test import TestCase, override_settings
from django.utils import timezone

from authx import verification
from authx.models import EmailVerification
from core.exceptions import (
    EmailAlreadyRegistered,
    VerificationMismatch,
    VerificationNotFound,
)

User = get_user_model()


class VerificationStoreTests(TestCase):
    def test_issue_creates_numeric_code_with_expiry(self):
        now = timezone.now()
        otp = verification.issue("A@X.com", now=now)

        self.assertEqual(len(otp), 6)
        self.assertTrue(otp.isdigit())
        self.assertNotEqual(otp[0], "0")

        record = EmailVerification.objects.get(email="a@x.com")
        self.assertEqual(record.otp, otp)
        self.assertEqual(record.expires_at, now + timedelta(minutes=10))

    @override_settings(VERIFICATION_CODE_LENGTH=8)
    def test_code_length_is_configurable(self):
        otp = verification.issue("len@x.com")
        self.assertEqual(len(otp), 8)

    def test_issue_replaces_previous_code(self):
        with mock.patch.object(verification, "generate_code", side_effect=["111111", "222222"]):
            verification.issue("a@x.com")
            verification.issue("a@x.com")

        self.assertEqual(EmailVerification.objects.filter(email="a@x.com").count(), 1)
        with self.assertRaises(VerificationMismatch):
            verification.verify("a@x.com", "111111")
        verification.verify("a@x.com", "222222")

    def test_verify_success_leaves_record_intact(self):
        otp = verification.issue("a@x.com")
        record = verification.verify("a@x.com", otp)

        self.assertEqual(record.email, "a@x.com")
        self.assertTrue(EmailVerification.objects.filter(email="a@x.com").exists())

    def test_verify_is_case_insensitive_on_email(self):
        otp = verification.issue("a@x.com")
        verification.verify("  A@X.COM ", otp)

    def test_verify_unknown_email_is_not_found(self):
        with self.assertRaises(VerificationNotFound):
            verification.verify("nobody@x.com", "123456")

    def test_verify_wrong_code_is_mismatch(self):
        with mock.patch.object(verification, "generate_code", return_value="123456"):
            verification.issue("a@x.com")

        with self.assertRaises(VerificationMismatch):
            verification.verify("a@x.com", "654321")

    def test_expired_code_is_treated_as_absent(self):
        issued_at = timezone.now() - timedelta(minutes=30)
        otp = verification.issue("a@x.com", now=issued_at)

        with self.assertRaises(VerificationNotFound):
            verification.verify("a@x.com", otp)

        # Discarded on read, without waiting for the purge task
        self.assertFalse(EmailVerification.objects.filter(email="a@x.com").exists())

    def test_code_exactly_at_expiry_is_absent(self):
        now = timezone.now()
        otp = verification.issue("a@x.com", now=now)

        with self.assertRaises(VerificationNotFound):
            verification.verify("a@x.com", otp, now=now + timedelta(minutes=10))

    def test_consume_deletes_record(self):
        otp = verification.issue("a@x.com")
        verification.verify("a@x.com", otp)

        self.assertTrue(verification.consume("a@x.com"))
        self.assertFalse(verification.consume("a@x.com"))
        with self.assertRaises(VerificationNotFound):
            verification.verify("a@x.com", otp)

    def test_purge_expired_only_removes_stale_records(self):
        old = timezone.now() - timedelta(hours=1)
        verification.issue("old@x.com", now=old)
        verification.issue("fresh@x.com")

        self.assertEqual(verification.purge_expired(), 1)
        self.assertEqual(
            list(EmailVerification.objects.values_list("email", flat=True)),
            ["fresh@x.com"],
        )

    def test_concurrent_first_issue_overwrites_instead_of_failing(self):
        EmailVerification.objects.create(
            email="race@x.com", otp="999999", expires_at=timezone.now() + timedelta(minutes=10),
        )

        # The other writer's INSERT landed between our lookup and our INSERT
        with mock.patch.object(EmailVerification.objects, "update_or_create", side_effect=IntegrityError("dup")):
            otp = verification.issue("race@x.com")

        self.assertEqual(EmailVerification.objects.filter(email="race@x.com").count(), 1)
        self.assertEqual(EmailVerification.objects.get(email="race@x.com").otp, otp)
        verification.verify("race@x.com", otp)

    def test_codes_are_scoped_by_purpose(self):
        signup_otp = verification.issue("a@x.com")
        reset_otp = verification.issue("a@x.com", purpose=verification.PASSWORD_RESET)

        self.assertEqual(EmailVerification.objects.filter(email="a@x.com").count(), 2)
        verification.verify("a@x.com", signup_otp)
        verification.verify("a@x.com", reset_otp, purpose=verification.PASSWORD_RESET)

        verification.consume("a@x.com")
        with self.assertRaises(VerificationNotFound):
            verification.verify("a@x.com", signup_otp)
        verification.verify("a@x.com", reset_otp, purpose=verification.PASSWORD_RESET)


class SignupTests(TestCase):
    def _signup(self, otp, email="new@x.com"):
        return verification.signup(
            email=email,
            otp=otp,
            name="New Person",
            password="Str0ng-passw0rd!",
            role=User.ROLE_ATTENDEE,
            college="Somewhere College",
        )

    def test_signup_creates_account_and_consumes_code(self):
        otp = verification.issue("new@x.com")
        user = self._signup(otp)

        self.assertEqual(user.email, "new@x.com")
        self.assertEqual(user.username, "new@x.com")
        self.assertEqual(user.college, "Somewhere College")
        self.assertIsNone(user.organization)
        self.assertTrue(user.check_password("Str0ng-passw0rd!"))
        self.assertFalse(EmailVerification.objects.filter(email="new@x.com").exists())

    def test_signup_with_wrong_code_creates_nothing(self):
        with mock.patch.object(verification, "generate_code", return_value="123456"):
            verification.issue("new@x.com")

        with self.assertRaises(VerificationMismatch):
            self._signup("000000")

        self.assertFalse(User.objects.filter(email="new@x.com").exists())
        self.assertTrue(EmailVerification.objects.filter(email="new@x.com").exists())

    def test_signup_for_existing_email_keeps_code(self):
        User.objects.create_user(username="taken", email="new@x.com", password="x")
        otp = verification.issue("new@x.com")

        with self.assertRaises(EmailAlreadyRegistered):
            self._signup(otp)

        self.assertTrue(EmailVerification.objects.filter(email="new@x.com").exists())

    def test_failed_account_save_leaves_code_valid_for_retry(self):
        otp = verification.issue("new@x.com")

        with mock.patch.object(User, "save", side_effect=IntegrityError("boom")):
            with self.assertRaises(EmailAlreadyRegistered):
                self._signup(otp)

        self.assertFalse(User.objects.filter(email="new@x.com").exists())
        verification.verify("new@x.com", otp)

        user = self._signup(otp)
        self.assertEqual(user.email, "new@x.com")


class PasswordResetTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(
            username="member@x.com", email="member@x.com", password="Old-passw0rd!",
        )

    def _reset(self, otp, password="N3w-passw0rd!", **extra):
        return verification.reset_password(email="Member@X.com", otp=otp, new_password=password, **extra)

    def test_unknown_email_gets_no_code(self):
        self.assertIsNone(verification.request_password_reset("ghost@x.com"))
        self.assertFalse(EmailVerification.objects.exists())

    def test_inactive_account_gets_no_code(self):
        self.user.is_active = False
        self.user.save()
        self.assertIsNone(verification.request_password_reset("member@x.com"))

    def test_reset_sets_password_and_consumes_code(self):
        otp = verification.request_password_reset(" MEMBER@x.com ")

        user = self._reset(otp)

        self.assertEqual(user.pk, self.user.pk)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password("N3w-passw0rd!"))
        self.assertFalse(EmailVerification.objects.filter(email="member@x.com").exists())

        with self.assertRaises(VerificationNotFound):
            self._reset(otp, password="Another-passw0rd!")

    def test_wrong_code_changes_nothing(self):
        with mock.patch.object(verification, "generate_code", return_value="123456"):
            verification.request_password_reset("member@x.com")

        with self.assertRaises(VerificationMismatch):
            self._reset("654321")

        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password("Old-passw0rd!"))
        self._reset("123456")

    def test_expired_code(self):
        otp = verification.request_password_reset("member@x.com", now=timezone.now() - timedelta(minutes=30))

        with self.assertRaises(VerificationNotFound):
            self._reset(otp)

        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password("Old-passw0rd!"))

    def test_signup_code_cannot_reset_password(self):
        otp = verification.issue("member@x.com")

        with self.assertRaises(VerificationNotFound):
            self._reset(otp)

    def test_failed_save_keeps_code_and_password(self):
        otp = verification.request_password_reset("member@x.com")

        with mock.patch.object(User, "save", side_effect=IntegrityError("boom")):
            with self.assertRaises(IntegrityError):
                self._reset(otp)

        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password("Old-passw0rd!"))
        verification.verify("member@x.com", otp, purpose=verification.PASSWORD_RESET)
