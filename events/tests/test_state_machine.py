# events/tests/test_state_machine.py
from datetime import timedelta
from unittest import mock

from django.test import TestCase
from django.utils import timezone
from rest_framework.exceptions import PermissionDenied

from core.exceptions import (
    InvalidTransition,
    MemberNotFound,
    NotAccepted,
    PaymentRequired,
    RegistrationNotFound,
)
from events import invitations, state_machine
from events.models import InvitationToken, Registration

from .helpers import make_event, make_registration, make_user


class TransitionRulesTests(TestCase):
    def setUp(self):
        self.organizer = make_user("org@x.com", role="organizer")
        self.leader = make_user("lead@x.com")
        self.event = make_event(self.organizer)
        self.reg = make_registration(self.event, self.leader)

    def test_pending_can_move_to_either_terminal_state(self):
        self.assertEqual(
            state_machine.get_allowed_transitions(self.reg),
            [Registration.STATUS_ACCEPTED, Registration.STATUS_REJECTED],
        )
        self.assertEqual(state_machine.can_transition(self.reg, Registration.STATUS_ACCEPTED), (True, ""))

    def test_terminal_states_have_no_exits(self):
        for terminal in (Registration.STATUS_ACCEPTED, Registration.STATUS_REJECTED):
            self.assertTrue(state_machine.is_terminal_status(terminal))
            self.reg.status = terminal
            for target in (Registration.STATUS_PENDING, Registration.STATUS_ACCEPTED, Registration.STATUS_REJECTED):
                ok, reason = state_machine.can_transition(self.reg, target)
                self.assertFalse(ok)
                self.assertIn(terminal, reason)

    def test_pending_to_pending_is_refused(self):
        ok, _ = state_machine.can_transition(self.reg, Registration.STATUS_PENDING)
        self.assertFalse(ok)

    def test_unknown_status_is_refused(self):
        ok, reason = state_machine.can_transition(self.reg, "Waitlisted")
        self.assertFalse(ok)
        self.assertIn("Invalid status", reason)


class TransitionStatusTests(TestCase):
    def setUp(self):
        self.organizer = make_user("org@x.com", role="organizer")
        self.leader = make_user("lead@x.com")
        self.outsider = make_user("out@x.com")
        self.event = make_event(self.organizer)
        self.reg = make_registration(self.event, self.leader)

    def test_accept_issues_qr_code(self):
        reg = state_machine.transition_status(self.reg.id, Registration.STATUS_ACCEPTED, actor=self.organizer)

        self.assertEqual(reg.status, Registration.STATUS_ACCEPTED)
        self.assertTrue(reg.qr_code)
        self.assertTrue(reg.qr_code.startswith(f"EVT{self.event.id}-"))

    def test_accept_keeps_existing_qr_code(self):
        Registration.objects.filter(pk=self.reg.pk).update(qr_code="preissued")

        reg = state_machine.transition_status(self.reg.id, Registration.STATUS_ACCEPTED, actor=self.organizer)
        self.assertEqual(reg.qr_code, "preissued")

    def test_reject_has_no_qr_code(self):
        reg = state_machine.transition_status(self.reg.id, Registration.STATUS_REJECTED, actor=self.organizer)

        self.assertEqual(reg.status, Registration.STATUS_REJECTED)
        self.assertIsNone(reg.qr_code)

    def test_accepted_cannot_be_rejected(self):
        state_machine.transition_status(self.reg.id, Registration.STATUS_ACCEPTED, actor=self.organizer)

        with self.assertRaises(InvalidTransition):
            state_machine.transition_status(self.reg.id, Registration.STATUS_REJECTED, actor=self.organizer)

        self.reg.refresh_from_db()
        self.assertEqual(self.reg.status, Registration.STATUS_ACCEPTED)

    def test_double_accept_fails(self):
        state_machine.transition_status(self.reg.id, Registration.STATUS_ACCEPTED, actor=self.organizer)
        with self.assertRaises(InvalidTransition):
            state_machine.transition_status(self.reg.id, Registration.STATUS_ACCEPTED, actor=self.organizer)

    def test_transition_to_pending_fails(self):
        with self.assertRaises(InvalidTransition):
            state_machine.transition_status(self.reg.id, Registration.STATUS_PENDING, actor=self.organizer)

    def test_lost_race_is_invalid_transition(self):
        # Another request decides the registration after our read
        real_can_transition = state_machine.can_transition

        def decide_elsewhere(registration, new_status):
            result = real_can_transition(registration, new_status)
            Registration.objects.filter(pk=registration.pk).update(status=Registration.STATUS_REJECTED)
            return result

        with mock.patch.object(state_machine, "can_transition", side_effect=decide_elsewhere):
            with self.assertRaises(InvalidTransition):
                state_machine.transition_status(self.reg.id, Registration.STATUS_ACCEPTED, actor=self.organizer)

        self.reg.refresh_from_db()
        self.assertEqual(self.reg.status, Registration.STATUS_REJECTED)
        self.assertIsNone(self.reg.qr_code)

    def test_missing_registration(self):
        with self.assertRaises(RegistrationNotFound):
            state_machine.transition_status(999999, Registration.STATUS_ACCEPTED, actor=self.organizer)

    def test_only_event_managers_may_decide(self):
        for actor in (self.leader, self.outsider):
            with self.assertRaises(PermissionDenied):
                state_machine.transition_status(self.reg.id, Registration.STATUS_ACCEPTED, actor=actor)

        admin = make_user("admin@x.com", is_staff=True)
        reg = state_machine.transition_status(self.reg.id, Registration.STATUS_ACCEPTED, actor=admin)
        self.assertEqual(reg.status, Registration.STATUS_ACCEPTED)

    def test_paid_event_needs_payment_before_accept(self):
        self.event.is_free = False
        self.event.registration_fee = 250
        self.event.save()

        with self.assertRaises(PaymentRequired):
            state_machine.transition_status(self.reg.id, Registration.STATUS_ACCEPTED, actor=self.organizer)

        Registration.objects.filter(pk=self.reg.pk).update(payment_status=Registration.PAYMENT_PAID)
        reg = state_machine.transition_status(self.reg.id, Registration.STATUS_ACCEPTED, actor=self.organizer)
        self.assertEqual(reg.status, Registration.STATUS_ACCEPTED)

    def test_reject_revokes_outstanding_invitations(self):
        open_invite = invitations.mint(self.reg.id, actor=self.leader)
        used_invite = invitations.mint(self.reg.id, actor=self.leader)
        invitations.redeem(used_invite.token, make_user("mate@x.com"))

        state_machine.transition_status(self.reg.id, Registration.STATUS_REJECTED, actor=self.organizer)

        open_invite.refresh_from_db()
        used_invite.refresh_from_db()
        self.assertIsNotNone(open_invite.revoked_at)
        self.assertIsNone(used_invite.revoked_at)
        self.assertEqual(
            InvitationToken.objects.filter(registration=self.reg, revoked_at__isnull=True).count(), 1
        )


class AttendanceTests(TestCase):
    def setUp(self):
        self.organizer = make_user("org@x.com", role="organizer")
        self.leader = make_user("lead@x.com")
        self.event = make_event(self.organizer)
        self.reg = make_registration(self.event, self.leader, members=["mate@x.com"])

    def _accept(self):
        return state_machine.transition_status(self.reg.id, Registration.STATUS_ACCEPTED, actor=self.organizer)

    def test_check_in_requires_accepted(self):
        with self.assertRaises(NotAccepted):
            state_machine.check_in(self.reg.id, actor=self.organizer)

        state_machine.transition_status(self.reg.id, Registration.STATUS_REJECTED, actor=self.organizer)
        with self.assertRaises(NotAccepted):
            state_machine.check_in(self.reg.id, actor=self.organizer)

        self.reg.refresh_from_db()
        self.assertFalse(self.reg.checked_in)

    def test_check_in_is_idempotent(self):
        self._accept()

        first = state_machine.check_in(self.reg.id, actor=self.organizer)
        second = state_machine.check_in(self.reg.id, actor=self.organizer)

        self.assertTrue(first.checked_in)
        self.assertTrue(second.checked_in)
        self.assertEqual(first.checked_in_at, second.checked_in_at)
        self.assertEqual(first.updated_at, second.updated_at)

    def test_check_in_by_qr(self):
        reg = self._accept()

        scanned = state_machine.check_in_by_qr(reg.qr_code, actor=self.organizer)
        self.assertEqual(scanned.id, reg.id)
        self.assertTrue(scanned.checked_in)

    def test_check_in_by_unknown_qr(self):
        with self.assertRaises(RegistrationNotFound):
            state_machine.check_in_by_qr("EVT0-nope", actor=self.organizer)

    def test_leader_cannot_check_themselves_in(self):
        self._accept()
        with self.assertRaises(PermissionDenied):
            state_machine.check_in(self.reg.id, actor=self.leader)

    def test_mark_member_attended(self):
        self._accept()

        member = state_machine.mark_member_attended(self.reg.id, "MATE@x.com", actor=self.organizer)
        self.assertTrue(member.attended)
        first_mark = member.attended_at

        again = state_machine.mark_member_attended(self.reg.id, "mate@x.com", actor=self.organizer)
        self.assertTrue(again.attended)
        self.assertEqual(again.attended_at, first_mark)

    def test_mark_member_attended_requires_accepted(self):
        with self.assertRaises(NotAccepted):
            state_machine.mark_member_attended(self.reg.id, "mate@x.com", actor=self.organizer)

        self.assertFalse(self.reg.team_members.get().attended)

    def test_mark_unknown_member(self):
        self._accept()
        with self.assertRaises(MemberNotFound):
            state_machine.mark_member_attended(self.reg.id, "stranger@x.com", actor=self.organizer)

    def test_leader_email_is_not_a_member(self):
        self._accept()
        with self.assertRaises(MemberNotFound):
            state_machine.mark_member_attended(self.reg.id, self.leader.email, actor=self.organizer)

    def test_attendance_is_independent_of_time(self):
        # Past events can still be marked after the fact
        self.event.start_time = timezone.now() - timedelta(days=2)
        self.event.end_time = timezone.now() - timedelta(days=1)
        self.event.save()
        self._accept()

        reg = state_machine.check_in(self.reg.id, actor=self.organizer)
        self.assertTrue(reg.checked_in)
