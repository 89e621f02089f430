"""Test cases for the submission lifecycle: intake, admin review and manual send."""

from datetime import timedelta

import pytest

from concern2care.core.errors import (
    AIServiceError,
    LimitExceededError,
    NotFoundError,
    SendFailure,
    SubmissionConflictError,
)
from concern2care.models import AdminNotification, EnrolledTeacher, Submission
from concern2care.models.enums import (
    NotificationPriority,
    NotificationType,
    SubmissionStatus,
)
from concern2care.schemas.submission import (
    FollowUpRequest,
    ManualSendRequest,
    SubmissionReview,
)
from concern2care.services import autosend_service, submission_service
from concern2care.services.submission_service import detect_urgent_keywords
from tests.conftest import (
    NOW,
    FakeAIClient,
    FakeEmailSender,
    make_submission,
    make_teacher,
    naive,
    submission_form,
)


class TestUrgentKeywords:

    def test_matches_whole_words_case_insensitive(self):
        found = detect_urgent_keywords("He brought a KNIFE to recess and talked about a weapon.")
        assert "knife" in found
        assert "weapon" in found

    def test_substrings_do_not_match(self):
        assert detect_urgent_keywords("Needs help with reading skills and gunning for a prize") == []

    def test_multi_word_keywords(self):
        assert detect_urgent_keywords("Mentioned self-harm in a journal entry") == ["self-harm"]

    def test_custom_keyword_list(self):
        assert detect_urgent_keywords("ran away from class", keywords=["ran away"]) == ["ran away"]


class TestCreateSubmission:

    def test_happy_path_schedules_auto_send(self, db_session, fake_ai, fake_sender):
        teacher = make_teacher(db_session, used=3, limit=5)

        submission = submission_service.create_submission(
            db_session, obj_in=submission_form(), ai=fake_ai, now=NOW
        )

        assert submission.status == SubmissionStatus.pending
        assert submission.urgent_flag is False
        assert submission.ai_draft == fake_ai.text
        assert submission.student_last_initial == "R"
        assert submission.auto_send_time == naive(NOW + timedelta(minutes=30))
        assert submission.disclaimer_attached is False
        assert len(fake_ai.calls) == 1
        db_session.refresh(teacher)
        assert teacher.requests_used == 4

        # Still inside the review window
        early = autosend_service.run_sweep(db_session, sender=fake_sender, now=NOW)
        assert early.claimed == 0
        assert fake_sender.sent == []

        later = autosend_service.run_sweep(
            db_session, sender=fake_sender, now=NOW + timedelta(minutes=31)
        )
        assert later.sent == 1
        db_session.refresh(submission)
        assert submission.status == SubmissionStatus.auto_sent
        assert submission.sent_text == submission.ai_draft
        assert submission.disclaimer_attached is True
        assert submission.sent_at == naive(NOW + timedelta(minutes=31))
        assert len(fake_sender.sent) == 1
        assert fake_sender.sent[0]["recipient"] == teacher.email

    def test_urgent_severity_disables_auto_send(self, db_session, fake_ai, fake_sender):
        make_teacher(db_session)

        submission = submission_service.create_submission(
            db_session, obj_in=submission_form(severity_level="urgent"), ai=fake_ai, now=NOW
        )

        assert submission.status == SubmissionStatus.urgent_flagged
        assert submission.urgent_flag is True
        assert submission.auto_send_time is None

        notifications = db_session.query(AdminNotification).all()
        assert len(notifications) == 1
        assert notifications[0].type == NotificationType.urgent
        assert notifications[0].priority == NotificationPriority.high
        assert notifications[0].submission_id == submission.id

        result = autosend_service.run_sweep(
            db_session, sender=fake_sender, now=NOW + timedelta(days=7)
        )
        assert result.claimed == 0
        assert fake_sender.sent == []

    def test_keyword_in_description_flags_urgent(self, db_session, fake_ai):
        make_teacher(db_session)

        submission = submission_service.create_submission(
            db_session,
            obj_in=submission_form(
                concern_description="Told a classmate he would kill him after lunch."
            ),
            ai=fake_ai,
            now=NOW,
        )

        assert submission.urgent_flag is True
        assert submission.flagged_keywords == ["kill"]
        assert submission.status == SubmissionStatus.urgent_flagged

    def test_teacher_marked_urgent(self, db_session, fake_ai):
        make_teacher(db_session)

        submission = submission_service.create_submission(
            db_session, obj_in=submission_form(mark_urgent=True), ai=fake_ai, now=NOW
        )

        assert submission.urgent_flag is True
        assert submission.auto_send_time is None

    def test_quota_exhausted_rejects_before_ai(self, db_session, fake_ai):
        teacher = make_teacher(db_session, used=5, limit=5)

        with pytest.raises(LimitExceededError) as exc_info:
            submission_service.create_submission(
                db_session, obj_in=submission_form(), ai=fake_ai, now=NOW
            )

        assert exc_info.value.used == 5
        assert fake_ai.calls == []
        assert db_session.query(Submission).count() == 0
        db_session.refresh(teacher)
        assert teacher.requests_used == 5

    def test_quota_resets_in_new_month(self, db_session, fake_ai):
        teacher = make_teacher(db_session, used=5, limit=5, last_reset=NOW - timedelta(days=31))

        submission_service.create_submission(
            db_session, obj_in=submission_form(), ai=fake_ai, now=NOW
        )

        db_session.refresh(teacher)
        assert teacher.requests_used == 1

    def test_unknown_teacher(self, db_session, fake_ai):
        with pytest.raises(NotFoundError):
            submission_service.create_submission(
                db_session, obj_in=submission_form(), ai=fake_ai, now=NOW
            )
        assert fake_ai.calls == []

    def test_inactive_teacher(self, db_session, fake_ai):
        make_teacher(db_session, active=False)

        with pytest.raises(NotFoundError):
            submission_service.create_submission(
                db_session, obj_in=submission_form(), ai=fake_ai, now=NOW
            )

    def test_email_lookup_is_case_insensitive(self, db_session, fake_ai):
        teacher = make_teacher(db_session)

        submission = submission_service.create_submission(
            db_session,
            obj_in=submission_form(teacher_email="Jordan.Lee@School.org"),
            ai=fake_ai,
            now=NOW,
        )

        assert submission.teacher_id == teacher.id

    def test_ai_failure_stores_nothing(self, db_session):
        teacher = make_teacher(db_session, used=0)
        ai = FakeAIClient(fail=True)

        with pytest.raises(AIServiceError):
            submission_service.create_submission(
                db_session, obj_in=submission_form(), ai=ai, now=NOW
            )

        assert db_session.query(Submission).count() == 0
        # The request was consumed before the AI call
        db_session.refresh(teacher)
        assert teacher.requests_used == 1


class TestReviewSubmission:

    def test_edited_text_is_what_gets_sent(self, db_session, teacher, fake_sender):
        submission = make_submission(db_session, teacher, auto_send_time=NOW + timedelta(minutes=10))

        submission_service.review_submission(
            db_session,
            submission.id,
            obj_in=SubmissionReview(
                admin_id="admin-7",
                reviewed_text="Use a timer and offer a movement break.",
                status="approved",
            ),
        )
        autosend_service.run_sweep(db_session, sender=fake_sender, now=NOW + timedelta(minutes=11))

        db_session.refresh(submission)
        assert submission.status == SubmissionStatus.auto_sent
        assert submission.sent_text == "Use a timer and offer a movement break."
        assert submission.admin_reviewed_by == "admin-7"
        assert "Use a timer and offer a movement break." in fake_sender.sent[0]["body"]

    def test_hold_is_never_auto_sent(self, db_session, teacher, fake_sender):
        submission = make_submission(db_session, teacher)

        submission_service.review_submission(
            db_session, submission.id, obj_in=SubmissionReview(admin_id="admin-1", status="hold")
        )
        result = autosend_service.run_sweep(
            db_session, sender=fake_sender, now=NOW + timedelta(days=3)
        )

        assert result.claimed == 0
        db_session.refresh(submission)
        assert submission.status == SubmissionStatus.hold
        assert fake_sender.sent == []

    def test_cancelled_is_never_auto_sent(self, db_session, teacher, fake_sender):
        submission = make_submission(db_session, teacher)

        submission_service.review_submission(
            db_session, submission.id, obj_in=SubmissionReview(admin_id="admin-1", status="cancelled")
        )
        autosend_service.run_sweep(db_session, sender=fake_sender, now=NOW + timedelta(days=3))

        db_session.refresh(submission)
        assert submission.status == SubmissionStatus.cancelled
        assert fake_sender.sent == []

    def test_hold_then_approve_resumes(self, db_session, teacher, fake_sender):
        submission = make_submission(db_session, teacher)

        submission_service.review_submission(
            db_session, submission.id, obj_in=SubmissionReview(admin_id="admin-1", status="hold")
        )
        submission_service.review_submission(
            db_session, submission.id, obj_in=SubmissionReview(admin_id="admin-1", status="approved")
        )
        result = autosend_service.run_sweep(db_session, sender=fake_sender, now=NOW)

        assert result.sent == 1

    def test_edit_without_status_change(self, db_session, teacher):
        submission = make_submission(db_session, teacher)

        reviewed = submission_service.review_submission(
            db_session,
            submission.id,
            obj_in=SubmissionReview(admin_id="admin-2", reviewed_text="Shorter tasks."),
        )

        assert reviewed.status == SubmissionStatus.pending
        assert reviewed.reviewed_text == "Shorter tasks."

    @pytest.mark.parametrize(
        "status",
        [SubmissionStatus.sending, SubmissionStatus.auto_sent, SubmissionStatus.completed],
    )
    def test_conflict_once_claimed_or_sent(self, db_session, teacher, status):
        submission = make_submission(db_session, teacher, status=status)

        with pytest.raises(SubmissionConflictError):
            submission_service.review_submission(
                db_session,
                submission.id,
                obj_in=SubmissionReview(admin_id="admin-1", reviewed_text="too late"),
            )

        db_session.refresh(submission)
        assert submission.status == status
        assert submission.reviewed_text is None

    def test_unknown_submission(self, db_session):
        with pytest.raises(NotFoundError):
            submission_service.review_submission(
                db_session, 404, obj_in=SubmissionReview(admin_id="admin-1", status="hold")
            )


class TestSendNow:

    def test_sends_urgent_submission(self, db_session, teacher, fake_sender):
        submission = make_submission(
            db_session,
            teacher,
            status=SubmissionStatus.urgent_flagged,
            auto_send_time=None,
            urgent=True,
        )

        sent = submission_service.send_now(
            db_session,
            submission.id,
            obj_in=ManualSendRequest(admin_id="admin-3", reviewed_text="Call the counselor today."),
            sender=fake_sender,
            now=NOW,
        )

        assert sent.status == SubmissionStatus.completed
        assert sent.sent_text == "Call the counselor today."
        assert sent.admin_reviewed_by == "admin-3"
        assert sent.disclaimer_attached is True
        assert len(fake_sender.sent) == 1
        assert "marked urgent" in fake_sender.sent[0]["body"]

    def test_failure_restores_prior_status(self, db_session, teacher):
        submission = make_submission(db_session, teacher, status=SubmissionStatus.hold)
        sender = FakeEmailSender(ok=False)

        with pytest.raises(SendFailure):
            submission_service.send_now(
                db_session,
                submission.id,
                obj_in=ManualSendRequest(admin_id="admin-3"),
                sender=sender,
                now=NOW,
            )

        db_session.refresh(submission)
        assert submission.status == SubmissionStatus.hold
        assert submission.send_attempts == 1
        assert submission.last_send_error == "email provider rejected the message"
        assert submission.claimed_at is None

    def test_already_sent_conflicts(self, db_session, teacher, fake_sender):
        submission = make_submission(db_session, teacher, status=SubmissionStatus.auto_sent)

        with pytest.raises(SubmissionConflictError):
            submission_service.send_now(
                db_session,
                submission.id,
                obj_in=ManualSendRequest(admin_id="admin-3"),
                sender=fake_sender,
                now=NOW,
            )
        assert fake_sender.sent == []


class TestQueries:

    def test_urgent_queue(self, db_session, teacher):
        urgent = make_submission(
            db_session, teacher, status=SubmissionStatus.urgent_flagged, auto_send_time=None, urgent=True
        )
        make_submission(db_session, teacher)
        make_submission(
            db_session, teacher, status=SubmissionStatus.completed, auto_send_time=None, urgent=True
        )

        found = submission_service.get_urgent_submissions(db_session)

        assert [s.id for s in found] == [urgent.id]

    def test_list_by_status(self, db_session, teacher):
        make_submission(db_session, teacher)
        held = make_submission(db_session, teacher, status=SubmissionStatus.hold)

        found = submission_service.list_submissions(db_session, status=SubmissionStatus.hold)

        assert [s.id for s in found] == [held.id]


class TestFollowUp:

    def test_follow_up_creates_notification(self, db_session, teacher, fake_ai):
        submission = make_submission(db_session, teacher, status=SubmissionStatus.auto_sent)

        response = submission_service.request_follow_up(
            db_session,
            submission.id,
            obj_in=FollowUpRequest(question="The timer did not help, what next?"),
            ai=fake_ai,
        )

        assert response.submission_id == submission.id
        assert response.assistance == "Guidance for: The timer did not help, what next?"
        original, question, req = fake_ai.follow_up_calls[0]
        assert original == submission.ai_draft
        assert req.student_first_name == "Sam"

        notification = db_session.get(AdminNotification, response.notification_id)
        assert notification.type == NotificationType.followup
        assert notification.message == "The timer did not help, what next?"

    def test_follow_up_unknown_submission(self, db_session, fake_ai):
        with pytest.raises(NotFoundError):
            submission_service.request_follow_up(
                db_session, 9, obj_in=FollowUpRequest(question="Anything?"), ai=fake_ai
            )
        assert fake_ai.follow_up_calls == []


def test_teacher_rows_survive_deactivation(db_session, teacher):
    make_submission(db_session, teacher)
    teacher.is_active = False
    db_session.commit()

    assert db_session.query(Submission).count() == 1
    assert db_session.get(EnrolledTeacher, teacher.id).submissions[0].teacher_id == teacher.id
