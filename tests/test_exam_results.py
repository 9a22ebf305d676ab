import asyncio
from datetime import datetime, timedelta

import pytest

from examdesk.models.assignment import ExamAssignment
from examdesk.models.exam import QuestionType
from examdesk.models.exam_set import ExamSet, ExamSetItem
from examdesk.models.result import ExamResultStatus
from examdesk.models.user import UserRole
from examdesk.services.assignment import assign_exam
from examdesk.services.company import delete_manager
from examdesk.services.exam import delete_exam
from examdesk.services.exam_result import (
    build_result_report, get_exam_result, list_exam_results, save_draft, start_exam_result,
    submit_exam_result
)
from examdesk.utils.errors import ConflictError, ForbiddenError, NotFoundError, ServiceError

T0 = datetime(2026, 3, 2, 9, 0, 0)


@pytest.fixture
def scenario(make_user, make_company, make_manager, make_question, make_exam, make_exam_set):
    owner = make_user()
    company = make_company(owner)
    manager = make_manager(company)
    q_a = make_question("x", 10)
    q_b = make_question("y", 5)
    exam = make_exam([q_a, q_b], passing_score=60)
    exam_set = make_exam_set(owner, manager, [exam])
    return {
        "owner": owner,
        "manager": manager,
        "exam": exam,
        "exam_set": exam_set,
        "questions": (q_a, q_b),
    }


def _start(db, scenario, actor=None, now=T0):
    return asyncio.run(start_exam_result(
        db,
        actor or scenario["owner"],
        scenario["exam_set"].id,
        scenario["exam"].id,
        scenario["manager"].id,
        now=now,
    ))


def test_start_opens_in_progress_result(db, scenario):
    result = _start(db, scenario)
    assert result.status == ExamResultStatus.IN_PROGRESS
    assert result.started_at == T0
    assert result.score is None


def test_second_start_conflicts_with_existing_result(db, scenario):
    first = _start(db, scenario)
    with pytest.raises(ConflictError) as exc_info:
        _start(db, scenario)
    assert exc_info.value.status == 409
    assert exc_info.value.data.id == first.id


def test_manager_can_start_own_exam(db, scenario):
    result = _start(db, scenario, actor=scenario["manager"].user)
    assert result.manager_id == scenario["manager"].id


def test_unrelated_user_cannot_start(db, scenario, make_user):
    stranger = make_user(role=UserRole.OWNER)
    with pytest.raises(ForbiddenError):
        _start(db, scenario, actor=stranger)


def test_submit_scores_and_finalizes(db, scenario):
    q_a, q_b = scenario["questions"]
    result = _start(db, scenario)

    result, summary = asyncio.run(submit_exam_result(
        db, scenario["owner"], result.id, {q_a.id: "x", q_b.id: "nope"}, now=T0 + timedelta(minutes=25)
    ))

    assert result.score == 10
    assert result.total_score == 15
    assert result.percentage == 66.67
    assert result.status == ExamResultStatus.PASSED
    assert result.time_spent == 25
    assert result.completed_at == T0 + timedelta(minutes=25)
    assert summary["passed"] is True
    assert summary["time_spent_minutes"] == 25


def test_all_wrong_submission_fails(db, scenario):
    q_a, q_b = scenario["questions"]
    result = _start(db, scenario)

    result, summary = asyncio.run(submit_exam_result(
        db, scenario["owner"], result.id, {q_a.id: "y", q_b.id: "x"}
    ))

    assert result.score == 0
    assert result.percentage == 0.0
    assert result.status == ExamResultStatus.FAILED
    assert summary["passed"] is False


def test_resubmission_conflicts_and_leaves_result_unchanged(db, scenario):
    q_a, q_b = scenario["questions"]
    result = _start(db, scenario)
    asyncio.run(submit_exam_result(db, scenario["owner"], result.id, {q_a.id: "x", q_b.id: "y"}))

    with pytest.raises(ConflictError):
        asyncio.run(submit_exam_result(db, scenario["owner"], result.id, {q_a.id: "wrong"}))

    db.expire_all()
    stored = asyncio.run(get_exam_result(db, scenario["owner"], result.id))
    assert stored.score == 15
    assert stored.percentage == 100.0
    assert stored.status == ExamResultStatus.PASSED
    assert stored.answers == {q_a.id: "x", q_b.id: "y"}


def test_draft_save_keeps_result_in_progress(db, scenario):
    q_a, _ = scenario["questions"]
    result = _start(db, scenario)

    result = asyncio.run(save_draft(db, scenario["owner"], result.id, {q_a.id: "x"}))

    assert result.answers == {q_a.id: "x"}
    assert result.status == ExamResultStatus.IN_PROGRESS
    assert result.score is None


def test_draft_save_after_submit_is_forbidden(db, scenario):
    q_a, _ = scenario["questions"]
    result = _start(db, scenario)
    asyncio.run(submit_exam_result(db, scenario["owner"], result.id, {q_a.id: "x"}))

    with pytest.raises(ForbiddenError):
        asyncio.run(save_draft(db, scenario["owner"], result.id, {q_a.id: "changed"}))


def test_report_lists_each_question(db, scenario):
    q_a, q_b = scenario["questions"]
    result = _start(db, scenario)
    asyncio.run(submit_exam_result(db, scenario["owner"], result.id, {q_a.id: "x", q_b.id: "nope"}))

    report = asyncio.run(build_result_report(db, scenario["owner"], result.id))

    outcomes = {item["question_id"]: item for item in report["questions"]}
    assert outcomes[q_a.id]["is_correct"] is True
    assert outcomes[q_a.id]["score"] == 10
    assert outcomes[q_b.id]["is_correct"] is False
    assert outcomes[q_b.id]["score"] == 0
    assert outcomes[q_b.id]["user_answer"] == "nope"
    assert report["summary"]["percentage"] == 66.67


def test_report_requires_finalized_result(db, scenario):
    result = _start(db, scenario)
    with pytest.raises(ServiceError) as exc_info:
        asyncio.run(build_result_report(db, scenario["owner"], result.id))
    assert exc_info.value.status == 400


def test_empty_exam_submission_fails(db, scenario, make_exam, make_exam_set):
    empty_exam = make_exam([], passing_score=50, title="Empty")
    exam_set = make_exam_set(scenario["owner"], scenario["manager"], [empty_exam])
    result = asyncio.run(start_exam_result(
        db, scenario["owner"], exam_set.id, empty_exam.id, scenario["manager"].id
    ))

    result, _ = asyncio.run(submit_exam_result(db, scenario["owner"], result.id, {}))

    assert (result.score, result.total_score, result.percentage) == (0, 0, 0.0)
    assert result.status == ExamResultStatus.FAILED


def test_empty_exam_with_zero_passing_score_passes(db, scenario, make_exam, make_exam_set):
    empty_exam = make_exam([], passing_score=0, title="Attendance")
    exam_set = make_exam_set(scenario["owner"], scenario["manager"], [empty_exam])
    result = asyncio.run(start_exam_result(
        db, scenario["owner"], exam_set.id, empty_exam.id, scenario["manager"].id
    ))

    result, summary = asyncio.run(submit_exam_result(db, scenario["owner"], result.id, {}))

    assert result.percentage == 0.0
    assert result.status == ExamResultStatus.PASSED
    assert summary["passed"] is True


def test_non_finite_rating_answer_is_scored_wrong(db, scenario, make_question, make_exam, make_exam_set):
    rating = make_question("1-5", 10, type=QuestionType.RATING)
    exam = make_exam([rating], passing_score=50, title="Self review")
    exam_set = make_exam_set(scenario["owner"], scenario["manager"], [exam])
    result = asyncio.run(start_exam_result(
        db, scenario["owner"], exam_set.id, exam.id, scenario["manager"].id
    ))

    result, _ = asyncio.run(submit_exam_result(db, scenario["owner"], result.id, {rating.id: "NaN"}))

    assert (result.score, result.total_score) == (0, 10)
    assert result.status == ExamResultStatus.FAILED
    report = asyncio.run(build_result_report(db, scenario["owner"], result.id))
    assert report["questions"][0]["is_correct"] is False


def test_deleting_exam_removes_its_results_and_links(db, scenario, make_user):
    result = _start(db, scenario)
    asyncio.run(assign_exam(db, scenario["owner"], scenario["exam"].id, [scenario["manager"].id]))
    admin = make_user(role=UserRole.ADMIN)

    asyncio.run(delete_exam(db, admin, scenario["exam"].id))

    db.expire_all()
    with pytest.raises(NotFoundError):
        asyncio.run(get_exam_result(db, scenario["owner"], result.id))
    assert db.query(ExamSetItem).count() == 0
    assert db.query(ExamAssignment).count() == 0
    assert db.get(ExamSet, scenario["exam_set"].id) is not None


def test_deleting_manager_removes_their_results(db, scenario):
    result = _start(db, scenario)

    asyncio.run(delete_manager(db, scenario["owner"], scenario["manager"].id))

    db.expire_all()
    with pytest.raises(NotFoundError):
        asyncio.run(get_exam_result(db, scenario["owner"], result.id))
    assert db.get(ExamSet, scenario["exam_set"].id) is None
    assert asyncio.run(list_exam_results(db, scenario["owner"])) == []


def test_results_list_hides_other_tenants(db, scenario, make_user):
    _start(db, scenario)
    stranger = make_user(role=UserRole.OWNER)

    assert asyncio.run(list_exam_results(db, stranger)) == []
    assert len(asyncio.run(list_exam_results(db, scenario["manager"].user))) == 1
    assert len(asyncio.run(list_exam_results(db, scenario["owner"]))) == 1
