import asyncio

import pytest

from examdesk.models.assessment import AssessmentQuestionType, AssessmentStatus, AssessmentTemplateStatus
from examdesk.models.user import UserRole
from examdesk.schemas.assessment import AssessmentTemplateCreate
from examdesk.services.assessment import (
    create_template, delete_assessment, get_assessment, list_assessments, save_progress,
    start_assessment, submit_assessment, update_step
)
from examdesk.services.company import delete_manager
from examdesk.utils.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError

API = "/api/v1"


def _template_payload():
    return {
        "name": "Leadership needs",
        "category": "leadership",
        "estimated_time": 20,
        "steps": [
            {
                "title": "Team",
                "order": 1,
                "questions": [
                    {"question": "Team size?", "type": "rating", "order": 1},
                    {"question": "Biggest challenge?", "type": "text", "order": 2, "required": False},
                ],
            },
            {
                "title": "Goals",
                "order": 2,
                "questions": [
                    {"question": "Pick focus areas", "type": "checkbox", "options": ["hiring", "coaching"], "order": 1},
                ],
            },
        ],
    }


@pytest.fixture
def scenario(db, make_user, make_company, make_manager):
    owner = make_user()
    company = make_company(owner)
    manager = make_manager(company)
    template_data = AssessmentTemplateCreate(**_template_payload()).model_dump()
    template = asyncio.run(create_template(db, owner, template_data))
    return {"owner": owner, "manager": manager, "template": template}


def _start(db, scenario, actor=None):
    return asyncio.run(start_assessment(
        db, actor or scenario["owner"], scenario["manager"].id, scenario["template"].id
    ))


def _required_ids(template):
    team, goals = template.steps
    return team.questions[0].id, goals.questions[0].id


def test_template_is_created_with_ordered_steps_and_questions(scenario):
    template = scenario["template"]

    assert template.status == AssessmentTemplateStatus.DRAFT
    assert template.created_by == scenario["owner"].id
    assert [step.title for step in template.steps] == ["Team", "Goals"]
    assert [q.type for q in template.steps[0].questions] == [
        AssessmentQuestionType.RATING, AssessmentQuestionType.TEXT
    ]
    assert template.steps[0].questions[1].required is False


def test_reordering_steps_changes_template_order(db, scenario):
    template = scenario["template"]
    team, goals = template.steps

    asyncio.run(update_step(db, scenario["owner"], team.id, {"order": 5}))

    db.expire_all()
    assert [step.id for step in template.steps] == [goals.id, team.id]


def test_only_template_author_edits_steps(db, scenario, make_user):
    step = scenario["template"].steps[0]
    with pytest.raises(ForbiddenError):
        asyncio.run(update_step(db, make_user(), step.id, {"title": "Mine"}))


def test_start_opens_draft_at_first_step(db, scenario):
    assessment = _start(db, scenario)
    assert assessment.status == AssessmentStatus.DRAFT
    assert assessment.current_step == 1
    assert assessment.submitted_at is None


def test_second_draft_for_same_template_conflicts(db, scenario):
    first = _start(db, scenario)
    with pytest.raises(ConflictError) as exc_info:
        _start(db, scenario)
    assert exc_info.value.data.id == first.id


def test_stranger_cannot_start_or_list(db, scenario, make_user):
    _start(db, scenario)
    stranger = make_user(role=UserRole.OWNER)

    with pytest.raises(ForbiddenError):
        _start(db, scenario, actor=stranger)
    assert asyncio.run(list_assessments(db, stranger)) == []
    assert len(asyncio.run(list_assessments(db, scenario["manager"].user))) == 1


def test_progress_is_saved_on_draft(db, scenario):
    rating_id, _ = _required_ids(scenario["template"])
    assessment = _start(db, scenario)

    saved = asyncio.run(save_progress(db, scenario["owner"], assessment.id, {
        "current_step": 2, "answers": {rating_id: 4},
    }))

    assert saved.current_step == 2
    assert saved.answers == {rating_id: 4}
    assert saved.status == AssessmentStatus.DRAFT


def test_progress_cannot_pass_last_step(db, scenario):
    assessment = _start(db, scenario)
    with pytest.raises(ValidationError) as exc_info:
        asyncio.run(save_progress(db, scenario["owner"], assessment.id, {"current_step": 3}))
    assert "current_step" in exc_info.value.errors


def test_submit_requires_required_answers(db, scenario):
    rating_id, focus_id = _required_ids(scenario["template"])
    assessment = _start(db, scenario)

    with pytest.raises(ValidationError) as exc_info:
        asyncio.run(submit_assessment(db, scenario["owner"], assessment.id, {rating_id: 4, focus_id: []}))

    assert list(exc_info.value.errors) == [f"answers.{focus_id}"]
    db.expire_all()
    assert asyncio.run(get_assessment(db, scenario["owner"], assessment.id)).status == AssessmentStatus.DRAFT


def test_submit_is_one_way(db, scenario):
    rating_id, focus_id = _required_ids(scenario["template"])
    assessment = _start(db, scenario)
    answers = {rating_id: 4, focus_id: ["coaching"]}

    submitted = asyncio.run(submit_assessment(db, scenario["owner"], assessment.id, answers))
    assert submitted.status == AssessmentStatus.SUBMITTED
    assert submitted.submitted_at is not None

    with pytest.raises(ConflictError):
        asyncio.run(submit_assessment(db, scenario["owner"], assessment.id, answers))
    with pytest.raises(ForbiddenError):
        asyncio.run(save_progress(db, scenario["owner"], assessment.id, {"current_step": 1}))
    with pytest.raises(ForbiddenError):
        asyncio.run(delete_assessment(db, scenario["owner"], assessment.id))

    # A submitted assessment does not block a new draft
    assert _start(db, scenario).id != assessment.id


def test_deleting_manager_removes_their_assessments(db, scenario):
    assessment = _start(db, scenario)

    asyncio.run(delete_manager(db, scenario["owner"], scenario["manager"].id))

    db.expire_all()
    with pytest.raises(NotFoundError):
        asyncio.run(get_assessment(db, scenario["owner"], assessment.id))


def test_assessment_api_flow(client, make_user, make_company, make_manager, auth_headers):
    owner = make_user()
    manager = make_manager(make_company(owner))
    headers = auth_headers(owner)

    created = client.post(f"{API}/assessment-templates", json=_template_payload(), headers=headers)
    assert created.status_code == 201, created.text
    template = created.json()["data"]
    assert [step["title"] for step in template["steps"]] == ["Team", "Goals"]

    step = client.post(
        f"{API}/assessment-steps",
        json={"template_id": template["id"], "title": "Wrap-up", "order": 3},
        headers=headers,
    )
    assert step.status_code == 201
    question = client.post(
        f"{API}/assessment-questions",
        json={"step_id": step.json()["data"]["id"], "question": "Anything else?", "type": "text",
              "order": 1, "required": False},
        headers=headers,
    )
    assert question.status_code == 201
    reordered = client.patch(
        f"{API}/assessment-questions/{question.json()['data']['id']}/reorder", json={"order": 4}, headers=headers
    )
    assert reordered.json()["data"]["order"] == 4

    start_payload = {"manager_id": manager.id, "template_id": template["id"]}
    started = client.post(f"{API}/assessments", json=start_payload, headers=headers)
    assert started.status_code == 201
    assessment_id = started.json()["data"]["id"]

    duplicate = client.post(f"{API}/assessments", json=start_payload, headers=headers)
    assert duplicate.status_code == 409
    assert duplicate.json()["data"]["id"] == assessment_id

    detail = client.get(f"{API}/assessments/{assessment_id}", headers=headers)
    assert len(detail.json()["data"]["template"]["steps"]) == 3

    rating_id = template["steps"][0]["questions"][0]["id"]
    focus_id = template["steps"][1]["questions"][0]["id"]
    missing = client.post(f"{API}/assessments/{assessment_id}/submit", json={"answers": {rating_id: 3}}, headers=headers)
    assert missing.status_code == 422
    assert f"answers.{focus_id}" in missing.json()["errors"]

    submitted = client.post(
        f"{API}/assessments/{assessment_id}/submit",
        json={"answers": {rating_id: 3, focus_id: ["hiring"]}},
        headers=headers,
    )
    assert submitted.status_code == 200
    assert submitted.json()["data"]["status"] == "submitted"

    locked = client.put(f"{API}/assessments/{assessment_id}", json={"current_step": 2}, headers=headers)
    assert locked.status_code == 403

    stranger = auth_headers(make_user())
    assert client.get(f"{API}/assessments", headers=stranger).json()["data"] == []
    assert client.delete(f"{API}/assessment-templates/{template['id']}", headers=stranger).status_code == 403
    assert client.delete(f"{API}/assessment-templates/{template['id']}", headers=headers).status_code == 200
