"""
Tests for form management endpoints (/api/v2/forms).
"""
import re

import pytest
from httpx import AsyncClient
from sqlalchemy import select, func

from app.models.form import Answer, Form, Question, Response
from tests.factories import FormPayloadFactory, QuestionPayloadFactory

FORMS_PREFIX = "/api/v2/forms"


class TestCreateForm:

    @pytest.mark.asyncio
    async def test_create_draft_form(self, authenticated_client: AsyncClient):
        payload = FormPayloadFactory(title="Q4 Survey!!")

        response = await authenticated_client.post(f"{FORMS_PREFIX}/", json=payload)

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "Form created successfully"
        form = data["form"]
        assert form["status"] == "DRAFT"
        assert form["response_count"] == 0
        assert form["share_url"].endswith("/" + form["public_url"])
        assert re.fullmatch(r"q4-survey---[0-9a-f]{8}", form["public_url"])
        assert [q["question_text"] for q in form["questions"]] == [
            "What did you think?",
            "How would you rate us?",
        ]

    @pytest.mark.asyncio
    async def test_zero_order_index_falls_back_to_position(self, authenticated_client: AsyncClient):
        payload = FormPayloadFactory(
            questions=[
                QuestionPayloadFactory(question_text="First", order_index=0),
                QuestionPayloadFactory(question_text="Second", order_index=0),
            ]
        )

        response = await authenticated_client.post(f"{FORMS_PREFIX}/", json=payload)

        questions = response.json()["form"]["questions"]
        assert [(q["question_text"], q["order_index"]) for q in questions] == [
            ("First", 0),
            ("Second", 1),
        ]

    @pytest.mark.asyncio
    async def test_requires_a_question(self, authenticated_client: AsyncClient):
        response = await authenticated_client.post(
            f"{FORMS_PREFIX}/", json=FormPayloadFactory(questions=[])
        )

        assert response.status_code == 422
        assert response.json()["code"] == "VAL_001"

    @pytest.mark.asyncio
    async def test_rejects_unknown_question_type(self, authenticated_client: AsyncClient):
        payload = FormPayloadFactory(questions=[QuestionPayloadFactory(question_type="SLIDER")])

        response = await authenticated_client.post(f"{FORMS_PREFIX}/", json=payload)

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_requires_authentication(self, client: AsyncClient):
        response = await client.post(f"{FORMS_PREFIX}/", json=FormPayloadFactory())

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_creation_is_rate_limited_per_user(self, authenticated_client: AsyncClient):
        for _ in range(10):
            response = await authenticated_client.post(f"{FORMS_PREFIX}/", json=FormPayloadFactory())
            assert response.status_code == 201

        response = await authenticated_client.post(f"{FORMS_PREFIX}/", json=FormPayloadFactory())

        assert response.status_code == 429
        assert response.json()["code"] == "BIZ_002"


class TestReadForms:

    @pytest.mark.asyncio
    async def test_list_own_forms_with_counts(
        self, authenticated_client: AsyncClient, make_form, add_response, other_user
    ):
        form = await make_form(title="Mine")
        await make_form(title="Not mine", owner=other_user)
        await add_response(form, {form.questions[0].id: "ok"})
        await add_response(form, {form.questions[0].id: "fine"})

        response = await authenticated_client.get(f"{FORMS_PREFIX}/")

        assert response.status_code == 200
        data = response.json()
        assert [f["title"] for f in data] == ["Mine"]
        assert data[0]["response_count"] == 2

    @pytest.mark.asyncio
    async def test_get_form(self, authenticated_client: AsyncClient, make_form):
        form = await make_form()

        response = await authenticated_client.get(f"{FORMS_PREFIX}/{form.id}")

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == form.id
        assert [q["order_index"] for q in data["questions"]] == [0, 1, 2]
        assert data["questions"][2]["options"] == ["Free", "Pro", "Enterprise"]

    @pytest.mark.asyncio
    async def test_other_users_form_is_not_found(
        self, authenticated_client: AsyncClient, make_form, other_user
    ):
        form = await make_form(owner=other_user)

        response = await authenticated_client.get(f"{FORMS_PREFIX}/{form.id}")

        assert response.status_code == 404
        body = response.json()
        assert body["code"] == "RES_001"
        assert body["detail"] == "Form not found or access denied"

    @pytest.mark.asyncio
    async def test_missing_form_has_same_message(self, authenticated_client: AsyncClient):
        response = await authenticated_client.get(f"{FORMS_PREFIX}/does-not-exist")

        assert response.status_code == 404
        assert response.json()["detail"] == "Form not found or access denied"


class TestUpdateForm:

    @pytest.mark.asyncio
    async def test_update_title_keeps_questions(self, authenticated_client: AsyncClient, make_form):
        form = await make_form()
        question_ids = [q.id for q in form.questions]

        response = await authenticated_client.put(
            f"{FORMS_PREFIX}/{form.id}", json={"title": "Renamed"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Form updated successfully"
        assert data["form"]["title"] == "Renamed"
        assert [q["id"] for q in data["form"]["questions"]] == question_ids

    @pytest.mark.asyncio
    async def test_supplying_questions_replaces_them(
        self, authenticated_client: AsyncClient, make_form, test_db
    ):
        form = await make_form()
        old_ids = {q.id for q in form.questions}

        response = await authenticated_client.put(
            f"{FORMS_PREFIX}/{form.id}",
            json={"questions": [QuestionPayloadFactory(question_text="Only question")]},
        )

        assert response.status_code == 200
        questions = response.json()["form"]["questions"]
        assert [q["question_text"] for q in questions] == ["Only question"]
        assert questions[0]["id"] not in old_ids

        count = await test_db.scalar(
            select(func.count(Question.id)).where(Question.form_id == form.id)
        )
        assert count == 1

    @pytest.mark.asyncio
    async def test_update_other_users_form(
        self, authenticated_client: AsyncClient, make_form, other_user
    ):
        form = await make_form(owner=other_user)

        response = await authenticated_client.put(
            f"{FORMS_PREFIX}/{form.id}", json={"title": "Hijacked"}
        )

        assert response.status_code == 404


class TestFormStatus:

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status,message",
        [
            ("DRAFT", "Form saved as draft"),
            ("ACTIVE", "Form published successfully"),
            ("INACTIVE", "Form unpublished"),
        ],
    )
    async def test_status_messages(self, authenticated_client: AsyncClient, make_form, status, message):
        form = await make_form(status="DRAFT")

        response = await authenticated_client.put(
            f"{FORMS_PREFIX}/{form.id}/status", json={"status": status}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == message
        assert data["form"]["status"] == status

    @pytest.mark.asyncio
    async def test_invalid_status(self, authenticated_client: AsyncClient, make_form):
        form = await make_form()

        response = await authenticated_client.put(
            f"{FORMS_PREFIX}/{form.id}/status", json={"status": "ARCHIVED"}
        )

        assert response.status_code == 422


class TestDeleteForm:

    @pytest.mark.asyncio
    async def test_delete_removes_everything(
        self, authenticated_client: AsyncClient, make_form, add_response, test_db
    ):
        form = await make_form()
        await add_response(form, {form.questions[0].id: "Bye"})

        response = await authenticated_client.delete(f"{FORMS_PREFIX}/{form.id}")

        assert response.status_code == 200
        assert response.json()["message"] == "Form deleted successfully"
        assert await test_db.scalar(select(func.count(Form.id))) == 0
        assert await test_db.scalar(select(func.count(Question.id))) == 0
        assert await test_db.scalar(select(func.count(Response.id))) == 0
        assert await test_db.scalar(select(func.count(Answer.id))) == 0

    @pytest.mark.asyncio
    async def test_delete_other_users_form(
        self, authenticated_client: AsyncClient, make_form, other_user
    ):
        form = await make_form(owner=other_user)

        response = await authenticated_client.delete(f"{FORMS_PREFIX}/{form.id}")

        assert response.status_code == 404
