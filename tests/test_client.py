import asyncio
import json

import httpx
import pytest

from childcare.client.api import ApiClient, ApiError, static_token
from childcare.client.assignments import AssignmentService
from childcare.client.grading import ALREADY_GRADING_MESSAGE, GradingSession
from childcare.client.polling import AssignmentPoller
from childcare.client.submission import SubmissionSession
from childcare.grading.lifecycle import ALREADY_GRADED_MESSAGE, SubmissionState
from childcare.schemas.submission import SubmissionRead

pytestmark = pytest.mark.anyio

BASE = "http://lms.test/api"


def _service(handler, token="t0k3n") -> AssignmentService:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return AssignmentService(ApiClient(BASE, token_provider=static_token(token), http=http))


def _submission(**overrides) -> dict:
    row = {
        "id": 7,
        "assignmentId": 3,
        "studentId": 11,
        "submissionText": "my drawing",
        "attachments": [],
        "submittedAt": "2026-01-05T10:00:00",
        "status": "submitted",
        "grade": None,
        "feedback": None,
        "gradedAt": None,
    }
    row.update(overrides)
    return row


async def test_request_sends_bearer_token_and_unwraps_envelope():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("Authorization")
        seen["url"] = str(request.url)
        return httpx.Response(200, json={"success": True, "data": {"id": 3, "title": "Paint"}})

    result = await _service(handler).get_assignment_by_id(3)

    assert result.success
    assert result.data == {"id": 3, "title": "Paint"}
    assert seen["auth"] == "Bearer t0k3n"
    assert seen["url"] == f"{BASE}/assignments/3"


async def test_anonymous_request_has_no_authorization_header():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json={"success": True, "data": []})

    await _service(handler, token=None).get_all_assignments("skill-art")
    assert seen["auth"] is None


async def test_server_error_message_is_passed_through():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"success": False, "error": "Assignment not found"})

    result = await _service(handler).get_assignment_by_id(99)

    assert not result.success
    assert result.error == "Assignment not found"


async def test_error_without_body_falls_back_to_status_line():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="<html>bad gateway</html>")

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    api = ApiClient(BASE, http=http)
    with pytest.raises(ApiError) as exc:
        await api.request("GET", "/assignments/1")
    assert str(exc.value) == "HTTP error! status: 502"
    assert exc.value.status_code == 502


async def test_transport_failure_becomes_error_result():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    result = await _service(handler).get_all_assignments("skill-art")

    assert not result.success
    assert result.error == "connection refused"


async def test_search_filters_case_insensitively_over_text_fields():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "success": True,
                "data": [
                    {"id": 1, "title": "Finger painting", "description": None, "instructions": ""},
                    {"id": 2, "title": "Clay", "description": "Make a PAINTED pot", "instructions": None},
                    {"id": 3, "title": "Counting", "description": "Count to ten", "instructions": "Use beads"},
                ],
            },
        )

    result = await _service(handler).search_assignments("skill-art", "paint")

    assert result.success
    assert [a["id"] for a in result.data] == [1, 2]


async def test_due_soon_sends_days_param():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["days"] = request.url.params.get("days")
        return httpx.Response(200, json={"success": True, "data": []})

    await _service(handler).get_assignments_due_soon("skill-art", days=3)
    assert seen["days"] == "3"


async def test_delete_returns_message_only():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": True, "data": None, "message": "Assignment deleted successfully"})

    result = await _service(handler).delete_assignment(5)
    assert result.success
    assert result.data is None
    assert result.message == "Assignment deleted successfully"


async def test_grading_rejects_non_letter_grade_without_a_request():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(500)

    session = GradingSession(_service(handler), assignment_id=3)
    result = await session.grade(7, "85", feedback="nice")

    assert not result.success
    assert result.error == "Please select a letter grade (A-E)"
    assert session.errors["grade"] == result.error
    assert calls == []


async def test_grading_replaces_entry_after_success():
    payloads = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, json={"success": True, "data": [_submission(), _submission(id=8)]})
        payloads.append(json.loads(request.content))
        graded = _submission(grade="B", feedback="Good job", status="graded", gradedAt="2026-01-06T09:00:00")
        return httpx.Response(200, json={"success": True, "data": graded, "message": "Assignment graded successfully"})

    session = GradingSession(_service(handler), assignment_id=3)
    await session.load()
    result = await session.grade(7, " b ", feedback="Good job")

    assert result.success
    assert payloads == [{"grade": "B", "feedback": "Good job", "status": "graded"}]
    assert session.get(7).status == "graded"
    assert session.get(7).letter_grade == "B"
    assert session.get(8).status == "submitted"
    assert session.in_flight == set()


async def test_failed_grade_leaves_state_unchanged():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, json={"success": True, "data": [_submission()]})
        return httpx.Response(500, json={"success": False, "error": "database is locked"})

    session = GradingSession(_service(handler), assignment_id=3)
    await session.load()
    before = session.get(7)

    result = await session.grade(7, "A")

    assert not result.success
    assert session.errors["submit"] == "database is locked"
    assert session.get(7) == before
    assert session.in_flight == set()


async def test_second_grade_while_first_is_in_flight_is_refused():
    release = asyncio.Event()
    puts = []

    async def handler(request: httpx.Request) -> httpx.Response:
        puts.append(request)
        await release.wait()
        return httpx.Response(200, json={"success": True, "data": _submission(grade="A", status="graded")})

    session = GradingSession(_service(handler), assignment_id=3)
    first = asyncio.create_task(session.grade(7, "A"))
    while not session.in_flight:
        await asyncio.sleep(0)

    second = await session.grade(7, "B")
    assert not second.success
    assert second.error == ALREADY_GRADING_MESSAGE

    release.set()
    assert (await first).success
    assert len(puts) == 1


async def test_submission_session_blocks_resubmitting_graded_work():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(201, json={"success": True, "data": _submission()})

    latest = SubmissionRead.model_validate(
        _submission(grade="A", status="graded", gradedAt="2026-01-06T09:00:00")
    )
    session = SubmissionSession(_service(handler), assignment_id=3, latest=latest)

    assert session.state is SubmissionState.GRADED
    result = await session.submit("again")
    assert not result.success
    assert result.error == ALREADY_GRADED_MESSAGE
    assert calls == []


async def test_submission_session_submits_camel_case_payload():
    payloads = []

    def handler(request: httpx.Request) -> httpx.Response:
        payloads.append(json.loads(request.content))
        return httpx.Response(201, json={"success": True, "data": _submission(submissionText="hello")})

    session = SubmissionSession(_service(handler), assignment_id=3)
    assert not session.is_resubmission

    result = await session.submit("hello")

    assert result.success
    assert payloads[0]["assignmentId"] == 3
    assert payloads[0]["submissionText"] == "hello"
    assert "submittedAt" in payloads[0]
    assert session.is_resubmission
    assert session.state is SubmissionState.SUBMITTED


async def test_pollers_deliver_results_and_stop_independently():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": True, "data": [{"id": 1}]})

    service = _service(handler)
    got_a, got_b = [], []

    async def on_b(result):
        got_b.append(result)

    a = AssignmentPoller(service, "skill-art", got_a.append, interval=0.01)
    b = AssignmentPoller(service, "skill-art", on_b, interval=0.01)
    a.start()
    b.start()

    while len(got_a) < 2 or len(got_b) < 2:
        await asyncio.sleep(0.01)

    await a.stop()
    assert not a.running
    assert b.running

    seen = len(got_a)
    await asyncio.sleep(0.05)
    assert len(got_a) == seen
    assert all(r.success and r.data == [{"id": 1}] for r in got_a)

    await b.stop()
    assert not b.running


async def test_poller_survives_a_failing_callback():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": True, "data": []})

    calls = []

    def explode(result):
        calls.append(result)
        raise RuntimeError("boom")

    async with AssignmentPoller(_service(handler), "skill-art", explode, interval=0.01) as poller:
        while len(calls) < 2:
            await asyncio.sleep(0.01)
        assert poller.running


async def test_malformed_base_url_becomes_error_result():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": True, "data": []})

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    service = AssignmentService(ApiClient("http://lms.test\x00/api", http=http))

    result = await service.get_all_assignments("skill-art")

    assert not result.success
    assert result.error


@pytest.mark.parametrize("data", [None, {}, ["not", "a", "token"]])
async def test_login_without_token_in_response_fails(data):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": True, "data": data})

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    api = ApiClient(BASE, http=http)

    result = await api.login("parent1@example.com", "password123")

    assert not result.success
    assert result.error == "Login response did not include an access token"
    assert api.token_provider is None
