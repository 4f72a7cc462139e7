from datetime import datetime, timezone
from typing import Any, Optional, Union

from childcare.client.api import ApiClient, ApiResult

Id = Union[int, str]

SEARCH_FIELDS = ("title", "description", "instructions")


def _matches(assignment: dict, term: str) -> bool:
    term = term.lower()
    return any(term in (assignment.get(field) or "").lower() for field in SEARCH_FIELDS)


class AssignmentService:
    """One method per endpoint; every method returns an `ApiResult` and never raises on API errors."""

    def __init__(self, api: ApiClient):
        self.api = api

    async def create_assignment(self, assignment_data: dict) -> ApiResult:
        return await self.api.call("POST", "/assignments", json=assignment_data)

    async def get_all_assignments(self, skill_id: Id) -> ApiResult:
        return await self.api.call("GET", f"/assignments/skill/{skill_id}")

    async def get_assignment_by_id(self, assignment_id: Id) -> ApiResult:
        return await self.api.call("GET", f"/assignments/{assignment_id}")

    async def update_assignment(self, assignment_id: Id, updates: dict) -> ApiResult:
        return await self.api.call("PUT", f"/assignments/{assignment_id}", json=updates)

    async def delete_assignment(self, assignment_id: Id) -> ApiResult:
        result = await self.api.call("DELETE", f"/assignments/{assignment_id}")
        return ApiResult.ok(message=result.message) if result.success else result

    async def search_assignments(self, skill_id: Id, search_term: str) -> ApiResult:
        # filtered here so it works against any backend that can list by skill
        result = await self.get_all_assignments(skill_id)
        if not result.success:
            return result
        return ApiResult.ok([a for a in result.data or [] if _matches(a, search_term)])

    async def get_assignments_by_type(self, skill_id: Id, assignment_type: str) -> ApiResult:
        return await self.api.call("GET", f"/assignments/skill/{skill_id}/type/{assignment_type}")

    async def get_assignments_due_soon(self, skill_id: Id, days: int = 7) -> ApiResult:
        return await self.api.call("GET", f"/assignments/skill/{skill_id}/due-soon", params={"days": days})

    async def submit_assignment(
        self,
        assignment_id: Id,
        submission_text: str = "",
        attachments: Optional[list[dict]] = None,
        submitted_at: Optional[datetime] = None,
    ) -> ApiResult:
        submitted_at = submitted_at or datetime.now(timezone.utc)
        payload = {
            "assignmentId": assignment_id,
            "submissionText": submission_text,
            "attachments": attachments or [],
            "submittedAt": submitted_at.isoformat(),
        }
        return await self.api.call("POST", "/assignments/submit", json=payload)

    async def get_assignment_submissions(self, assignment_id: Id) -> ApiResult:
        return await self.api.call("GET", f"/assignments/{assignment_id}/submissions")

    async def grade_assignment_submission(self, submission_id: Id, grade_data: dict[str, Any]) -> ApiResult:
        return await self.api.call("PUT", f"/assignments/submissions/{submission_id}/grade", json=grade_data)

    async def get_student_submissions(self, student_id: Id) -> ApiResult:
        return await self.api.call("GET", f"/assignments/student/{student_id}/submissions")
