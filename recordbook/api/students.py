"""Student API routes — the student screen's storage actions over HTTP.

Six endpoints:
- List: all students, and all students with their courses
- Lookup by PersonalNo (404 when absent)
- Create, update, delete

Update carries the student as last loaded (``selected``) next to the
edited ``fields``, exactly what the screen holds. The key check runs
before storage is touched. Domain errors are raised and turned into
ApiResponse envelopes by the handlers in recordbook.main.
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from recordbook.api.deps import get_student_dao
from recordbook.data.students import StudentDao
from recordbook.schemas import ApiError, ApiResponse, Student
from recordbook.screens.entities import StudentScreen
from recordbook.screens.forms import StudentForm

router = APIRouter()


# ---------------------------------------------------------------------------
# Request bodies (API-boundary types, local to this module)
# ---------------------------------------------------------------------------


class UpdateStudentRequest(BaseModel):
    """Request body for PUT /students."""

    selected: Student | None = None
    fields: StudentForm


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.get("")
def list_students(dao: StudentDao = Depends(get_student_dao)) -> dict[str, Any]:
    students = dao.get_all()
    return ApiResponse(ok=True, data=[s.model_dump() for s in students]).model_dump()


@router.get("/with-courses")
def list_students_with_courses(
    dao: StudentDao = Depends(get_student_dao),
) -> dict[str, Any]:
    groups = dao.get_all_with_related()
    return ApiResponse(ok=True, data=[g.model_dump() for g in groups]).model_dump()


@router.get("/{personal_no}")
def get_student(
    personal_no: str,
    dao: StudentDao = Depends(get_student_dao),
) -> dict[str, Any]:
    student = dao.get_by_key(personal_no)
    if student is None:
        raise HTTPException(
            status_code=404,
            detail=ApiResponse(
                ok=False,
                error=ApiError(
                    code="NOT_FOUND",
                    message=f"No student with PersonalNo: {personal_no}",
                ),
            ).model_dump(),
        )
    return ApiResponse(ok=True, data=student.model_dump()).model_dump()


@router.post("", status_code=201)
def create_student(
    form: StudentForm,
    dao: StudentDao = Depends(get_student_dao),
) -> dict[str, Any]:
    record = form.to_record()
    dao.save(record)
    return ApiResponse(ok=True, data=record.model_dump()).model_dump()


@router.put("")
def update_student(
    body: UpdateStudentRequest,
    dao: StudentDao = Depends(get_student_dao),
) -> dict[str, Any]:
    screen = StudentScreen(dao)
    screen.select(body.selected)
    screen.update(body.fields)
    return ApiResponse(ok=True, data=screen.selected.model_dump()).model_dump()


@router.delete("/{personal_no}")
def delete_student(
    personal_no: str,
    dao: StudentDao = Depends(get_student_dao),
) -> dict[str, Any]:
    dao.delete_by_key(personal_no)
    return ApiResponse(ok=True, data={"personal_no": personal_no}).model_dump()
