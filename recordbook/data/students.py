"""Student access object — students, and students with their courses.

Courses have no procedures of their own; they only ever arrive attached to
a student through uspGetAllStudentsWithDepartments.
"""

from recordbook.data.base import JoinedEntityDao, JoinedRead, Procedures
from recordbook.data.mapping import ColumnMap
from recordbook.schemas import Course, Student, StudentWithCourses

STUDENT_COLUMNS = ColumnMap(
    model=Student,
    columns={"personal_no": "PersonalNo", "name": "Name", "email": "Email"},
    key_fields=("personal_no",),
)

# uspGetAllStudentsWithDepartments prefixes both sides of the join.
JOINED_STUDENT_COLUMNS = ColumnMap(
    model=Student,
    columns={
        "personal_no": "StudentPersonalNo",
        "name": "StudentName",
        "email": "StudentEmail",
    },
    key_fields=("personal_no",),
)

JOINED_COURSE_COLUMNS = ColumnMap(
    model=Course,
    columns={"course_code": "CourseCode", "name": "CourseName", "credits": "CourseCredits"},
    key_fields=("course_code",),
)


class StudentDao(JoinedEntityDao[Student, StudentWithCourses]):
    """Students keyed by PersonalNo."""

    entity = "student"
    entity_plural = "students"
    procedures = Procedures(
        get_all="uspGetAllStudents",
        get_by_key="uspGetStudentByPersonalNo",
        save="uspInsertStudent",
        update="uspUpdateStudent",
        delete="uspDeleteStudent",
    )
    columns = STUDENT_COLUMNS
    duplicate_message = "A student with this PersonalNo already exists."
    joined = JoinedRead(
        procedure="uspGetAllStudentsWithDepartments",
        primary=JOINED_STUDENT_COLUMNS,
        related=JOINED_COURSE_COLUMNS,
        build=StudentWithCourses.from_group,
        failure_message="Error fetching students and their courses.",
    )
