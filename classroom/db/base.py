from classroom.db.base_class import Base

# every model must be imported here so the mapper registry is complete
# before relationships are configured or tables are created
from classroom.models.assignment import Assignment  # noqa: F401
from classroom.models.assignment_student import AssignmentStudent  # noqa: F401
from classroom.models.submission import Submission  # noqa: F401
from classroom.models.user import User  # noqa: F401
