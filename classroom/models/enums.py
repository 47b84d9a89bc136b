import enum


class Role(str, enum.Enum):
    TUTOR = "TUTOR"
    STUDENT = "STUDENT"


class AssignmentStatus(str, enum.Enum):
    SCHEDULED = "SCHEDULED"
    ONGOING = "ONGOING"
    SUBMITTED = "SUBMITTED"
    # feed filter labels, never written by the service
    PENDING = "PENDING"
    OVERDUE = "OVERDUE"
