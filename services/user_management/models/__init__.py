from .users import User, UserRole
from .grades import Grade
from .subjects import Subject, SubjectGroup, SubjectGroupAssignment
from .enrollments import TeacherAssignment, SubjectEnrollment, StudentEnrollment
