from periodgrid.models.classroom import Classroom  # noqa: F401
from periodgrid.models.department import Department  # noqa: F401
from periodgrid.models.faculty import Faculty  # noqa: F401
from periodgrid.models.notification import Notification  # noqa: F401
from periodgrid.models.rearrangement_request import RearrangementRequest  # noqa: F401
from periodgrid.models.subject import Subject  # noqa: F401
from periodgrid.models.timetable import Timetable  # noqa: F401
from periodgrid.models.user import User, UserRole  # noqa: F401
