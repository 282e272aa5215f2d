"""ORM models; importing the package registers every mapper with Base.metadata."""
from movie_club.models.user import User  # noqa: F401
from movie_club.models.group import DayOfWeek, Group, GroupMember, GroupSettings, MemberRole, MovieDuration  # noqa: F401
from movie_club.models.movie import ACTIVE_STATUSES, Movie, MovieStatus  # noqa: F401
from movie_club.models.rating import Rating  # noqa: F401
