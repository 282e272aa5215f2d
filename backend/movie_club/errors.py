"""Domain error taxonomy.

Every failure a service can report is a ``MovieClubError`` subclass with an
HTTP status category and a user-visible message. The API layer turns them
into JSON responses; anything else is treated as an internal error.
"""
from fastapi import status


class MovieClubError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    detail: str = "Request could not be completed"

    def __init__(self, detail: str | None = None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class UnauthenticatedError(MovieClubError):
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Unauthorized"


class ForbiddenError(MovieClubError):
    status_code = status.HTTP_403_FORBIDDEN
    detail = "Only commissioners can perform this action"


class NotMemberError(MovieClubError):
    status_code = status.HTTP_403_FORBIDDEN
    detail = "You are not a member of this group"


class NotYourTurnError(MovieClubError):
    status_code = status.HTTP_403_FORBIDDEN
    detail = "It's not your turn to select a movie"


class ConflictError(MovieClubError):
    status_code = status.HTTP_409_CONFLICT
    detail = "Conflict"


class AlreadySelectedError(ConflictError):
    status_code = status.HTTP_409_CONFLICT
    detail = "A movie has already been selected for this period"


class AlreadyMemberError(ConflictError):
    status_code = status.HTTP_409_CONFLICT
    detail = "You are already a member of this group"


class LastCommissionerError(ConflictError):
    status_code = status.HTTP_409_CONFLICT
    detail = "A group must keep at least one commissioner"


class SelfRemovalError(MovieClubError):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Cannot remove yourself"


class InvalidRatingError(MovieClubError):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Rating must be between 0.5 and 5.0"


class RatingClosedError(MovieClubError):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Movie is not in rating period"


class InvalidTransitionError(MovieClubError):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Illegal movie status transition"


class NotFoundError(MovieClubError):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Not found"


class NotFoundOrForbiddenError(MovieClubError):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Rating not found or unauthorized"
