"""Domain exceptions raised by services and rendered by the exception handlers."""

from typing import Any

from fastapi import status

from app.core.enums import TournamentClosedReason


class AppError(Exception):
    """Base exception carrying the HTTP status it maps to."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def data(self) -> dict[str, Any] | None:
        return None


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class TournamentNotFoundError(NotFoundError):
    def __init__(self, tournament_id: int) -> None:
        super().__init__("Tournament not found")
        self.tournament_id = tournament_id


class PokemonNotFoundError(NotFoundError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Pokemon '{name}' not found")
        self.name = name


class InvalidRequestError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class TournamentClosedError(AppError):
    """Raised when a battle is added to a tournament that is no longer live."""

    status_code = status.HTTP_400_BAD_REQUEST

    MESSAGES = {
        TournamentClosedReason.ENDED_BY_TIME: "Tournament has ended",
        TournamentClosedReason.ROUND_LIMIT_REACHED: "Tournament round limit reached",
        TournamentClosedReason.NOT_LIVE: "Tournament is not live",
    }

    def __init__(self, reason: TournamentClosedReason) -> None:
        super().__init__(self.MESSAGES[reason])
        self.reason = reason

    @property
    def data(self) -> dict[str, Any]:
        return {"reason": self.reason.value}


class UpstreamError(AppError):
    """Raised when the Pokemon stats provider cannot be reached or misbehaves."""

    status_code = status.HTTP_502_BAD_GATEWAY


class PersistenceError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
