# engine/errors.py
import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class GameError(Exception):
    code = "game_error"
    status_code = status.HTTP_400_BAD_REQUEST
    retryable = False
    default_message = "Request rejected"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def as_dict(self):
        return {
            "error": self.message,
            "code": self.code,
            "retryable": self.retryable,
        }


class InvalidInput(GameError):
    code = "invalid_input"
    default_message = "Invalid parameters"


class InsufficientBalance(GameError):
    code = "insufficient_balance"
    default_message = "Insufficient balance"


class SessionConflict(GameError):
    code = "session_conflict"
    status_code = status.HTTP_409_CONFLICT
    default_message = "A game of this type is already in progress"


class SessionNotFound(GameError):
    code = "session_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "No game in progress"


class RoundLocked(GameError):
    code = "round_locked"
    status_code = status.HTTP_409_CONFLICT
    default_message = "A jackpot round is currently running. Please wait."


class DuplicateEntrant(GameError):
    code = "duplicate_entrant"
    status_code = status.HTTP_409_CONFLICT
    default_message = "You have already joined the jackpot."


class AlreadySettled(GameError):
    code = "already_settled"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Wager already settled"


class PersistenceFailure(GameError):
    code = "persistence_failure"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    retryable = True
    default_message = "Could not complete the operation. Please try again."


def api_exception_handler(exc, context):
    """DRF EXCEPTION_HANDLER: renders GameError, defers everything else."""
    if isinstance(exc, GameError):
        if isinstance(exc, PersistenceFailure):
            logger.error(f"Persistence failure in {context.get('view')}: {exc}")
        return Response(exc.as_dict(), status=exc.status_code)
    return exception_handler(exc, context)
