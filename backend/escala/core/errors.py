"""
Domain errors for the attendance lifecycle and notification delivery.

Attendance errors carry the message shown to the leader and the HTTP status
the mark-attendance endpoint answers with.
"""
from fastapi import status


class AttendanceError(Exception):
    """Base class for attendance confirmation failures."""
    message = "Não foi possível marcar a presença."
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class Unauthorized(AttendanceError):
    message = "Falha na autenticação."


class InvalidPayload(AttendanceError):
    message = "Dados do QR code inválidos. IDs de voluntário, evento e departamento são necessários."


class PermissionDenied(AttendanceError):
    message = "Permissão negada. Você só pode marcar presença para o seu próprio departamento."


class NotScheduled(AttendanceError):
    message = "Este voluntário não está escalado para este evento neste departamento."


class AlreadyConfirmed(AttendanceError):
    message = "Este voluntário já teve a presença confirmada."
    status_code = status.HTTP_409_CONFLICT


class DatastoreUnavailable(AttendanceError):
    message = "Banco de dados indisponível."


class DeliveryFailure(Exception):
    """A push endpoint rejected or failed a delivery."""

    def __init__(self, endpoint: str, detail: str = "", status_code: int | None = None):
        self.endpoint = endpoint
        self.status_code = status_code
        super().__init__(f"Push delivery to {endpoint} failed: {detail}")


class PushGone(DeliveryFailure):
    """The push endpoint no longer exists (HTTP 404/410)."""
