"""Error Taxonomy

Exceptions raised by the services layer. The API layer maps each class to an
HTTP status code and the standard error envelope (see vod_dashboard.main).
"""


class DashboardError(Exception):
    """Base class for all expected dashboard failures"""

    status_code = 500
    error_code = "internal_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class RemoteUnavailable(DashboardError):
    """Remote Xtream API returned a non-success status or could not be reached"""

    status_code = 502
    error_code = "remote_unavailable"


class MalformedResponse(RemoteUnavailable):
    """Remote Xtream API answered with a body that is not the expected JSON shape"""

    error_code = "malformed_response"


class NotFound(DashboardError):
    """Referenced server, category or movie does not exist"""

    status_code = 404
    error_code = "not_found"


class MovieNotFound(NotFound, RemoteUnavailable):
    """Remote server has no movie with the requested stream id"""

    status_code = 404
    error_code = "not_found"


class ValidationError(DashboardError):
    """Caller-supplied identifiers or parameters failed shape checks"""

    status_code = 400
    error_code = "validation_error"
