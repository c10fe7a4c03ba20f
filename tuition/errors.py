"""Error taxonomy shared by the services and the JSON routes.

Each error carries the HTTP status the routing layer answers with; the
message is what the caller sees in the ``{"error": ...}`` envelope.
"""


class TuitionError(Exception):
    status_code = 500
    default_message = 'Request failed'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(TuitionError):
    status_code = 400
    default_message = 'Invalid request'


class Unauthorized(TuitionError):
    status_code = 401
    default_message = 'Unauthorized'


class Forbidden(TuitionError):
    status_code = 403
    default_message = 'Access denied'


class NotFound(TuitionError):
    status_code = 404
    default_message = 'Not found'


class ScheduleConflict(TuitionError):
    status_code = 409
    default_message = 'The room is already scheduled for this time'


class StorageError(TuitionError):
    status_code = 500
    default_message = 'Storage failure'
