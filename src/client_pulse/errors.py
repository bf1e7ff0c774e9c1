"""Error taxonomy shared by the core services and the HTTP layer."""
from flask import jsonify
from werkzeug.exceptions import HTTPException


class ClientPulseError(Exception):
    status_code = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {'error': self.message}


class ValidationError(ClientPulseError):
    """Malformed or missing input. Nothing was changed."""
    status_code = 400


class NotFoundError(ClientPulseError):
    """A referenced client or reminder does not exist. Nothing was changed."""
    status_code = 404


class DispatchFailure(ClientPulseError):
    """The mail transport failed; the reminder has already been marked failed."""
    status_code = 500

    def __init__(self, message, reminder=None):
        super().__init__(message)
        self.reminder = reminder

    def to_dict(self):
        payload = {'ok': False, 'error': self.message}
        if self.reminder is not None:
            payload['reminder'] = self.reminder.to_dict()
        return payload


class SchedulerTickError(ClientPulseError):
    """Unexpected failure inside a polling tick. Caught at the tick boundary."""


def register_error_handlers(app):
    @app.errorhandler(ClientPulseError)
    def handle_client_pulse_error(error):
        if error.status_code >= 500:
            app.logger.error(f"Request failed: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({'error': error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        app.logger.error(f"Unhandled error: {error}", exc_info=True)
        return jsonify({'error': 'Internal server error'}), 500
