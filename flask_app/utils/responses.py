"""
JSON response helpers shared by the list and watch-history routes.
"""
from typing import Optional

from flask import jsonify

from cineverso.models import SyncResult, SyncStatus

LOGIN_MESSAGE = 'Please log in to save your lists and watch history.'
LOCAL_ONLY_WARNING = 'Could not reach your account right now. Your changes were saved on this device only.'
FAILURE_MESSAGE = 'Something went wrong saving your change. Please try again.'


def sync_result_response(result: SyncResult, success_message: str,
                         failure_message: Optional[str] = None, **payload):
    """
    Convert a SyncResult into a JSON response with a toast message.

    Args:
        result: Outcome of the service call
        success_message: Message shown when the change was saved
        failure_message: Message shown when the call failed (default FAILURE_MESSAGE)
        **payload: Extra fields merged into the response body

    Returns:
        Tuple of (response, status code)
    """
    body = {'status': result.status.value, 'reason': result.reason, **payload}

    if result.needs_login:
        body['message'] = LOGIN_MESSAGE
        return jsonify(body), 401

    if result.status is SyncStatus.FAILED:
        body['message'] = failure_message or FAILURE_MESSAGE
        return jsonify(body), 500

    body['message'] = success_message
    if result.remote_write_failed:
        body['warning'] = LOCAL_ONLY_WARNING
    return jsonify(body), 200
