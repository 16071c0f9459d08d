"""
Uniform JSON response envelope for the API.
"""

from flask import jsonify


def api_response(status: str, reason: str, intent: str, *data, http_status: int = 200):
    """
    Build an API response.

    Args:
        status: 'success' or 'failed'
        reason: Short human-readable message
        intent: Operation the caller attempted (e.g. 'TakeBackup')
        *data: Positional payload items
        http_status: HTTP status code

    Returns:
        (Response, status code) tuple for Flask
    """
    return jsonify({
        'status': status,
        'reason': reason,
        'intent': intent,
        'data': list(data)
    }), http_status
