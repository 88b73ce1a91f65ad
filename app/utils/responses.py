# app/utils/responses.py

from bson import ObjectId
from fastapi.encoders import jsonable_encoder


def to_jsonable(data):
    """Encode Mongo documents for JSON output (ObjectIds become strings)."""
    return jsonable_encoder(data, custom_encoder={ObjectId: str})


def format_response(success: bool, data=None, message: str = None, pagination: dict = None):
    body = {"success": success}
    if data is not None:
        body["data"] = to_jsonable(data)
    if message:
        body["message"] = message
    if pagination is not None:
        body["pagination"] = pagination
    return body


def format_error_response(message: str, error=None):
    body = {"success": False, "message": message}
    if error is not None:
        body["error"] = to_jsonable(error)
    return body
