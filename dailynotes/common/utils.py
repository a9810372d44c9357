from datetime import date

from flask import jsonify

from dailynotes.common.errors import ApiError

def success(data=None, message="ok", status=200):
    return jsonify({"status": "success", "message": message, "data": data}), status

def parse_day(value: str) -> date:
    """YYYY-MM-DD -> date, sinon ApiError 400."""
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ApiError("Invalid date, expected YYYY-MM-DD.", 400, "validation_error", details={"date": value})
