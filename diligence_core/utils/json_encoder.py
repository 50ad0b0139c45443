"""JSON encoding for results that carry datetimes and enums"""
import json
from datetime import datetime
from enum import Enum


class DateTimeEncoder(json.JSONEncoder):
    def default(self, obj):
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        return super().default(obj)
