"""Conversion between MongoDB Extended JSON and BSON-ready Python values"""

import json
from typing import Any

from bson import json_util
from bson.json_util import JSONMode, JSONOptions

_RELAXED = JSONOptions(json_mode=JSONMode.RELAXED)


def from_ejson(value: Any) -> Any:
    """Turn Extended JSON values ({"$oid": ...}, {"$date": ...}) into BSON types"""
    return json_util.loads(json.dumps(value))


def to_ejson(value: Any) -> str:
    return json_util.dumps(value, json_options=_RELAXED)
