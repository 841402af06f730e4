from enum import Enum
from datetime import datetime, date
from sqlalchemy.inspection import inspect

def to_dict(model_instance, exclude=(), camel_case=True):
    output = {}
    mapper = inspect(model_instance.__class__)

    for column in mapper.columns:
        key = column.key
        if key in exclude:
            continue
        value = getattr(model_instance, key)

        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, (datetime, date)):
            value = value.isoformat()

        output[_camel(key) if camel_case else key] = value

    return output


def _camel(key):
    head, *rest = key.split("_")
    return head + "".join(part.title() for part in rest)
