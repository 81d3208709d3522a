import os
import yaml
from dataclasses import _MISSING_TYPE, Field
from enum import Enum
from typing import Any, Dict, TypeVar

import logging
logger = logging.getLogger(__name__)


class ConfigLoader(yaml.SafeLoader):
    # https://stackoverflow.com/questions/528281/how-can-i-include-a-yaml-file-inside-another
    def __init__(self, stream):
        self._root = os.path.split(getattr(stream, "name", ""))[0]
        super(ConfigLoader, self).__init__(stream)

    def include(self, node):
        filename = os.path.join(self._root, self.construct_scalar(node))
        with open(filename, "r") as f:
            ret = yaml.load(f, ConfigLoader)
        assert ret is not None, "included file is empty? file: %s" % filename
        return ret

    def eval(self, node):
        # e.g. total_size: !eval 4*1024
        expr = self.construct_scalar(node)
        return eval(expr, {"__builtins__": {}})


ConfigLoader.add_constructor("!include", ConfigLoader.include)
ConfigLoader.add_constructor("!eval", ConfigLoader.eval)


T = TypeVar("T")


def dict_to_dataclass(d: Dict[str, Any], cls: T) -> T:
    """Build ``cls`` from a plain yaml mapping.

    Nested dataclasses are converted recursively; anything else is passed to
    the field type's constructor, so enum fields accept their yaml token
    directly. Numbers that would change value on conversion (``128.9`` for an
    ``int`` field) are rejected.
    """
    if not hasattr(cls, "__dataclass_fields__"):
        value = cls(d)
        if isinstance(d, (int, float)) and isinstance(value, (int, float)) and value != d:
            raise ValueError(f"{d!r} is not a valid {cls.__name__}")
        return value

    if not isinstance(d, dict):
        raise ValueError(f"expected a mapping for {cls.__name__}, got {d!r}")

    unknown = set(d) - set(cls.__dataclass_fields__)
    if unknown:
        logger.warning("ignoring unknown %s keys: %s", cls.__name__, sorted(unknown))

    kwargs = {}
    for field_name, field_type in cls.__dataclass_fields__.items():
        if not isinstance(field_type, Field) or not field_type.init:
            continue
        field_value = d.get(field_name)
        if field_value is not None:
            if field_type.type is None or type(field_value) == field_type.type:
                kwargs[field_name] = field_value
            else:
                kwargs[field_name] = dict_to_dataclass(field_value, field_type.type)
        elif not isinstance(field_type.default_factory, _MISSING_TYPE):
            kwargs[field_name] = field_type.default_factory()
        elif not isinstance(field_type.default, _MISSING_TYPE):
            kwargs[field_name] = field_type.default
        else:
            raise ValueError(f"required {field_name} is not provided")
    return cls(**kwargs)


def load_config(config_path: str, cls: T) -> T:
    with open(config_path) as f:
        data = yaml.load(f, ConfigLoader)
    if data is None:
        raise ValueError(f"config file {config_path} is empty")
    return dict_to_dataclass(data, cls)


class BaseEnum(Enum):
    """Enum that also resolves members by name or value, ignoring case."""

    @classmethod
    def _missing_(cls, value):
        if not isinstance(value, str):
            return None
        value = value.lower()
        for member in cls:
            if member.name.lower() == value:
                return member
            if isinstance(member.value, str) and member.value.lower() == value:
                return member
        return None

    def __repr__(self):
        return self.name
