from __future__ import annotations


class StructureError(RuntimeError):
    """structuremapper 所有错误的基类。"""


class InvalidInputShape(StructureError):
    """值不属于 JSON 值域（例如 set、bytes、非字符串键），无法分类。"""


class JsonParseError(StructureError):
    """输入文本不是合法 JSON。与结构推断失败分开报告。"""


class ConfigError(StructureError):
    pass
