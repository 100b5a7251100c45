"""
结构形状（Shape）数据模型

一个 Shape 描述 JSON 值的结构类型：
- Primitive("string" | "number" | "boolean" | "null")
- ObjectShape：有序字段 -> Shape
- ArrayShape：包装唯一一个元素 Shape（所有元素合并后的代表形状）
- EmptyArray：观察到的空数组，与 ArrayShape 永不合并为同一形状
- UnionPrimitive：数组中出现多种原始类型时的联合标签，如 "number|string"

所有 Shape 都是不可变的（frozen dataclass + tuple）。
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Tuple, Union

from structuremapper.core.errors import InvalidInputShape
from structuremapper.core.iterative import Step, unwind

STRING = "string"
NUMBER = "number"
BOOLEAN = "boolean"
NULL = "null"
PRIMITIVE_LABELS = (STRING, NUMBER, BOOLEAN, NULL)

EMPTY_ARRAY_LABEL = "empty[]"
UNION_SEPARATOR = "|"


@dataclass(frozen=True)
class Primitive:
    label: str


@dataclass(frozen=True)
class UnionPrimitive:
    labels: Tuple[str, ...]

    @property
    def label(self) -> str:
        return UNION_SEPARATOR.join(self.labels)


@dataclass(frozen=True)
class ObjectShape:
    fields: Tuple[Tuple[str, "Shape"], ...] = ()

    def __len__(self) -> int:
        return len(self.fields)

    def __iter__(self) -> Iterator[str]:
        return (key for key, _ in self.fields)

    def __contains__(self, key: object) -> bool:
        return any(name == key for name, _ in self.fields)

    def keys(self) -> list[str]:
        return [key for key, _ in self.fields]

    def items(self) -> Tuple[Tuple[str, "Shape"], ...]:
        return self.fields

    def get(self, key: str, default: "Shape | None" = None) -> "Shape | None":
        for name, value in self.fields:
            if name == key:
                return value
        return default


@dataclass(frozen=True)
class ArrayShape:
    element: "Shape"


@dataclass(frozen=True)
class EmptyArray:
    """零元素数组的哨兵形状。"""


EMPTY_ARRAY = EmptyArray()

Shape = Union[Primitive, UnionPrimitive, ObjectShape, ArrayShape, EmptyArray]


def is_array_shaped(shape: Shape) -> bool:
    return isinstance(shape, (ArrayShape, EmptyArray))


def is_primitive_like(shape: Shape) -> bool:
    return isinstance(shape, (Primitive, UnionPrimitive))


def object_shape(mapping: Dict[str, Shape]) -> ObjectShape:
    return ObjectShape(tuple(mapping.items()))


def _leaf_label(shape: Shape) -> str:
    if isinstance(shape, (Primitive, UnionPrimitive)):
        return shape.label
    if isinstance(shape, EmptyArray):
        return EMPTY_ARRAY_LABEL
    raise InvalidInputShape(f"不是 Shape: {type(shape).__name__}")


def _to_json(shape: Shape) -> Step:
    if isinstance(shape, ArrayShape):
        return [(yield _to_json(shape.element))]
    if isinstance(shape, ObjectShape):
        out: Dict[str, Any] = {}
        for key, value in shape.fields:
            out[key] = yield _to_json(value)
        return out
    return _leaf_label(shape)


def to_json(shape: Shape) -> Any:
    """把 Shape 转成可以直接 json.dumps 的普通值。"""
    return unwind(_to_json(shape))


def _label_shape(value: str) -> Shape:
    if value == EMPTY_ARRAY_LABEL:
        return EMPTY_ARRAY
    parts = value.split(UNION_SEPARATOR)
    unknown = [part for part in parts if part not in PRIMITIVE_LABELS]
    if unknown:
        raise InvalidInputShape(f"未知的类型标签: {value!r}")
    if len(parts) == 1:
        return Primitive(parts[0])
    if len(set(parts)) != len(parts):
        raise InvalidInputShape(f"联合标签中有重复项: {value!r}")
    return UnionPrimitive(tuple(parts))


def _from_json(value: Any) -> Step:
    if isinstance(value, str):
        return _label_shape(value)
    if isinstance(value, list):
        if len(value) != 1:
            raise InvalidInputShape(f"数组形状必须只有一个元素，实际为 {len(value)}")
        return ArrayShape((yield _from_json(value[0])))
    if isinstance(value, dict):
        fields = []
        for key, item in value.items():
            fields.append((str(key), (yield _from_json(item))))
        return ObjectShape(tuple(fields))
    raise InvalidInputShape(f"无法识别的结构值: {value!r}")


def from_json(value: Any) -> Shape:
    """to_json 的逆操作：从序列化后的结构重建 Shape，未知标签直接报错。"""
    return unwind(_from_json(value))


def _dump(shape: Shape, level: int, indent: int, out: List[str]) -> Step:
    inner = "\n" + " " * (indent * (level + 1))
    closing = "\n" + " " * (indent * level)
    if isinstance(shape, ArrayShape):
        out.append("[" + inner)
        yield _dump(shape.element, level + 1, indent, out)
        out.append(closing + "]")
    elif isinstance(shape, ObjectShape):
        if not shape.fields:
            out.append("{}")
            return
        for index, (key, value) in enumerate(shape.fields):
            out.append(("," if index else "{") + inner + json.dumps(key, ensure_ascii=False) + ": ")
            yield _dump(value, level + 1, indent, out)
        out.append(closing + "}")
    else:
        out.append(json.dumps(_leaf_label(shape), ensure_ascii=False))


def dumps(shape: Shape, indent: int = 2) -> str:
    """输出与 json.dumps(to_json(shape), ensure_ascii=False, indent=indent) 相同的文本，
    但不依赖递归，任意深度的结构都可以序列化。"""
    out: List[str] = []
    unwind(_dump(shape, 0, indent, out))
    return "".join(out)
