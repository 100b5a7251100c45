from __future__ import annotations

from typing import Any, Callable, Dict, List, Sequence

from structuremapper.core.errors import InvalidInputShape
from structuremapper.core.iterative import Step, unwind
from structuremapper.core.shape import (
    BOOLEAN,
    EMPTY_ARRAY,
    NULL,
    NUMBER,
    STRING,
    ArrayShape,
    EmptyArray,
    ObjectShape,
    Primitive,
    Shape,
    UnionPrimitive,
    is_array_shaped,
    is_primitive_like,
)

ProgressCallback = Callable[[str], None]


def classify_scalar(value: Any) -> str:
    # bool 是 int 的子类，必须先判断
    if isinstance(value, bool):
        return BOOLEAN
    if isinstance(value, (int, float)):
        return NUMBER
    if isinstance(value, str):
        return STRING
    raise InvalidInputShape(f"不支持的值类型: {type(value).__name__}")


def count_items(value: Any) -> int:
    """统计节点总数（仅用于进度百分比）。"""
    total = 0
    pending = [value]
    while pending:
        node = pending.pop()
        total += 1
        if isinstance(node, list):
            pending.extend(node)
        elif isinstance(node, dict):
            pending.extend(node.values())
    return total


def _primitive_labels(shape: Shape) -> Sequence[str]:
    if isinstance(shape, UnionPrimitive):
        return shape.labels
    return (shape.label,)


def _merge_primitives(shapes: Sequence[Shape]) -> Shape:
    labels: List[str] = []
    for shape in shapes:
        if isinstance(shape, EmptyArray):
            continue
        for label in _primitive_labels(shape):
            if label not in labels:
                labels.append(label)
    if not labels:
        return EMPTY_ARRAY
    if len(labels) == 1:
        return Primitive(labels[0])
    return UnionPrimitive(tuple(labels))


def _as_elements(shape: Shape) -> List[Shape]:
    if isinstance(shape, ArrayShape):
        return [shape.element]
    if isinstance(shape, EmptyArray):
        return []
    return [shape]


def _merge_array_group(shapes: Sequence[Shape]) -> Step:
    elements: List[Shape] = []
    for shape in shapes:
        elements.extend(_as_elements(shape))
    elements = [item for item in elements if not isinstance(item, EmptyArray)]
    if elements:
        return ArrayShape((yield _merge(elements)))
    # [[]] 与 [[]] 合并仍是 [[]]，不能塌缩成 []
    if any(isinstance(shape, ArrayShape) for shape in shapes):
        return ArrayShape(EMPTY_ARRAY)
    return EMPTY_ARRAY


def _merge(shapes: Sequence[Shape]) -> Step:
    if not shapes:
        return ObjectShape()

    if all(is_primitive_like(s) or isinstance(s, EmptyArray) for s in shapes):
        return _merge_primitives(shapes)

    if not any(isinstance(s, ObjectShape) for s in shapes):
        return (yield _merge_array_group(shapes))

    merged: Dict[str, Shape] = {}
    for shape in shapes:
        # 与对象并列的原始值 / 数组视为数据冲突，直接跳过
        if not isinstance(shape, ObjectShape):
            continue
        for key, incoming in shape.fields:
            if key not in merged:
                merged[key] = incoming
                continue
            existing = merged[key]
            if is_array_shaped(existing) or is_array_shaped(incoming):
                merged[key] = yield _merge_array_group([existing, incoming])
            elif isinstance(existing, ObjectShape) and isinstance(incoming, ObjectShape):
                merged[key] = yield _merge([existing, incoming])
    return ObjectShape(tuple(merged.items()))


def merge_shapes(shapes: Sequence[Shape]) -> Shape:
    """把数组元素的形状合并为一个代表形状。

    - 全部为原始类型 / 空数组：去掉空数组后按首次出现顺序合并标签
    - 含对象：逐字段合并，字段集合取并集，非数组冲突时先出现者胜出，
      任一侧为数组时展开后合并为 ArrayShape
    - 只有数组（嵌套数组）：按字段级数组规则展开合并

    合并在显式栈上进行，嵌套深度不受解释器递归上限约束。
    """
    return unwind(_merge(shapes))


class _Progress:
    def __init__(self, callback: ProgressCallback, total: int) -> None:
        self.callback = callback
        self.total = max(total, 1)
        self.processed = 0

    def percent(self) -> str:
        return f"{self.processed / self.total * 100:.1f}"


class StructureInferencer:
    """推断任意 JSON 值的结构形状。

    on_progress 只在顶层按固定间隔被调用，不影响结果；
    计数器都是单次调用内的局部状态，可在多线程中并发使用同一实例。
    """

    def __init__(
        self,
        on_progress: ProgressCallback | None = None,
        array_interval: int = 100,
        field_interval: int = 1000,
    ) -> None:
        self._on_progress = on_progress
        self.array_interval = max(int(array_interval), 1)
        self.field_interval = max(int(field_interval), 1)

    def infer(self, value: Any, depth: int = 0) -> Shape:
        progress = None
        if self._on_progress is not None and depth == 0:
            progress = _Progress(self._on_progress, count_items(value))
            progress.callback(f"Starting analysis of {progress.total} total items/fields")
        return unwind(self._infer(value, depth, progress))

    merge = staticmethod(merge_shapes)

    def _infer(self, value: Any, depth: int, progress: _Progress | None) -> Step:
        if isinstance(value, list):
            if not value:
                return EMPTY_ARRAY
            shapes: List[Shape] = []
            for index, item in enumerate(value):
                if progress is not None:
                    progress.processed += 1
                    if depth == 0 and index % self.array_interval == 0:
                        progress.callback(
                            f"Processing array item {index + 1}/{len(value)} ({progress.percent()}% complete)"
                        )
                shapes.append((yield self._infer(item, depth + 1, progress)))
            return ArrayShape((yield _merge(shapes)))

        if value is None:
            return Primitive(NULL)

        if isinstance(value, dict):
            if progress is not None and depth == 0:
                progress.callback(f"Found {len(value)} top-level fields")
            fields = []
            last = len(value) - 1
            for index, (key, item) in enumerate(value.items()):
                if not isinstance(key, str):
                    raise InvalidInputShape(f"对象键必须是字符串: {key!r}")
                if progress is not None:
                    progress.processed += 1
                    if depth == 0 and (index % self.field_interval == 0 or index == last):
                        progress.callback(
                            f'Processing field "{key}" ({index + 1}/{len(value)}, {progress.percent()}% complete)'
                        )
                fields.append((key, (yield self._infer(item, depth + 1, progress))))
            return ObjectShape(tuple(fields))

        return Primitive(classify_scalar(value))


def infer_structure(value: Any, on_progress: ProgressCallback | None = None) -> Shape:
    return StructureInferencer(on_progress=on_progress).infer(value)
