from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

from structuremapper.core.shape import ArrayShape, ObjectShape, Shape


@dataclass(frozen=True)
class Metrics:
    max_depth: int
    unique_fields: int

    def to_dict(self) -> Dict[str, int]:
        return {"maxDepth": self.max_depth, "uniqueFields": self.unique_fields}


class ComplexityAnalyzer:
    """在已推断的 Shape 上统计最大嵌套深度与字段名去重数量。

    深度规则：根对象的直接字段为 0 层，每嵌套一层对象 +1；
    数组包装本身不增加深度。字段名按名字去重，不区分路径。
    """

    def analyze(self, shape: Shape) -> Metrics:
        names: set[str] = set()
        max_depth = 0
        # 显式栈，避免超深文档触发递归上限
        stack: List[Tuple[Shape, int]] = [(shape, 0)]
        while stack:
            current, depth = stack.pop()
            max_depth = max(max_depth, depth)
            if isinstance(current, ArrayShape):
                stack.append((current.element, depth))
                continue
            if not isinstance(current, ObjectShape):
                continue
            for key, value in current.fields:
                names.add(key)
                if isinstance(value, (ObjectShape, ArrayShape)):
                    stack.append((value, depth + 1))
        return Metrics(max_depth=max_depth, unique_fields=len(names))


def calculate_complexity(shape: Shape) -> Metrics:
    return ComplexityAnalyzer().analyze(shape)
