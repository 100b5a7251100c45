from __future__ import annotations

from typing import Any, Generator, List

Step = Generator["Step", Any, Any]


def unwind(start: Step) -> Any:
    """在显式栈上运行"递归"生成器。

    生成器 yield 一个子生成器即表示一次递归调用，子生成器 return 的值
    会被 send 回父生成器。嵌套深度只受内存限制，不占用解释器递归栈。
    """
    stack: List[Step] = [start]
    value: Any = None
    while stack:
        try:
            child = stack[-1].send(value)
        except StopIteration as stop:
            stack.pop()
            value = stop.value
            continue
        stack.append(child)
        value = None
    return value
