"""Step4: 结果输出模块入口。"""

from .writer import ResultWriter, load_results

__all__ = [
    "ResultWriter",
    "load_results",
]
