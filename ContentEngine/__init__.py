"""
Content Engine。

数学题目与课程内容的规范化核心：校验编辑端提交的结构化内容，
并把合法内容确定性地渲染为HTML（保留浮动图片的文字环绕语义）。
"""

from .ir import (
    CanonicalContent,
    ContentValidationError,
    ContentValidator,
    ErrorCode,
    ValidationError,
    ValidationResult,
    is_valid_content,
    parse_content,
    validate_content,
)
from .renderers import HTMLRenderer, RenderOptions, render_to_html

__version__ = "1.0.0"
__author__ = "Content Engine Team"

__all__ = [
    "CanonicalContent",
    "ContentValidationError",
    "ContentValidator",
    "ErrorCode",
    "ValidationError",
    "ValidationResult",
    "is_valid_content",
    "parse_content",
    "validate_content",
    "HTMLRenderer",
    "RenderOptions",
    "render_to_html",
]
