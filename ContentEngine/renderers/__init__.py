"""
Content Engine渲染器集合。

提供 HTMLRenderer，把规范内容渲染为可注入页面的HTML片段或独立预览页。
"""

from .html_renderer import (
    CssClasses,
    HTMLRenderer,
    RenderOptions,
    escape_html,
    render_to_html,
)

__all__ = [
    "CssClasses",
    "HTMLRenderer",
    "RenderOptions",
    "escape_html",
    "render_to_html",
]
