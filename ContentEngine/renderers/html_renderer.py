"""
基于规范内容的HTML渲染器，输出可直接注入容器元素的HTML片段。

要点：
1. 按block类型分派模板，未知类型输出空片段并记录警告，单个坏block不会拖垮整篇；
2. 转义按字段决定：段落、列表项、引用正文、LaTeX 原样输出，其余文本统一走 escape_html；
3. 左右浮动的图片不包裹 content-block 容器，后续段落才能在排版中环绕图片，
   居中图片则与其他block一样包裹。
"""

from __future__ import annotations

import html
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Mapping, Tuple

from loguru import logger

from ContentEngine.ir.models import (
    CanonicalContent,
    ContentBlock,
    HeaderBlock,
    ImageBlock,
    ListBlock,
    MathBlock,
    Metadata,
    ParagraphBlock,
    QuoteBlock,
    Solution,
    UnknownBlock,
    blocks_from_list,
)
from ContentEngine.ir.schema import (
    HEADER_MAX_LEVEL,
    HEADER_MIN_LEVEL,
    IMAGE_SIZE_MAP,
)
from ContentEngine.utils.config import Settings, settings

# 定界符表：(行内左, 行内右), (块级左, 块级右)
MATH_DELIMITERS: Dict[str, Dict[str, Tuple[str, str]]] = {
    "mathjax": {"inline": ("$", "$"), "display": ("$$", "$$")},
    "katex": {"inline": ("\\(", "\\)"), "display": ("\\[", "\\]")},
}

_MATHJAX_SRC = "https://cdn.jsdelivr.net/npm/mathjax@3/es5/tex-mml-chtml.js"
_KATEX_BASE = "https://cdn.jsdelivr.net/npm/katex@0.16.9/dist"


def escape_html(value: Any) -> str:
    """
    统一的转义入口：只处理 & < > " ' 五个字符，全部输出为命名实体。

    文本节点与属性值共用同一套规则；html.escape 对单引号给出 &#x27;，这里换成 &apos;。
    """
    if value is None:
        return ""
    return html.escape(str(value), quote=True).replace("&#x27;", "&apos;")


@dataclass
class CssClasses:
    """外层容器的class名，原样写入class属性"""

    wrapper: str = "content-wrapper"
    statement: str = "statement-block"
    solution: str = "solution-block"


@dataclass
class RenderOptions:
    """
    渲染选项。

    - include_metadata: 是否输出标题/分类/难度/标签头部；
    - math_delimiters: "mathjax" 使用 $...$ / $$...$$，"katex" 使用 \\(...\\) / \\[...\\]；
    - image_base_url: 拼接在每个图片url之前，支持CDN迁移；
    - css_classes: 外层/题干/解答容器的class名；
    - solutions_heading: 解答区标题文字。
    """

    include_metadata: bool = True
    math_delimiters: str = "mathjax"
    image_base_url: str = ""
    css_classes: CssClasses = field(default_factory=CssClasses)
    solutions_heading: str = "Solutions"

    # 编辑端/JSON配置中使用的驼峰键名
    _ALIASES = {
        "includeMetadata": "include_metadata",
        "mathDelimiters": "math_delimiters",
        "imageBaseUrl": "image_base_url",
        "cssClasses": "css_classes",
        "solutionsHeading": "solutions_heading",
    }

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> "RenderOptions":
        """从全局配置构造默认选项"""
        config = config or settings
        return cls(
            include_metadata=config.RENDER_INCLUDE_METADATA,
            math_delimiters=config.RENDER_MATH_DELIMITERS,
            image_base_url=config.RENDER_IMAGE_BASE_URL,
            css_classes=CssClasses(
                wrapper=config.RENDER_WRAPPER_CLASS,
                statement=config.RENDER_STATEMENT_CLASS,
                solution=config.RENDER_SOLUTION_CLASS,
            ),
            solutions_heading=config.RENDER_SOLUTIONS_HEADING,
        )

    @classmethod
    def from_mapping(
        cls,
        mapping: Mapping[str, Any],
        base: "RenderOptions" | None = None,
    ) -> "RenderOptions":
        """
        以字典覆盖选项，兼容驼峰与下划线两种键名。

        未出现或为 None 的键沿用 base（默认取全局配置）；cssClasses 支持只覆盖部分字段，
        空字符串属于显式取值，会被保留。
        """
        options = base or cls.from_settings()
        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {f.name: getattr(options, f.name) for f in fields(cls)}
        for raw_key, value in mapping.items():
            key = cls._ALIASES.get(raw_key, raw_key)
            if key not in known:
                logger.warning(f"忽略未知的渲染选项: {raw_key}")
                continue
            if value is None:
                continue
            if key == "css_classes" and isinstance(value, Mapping):
                current = values["css_classes"]
                value = CssClasses(
                    **{
                        f.name: getattr(current, f.name) if value.get(f.name) is None else value[f.name]
                        for f in fields(CssClasses)
                    }
                )
            values[key] = value
        return cls(**values)


class HTMLRenderer:
    """
    Canonical Content → HTML 渲染器。

    - 纯函数式：不做校验、不访问外部资源，同一输入永远得到同一输出；
    - 输入既可以是 CanonicalContent，也可以是同形状的字典（先容错转换）；
    - 缺失的可选字段按类型兜底（无caption就不输出caption元素）。
    """

    # ===== 渲染流程快速导览 =====
    # render(content): 公开入口，依次拼接 metadata 头部、题干容器、解答容器。
    # render_blocks(blocks): 逐个block分派到 _render_<type>，以换行连接。
    # _render_image: 浮动图片裸输出，居中图片包裹 content-block。
    # render_document(content): 预览用，外加 <head>、样式表与公式排版脚本。

    BLOCK_CLASS = "content-block"

    def __init__(self, options: RenderOptions | Mapping[str, Any] | None = None):
        """
        初始化渲染器。

        参数:
            options: RenderOptions 或驼峰/下划线键名的字典；缺省时读取全局配置。
        """
        if options is None:
            options = RenderOptions.from_settings()
        elif isinstance(options, Mapping):
            options = RenderOptions.from_mapping(options)
        self.options: RenderOptions = options

        delimiters = MATH_DELIMITERS.get(self.options.math_delimiters)
        if delimiters is None:
            logger.warning(
                f"未知的公式定界符风格 {self.options.math_delimiters!r}，回退为 mathjax"
            )
            delimiters = MATH_DELIMITERS["mathjax"]
        self._delimiters = delimiters

    # ====== 对外接口 ======

    def render(self, content: CanonicalContent | Mapping[str, Any]) -> str:
        """
        渲染完整内容。

        参数:
            content: CanonicalContent 或同形状字典。

        返回:
            str: 以 wrapper 容器包裹的HTML片段。
        """
        document = CanonicalContent.from_dict(content)
        css = self.options.css_classes
        parts: List[str] = []

        if self.options.include_metadata:
            parts.append(self._render_metadata(document.metadata))

        parts.append(f'<div class="{css.statement}">')
        parts.append(self.render_blocks(document.statement))
        parts.append("</div>")

        if document.solutions:
            parts.append(self._render_solutions(document.solutions))

        logger.debug(
            f"渲染完成: statement {len(document.statement)} 个block，"
            f"解答 {len(document.solutions or [])} 个"
        )
        return f'<div class="{css.wrapper}">' + "\n".join(parts) + "</div>"

    def render_blocks(self, blocks: List[ContentBlock] | List[Dict[str, Any]]) -> str:
        """顺序渲染block数组，片段之间以换行连接"""
        return "\n".join(self._render_block(block) for block in blocks_from_list(blocks))

    def render_document(
        self,
        content: CanonicalContent | Mapping[str, Any],
        title: str | None = None,
    ) -> str:
        """
        输出可独立打开的完整HTML页面，供预览使用。

        页面内联浮动/尺寸样式并加载公式排版脚本；片段本身与 render 完全一致。
        """
        document = CanonicalContent.from_dict(content)
        page_title = title or str(document.metadata.title) or "Preview"
        head = (
            "<head>\n"
            '<meta charset="utf-8" />\n'
            '<meta name="viewport" content="width=device-width, initial-scale=1" />\n'
            f"<title>{escape_html(page_title)}</title>\n"
            f"<style>\n{self._build_css()}</style>\n"
            f"{self._math_loader()}\n"
            "</head>"
        )
        body = f"<body>\n{self.render(document)}\n</body>"
        return f'<!DOCTYPE html>\n<html lang="en">\n{head}\n{body}\n</html>'

    # ====== 文本 ======

    # 是否转义由字段决定：富文本字段走 _rich，其余字段走 _plain，与值的具体类型无关

    @staticmethod
    def _rich(value: Any) -> str:
        """作者可信的富文本字段，原样输出"""
        return "" if value is None else str(value)

    @staticmethod
    def _plain(value: Any) -> str:
        return escape_html(value)

    def _wrap_block(self, html_fragment: str, extra_class: str = "") -> str:
        class_attr = f"{self.BLOCK_CLASS} {extra_class}" if extra_class else self.BLOCK_CLASS
        return f'<div class="{class_attr}">{html_fragment}</div>'

    # ====== 头部 / 解答 ======

    def _render_metadata(self, metadata: Metadata) -> str:
        """标题 + 分类徽章 + 难度徽章 + 标签徽章，缺失的字段直接省略"""
        title_html = (
            f'<h1 class="content-title">{self._plain(metadata.title)}</h1>'
            if metadata.title
            else ""
        )
        badges: List[str] = []
        if metadata.category:
            badges.append(
                f'<span class="badge badge-category">{self._plain(metadata.category)}</span>'
            )
        if metadata.difficulty:
            modifier = escape_html(metadata.difficulty.lower())
            badges.append(
                f'<span class="badge badge-difficulty badge-{modifier}">'
                f"{self._plain(metadata.difficulty)}</span>"
            )
        for tag in metadata.tags:
            badges.append(f'<span class="badge badge-tag">#{self._plain(tag)}</span>')
        return (
            '<div class="content-metadata">'
            f"{title_html}"
            f'<div class="content-meta-info">{" ".join(badges)}</div>'
            "</div>"
        )

    def _render_solutions(self, solutions: List[Solution]) -> str:
        """每个解答一个带标题的子容器，clearfix 兜住上一段落里的浮动图片"""
        solution_class = self.options.css_classes.solution
        items = [
            f'<div class="{solution_class} clearfix">'
            f'<h2 class="solution-title">{self._plain(solution.title)}</h2>\n'
            f"{self.render_blocks(solution.blocks)}"
            "</div>"
            for solution in solutions
        ]
        heading = escape_html(self.options.solutions_heading)
        return (
            '<div class="solutions-container">'
            f'<h2 class="solutions-header">{heading}</h2>\n'
            + "\n".join(items)
            + "</div>"
        )

    # ====== Block ======

    def _render_block(self, block: ContentBlock) -> str:
        """
        根据block类型分派到不同的渲染函数。

        返回:
            str: 渲染后的HTML；未知类型返回空串并记录警告。
        """
        handlers = {
            ParagraphBlock.type: self._render_paragraph,
            HeaderBlock.type: self._render_header,
            ListBlock.type: self._render_list,
            QuoteBlock.type: self._render_quote,
            MathBlock.type: self._render_math,
            ImageBlock.type: self._render_image,
        }
        handler = handlers.get(block.type)
        if handler is None or isinstance(block, UnknownBlock):
            type_name = block.type_name if isinstance(block, UnknownBlock) else block.type
            logger.warning(f"未知的block类型: {type_name!r}，已跳过")
            return ""
        return handler(block)

    def _render_paragraph(self, block: ParagraphBlock) -> str:
        """段落文本可能带内联HTML/公式，原样输出"""
        return self._wrap_block(f"<p>{self._rich(block.text)}</p>")

    def _render_header(self, block: HeaderBlock) -> str:
        level = int(max(HEADER_MIN_LEVEL, min(HEADER_MAX_LEVEL, block.level)))
        return self._wrap_block(f"<h{level}>{self._plain(block.text)}</h{level}>")

    def _render_list(self, block: ListBlock) -> str:
        """渲染有序/无序列表，条目可携带行内公式"""
        tag = "ol" if block.ordered else "ul"
        items = "".join(f"<li>{self._rich(item)}</li>" for item in block.items)
        return self._wrap_block(f'<{tag} class="content-list">{items}</{tag}>')

    def _render_quote(self, block: QuoteBlock) -> str:
        caption = (
            f'<footer class="quote-caption">— {self._plain(block.caption)}</footer>'
            if block.caption
            else ""
        )
        return self._wrap_block(
            f'<blockquote class="content-quote"><p>{self._rich(block.text)}</p>{caption}</blockquote>'
        )

    def _render_math(self, block: MathBlock) -> str:
        """公式原样包裹定界符，排版交给外部MathJax/KaTeX"""
        mode = "display" if block.display else "inline"
        left, right = self._delimiters[mode]
        return self._wrap_block(f"{left}{self._rich(block.latex)}{right}", f"math-{mode}")

    def _render_image(self, block: ImageBlock) -> str:
        """
        渲染图片。

        浮动图片必须裸输出：一旦包进 content-block，块级容器会截断浮动，
        后面的段落就无法环绕图片。
        """
        img_url = self.options.image_base_url + block.url
        img = f'<img src="{escape_html(img_url)}" alt="{self._plain(block.alt)}" loading="lazy">'
        caption = (
            f'<span class="image-caption">{self._plain(block.caption)}</span>'
            if block.caption
            else ""
        )
        align_class = f"align-{escape_html(block.alignment)}"
        size_class = f"size-{escape_html(block.size)}"
        figure = f'<div class="image-block {align_class} {size_class}">{img}{caption}</div>'
        if block.is_floated:
            return figure
        return self._wrap_block(figure)

    # ====== CSS / JS（预览页） ======

    def _build_css(self) -> str:
        """预览页样式：尺寸档位来自 IMAGE_SIZE_MAP，浮动规则保证文字环绕"""
        size_rules = "".join(
            f".image-block.size-{name} {{ width: {width}; }}\n"
            for name, width in IMAGE_SIZE_MAP.items()
        )
        return (
            "body { font-family: system-ui, sans-serif; line-height: 1.6; margin: 0 auto; "
            "max-width: 860px; padding: 1.5rem; }\n"
            f".{self.BLOCK_CLASS} {{ margin: 0 0 1rem; }}\n"
            ".math-display { text-align: center; overflow-x: auto; }\n"
            ".image-block img { display: block; max-width: 100%; border-radius: 6px; }\n"
            ".image-block.align-center { margin: 1rem auto; text-align: center; }\n"
            ".image-block.align-center img { margin: 0 auto; }\n"
            ".image-block.align-float-left { float: left; margin: 0.25rem 1.5rem 1rem 0; }\n"
            ".image-block.align-float-right { float: right; margin: 0.25rem 0 1rem 1.5rem; }\n"
            f"{size_rules}"
            ".image-caption { display: block; font-size: 0.875rem; color: #666; }\n"
            ".content-quote { border-left: 4px solid #ccc; margin: 0; padding-left: 1rem; }\n"
            ".quote-caption { font-size: 0.875rem; color: #666; }\n"
            ".badge { display: inline-block; padding: 0.1rem 0.5rem; border-radius: 999px; "
            "background: #eef; font-size: 0.8rem; }\n"
            ".badge-easy { background: #dfd; }\n"
            ".badge-medium { background: #ffd; }\n"
            ".badge-hard { background: #fdd; }\n"
            ".clearfix::after { content: \"\"; display: table; clear: both; }\n"
        )

    def _math_loader(self) -> str:
        """根据定界符风格输出对应的公式排版脚本"""
        if self.options.math_delimiters == "katex":
            return (
                f'<link rel="stylesheet" href="{_KATEX_BASE}/katex.min.css" />\n'
                f'<script defer src="{_KATEX_BASE}/katex.min.js"></script>\n'
                f'<script defer src="{_KATEX_BASE}/contrib/auto-render.min.js" '
                'onload="renderMathInElement(document.body)"></script>'
            )
        return (
            "<script>window.MathJax = { tex: { "
            "inlineMath: [['$', '$'], ['\\\\(', '\\\\)']], "
            "displayMath: [['$$', '$$'], ['\\\\[', '\\\\]']] } };</script>\n"
            f'<script defer src="{_MATHJAX_SRC}"></script>'
        )


def render_to_html(
    content: CanonicalContent | Mapping[str, Any],
    options: RenderOptions | Mapping[str, Any] | None = None,
) -> str:
    """快捷渲染函数"""
    return HTMLRenderer(options).render(content)


__all__ = [
    "MATH_DELIMITERS",
    "escape_html",
    "CssClasses",
    "RenderOptions",
    "HTMLRenderer",
    "render_to_html",
]
