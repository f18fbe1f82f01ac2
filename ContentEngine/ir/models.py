"""
规范内容的强类型表示。

校验器面对的是未知形状的JSON值；一旦通过校验（或渲染端选择容错转换），
数据就会被落到这里的dataclass上。字符串字段按信任边界拆成两种类型：

- RichText：作者可信的富文本（段落、列表项、引用正文、LaTeX），渲染时原样输出；
- PlainText：普通文本（标题、题注、标签等），渲染时必须转义。

每个dataclass在 __post_init__ 中把字段强制为声明的文本类型，直接构造时传入
普通 str 或错放的 RichText 都会被纠正；渲染器再按字段选择原样输出或转义。
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Union

from .schema import (
    DEFAULT_IMAGE_ALIGNMENT,
    DEFAULT_IMAGE_SIZE,
    FLOAT_ALIGNMENTS,
    IMAGE_ALIGNMENTS,
    IMAGE_SIZES,
    LIST_STYLES,
    ErrorCode,
)


class RichText(str):
    """作者可信的富文本，可能携带内联HTML或数学定界符，渲染时不转义"""

    __slots__ = ()


class PlainText(str):
    """普通文本，渲染时统一经过HTML转义"""

    __slots__ = ()


def _coerce_text(value: Any) -> str:
    """将任意值容错转换为字符串，None与复杂对象返回空串"""
    if isinstance(value, str):
        return value
    if isinstance(value, bool) or value is None:
        return ""
    if isinstance(value, (int, float)):
        return str(value)
    return ""


def _rich(value: Any) -> RichText:
    return RichText(_coerce_text(value))


def _plain(value: Any) -> PlainText:
    return PlainText(_coerce_text(value))


def _optional_plain(value: Any) -> Optional[PlainText]:
    if value is None:
        return None
    text = _coerce_text(value)
    return PlainText(text) if text else None


def _coerce_level(value: Any, default: int = 2) -> int:
    """header.level 兜底：非数字、NaN/Inf 一律回落到默认级别"""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if isinstance(value, float) and not math.isfinite(value):
        return default
    return int(value)


def _as_mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _as_list(value: Any) -> List[Any]:
    return list(value) if isinstance(value, (list, tuple)) else []


# ====== Block ======


@dataclass
class ParagraphBlock:
    text: RichText = field(default_factory=lambda: RichText(""))

    type: ClassVar[str] = "paragraph"

    def __post_init__(self):
        self.text = _rich(self.text)

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> "ParagraphBlock":
        return cls(text=data.get("text"))

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "data": {"text": str(self.text)}}


@dataclass
class HeaderBlock:
    text: PlainText = field(default_factory=lambda: PlainText(""))
    level: int = 2

    type: ClassVar[str] = "header"

    def __post_init__(self):
        self.text = _plain(self.text)
        self.level = _coerce_level(self.level)

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> "HeaderBlock":
        return cls(text=data.get("text"), level=data.get("level"))

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "data": {"text": str(self.text), "level": self.level}}


@dataclass
class ListBlock:
    style: str = "unordered"
    items: List[RichText] = field(default_factory=list)

    type: ClassVar[str] = "list"

    def __post_init__(self):
        if self.style not in LIST_STYLES:
            self.style = "unordered"
        self.items = [_rich(item) for item in _as_list(self.items)]

    @property
    def ordered(self) -> bool:
        return self.style == "ordered"

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> "ListBlock":
        return cls(style=data.get("style"), items=data.get("items"))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "data": {"style": self.style, "items": [str(item) for item in self.items]},
        }


@dataclass
class QuoteBlock:
    text: RichText = field(default_factory=lambda: RichText(""))
    caption: Optional[PlainText] = None

    type: ClassVar[str] = "quote"

    def __post_init__(self):
        self.text = _rich(self.text)
        self.caption = _optional_plain(self.caption)

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> "QuoteBlock":
        return cls(text=data.get("text"), caption=data.get("caption"))

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"text": str(self.text)}
        if self.caption is not None:
            payload["caption"] = str(self.caption)
        return {"type": self.type, "data": payload}


@dataclass
class MathBlock:
    latex: RichText = field(default_factory=lambda: RichText(""))
    display: bool = False

    type: ClassVar[str] = "math"

    def __post_init__(self):
        self.latex = _rich(self.latex)
        self.display = self.display is True

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> "MathBlock":
        return cls(latex=data.get("latex"), display=data.get("display"))

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "data": {"latex": str(self.latex), "display": self.display}}


@dataclass
class ImageBlock:
    url: str = ""
    alt: PlainText = field(default_factory=lambda: PlainText(""))
    caption: Optional[PlainText] = None
    alignment: str = DEFAULT_IMAGE_ALIGNMENT
    size: str = DEFAULT_IMAGE_SIZE

    type: ClassVar[str] = "image"

    def __post_init__(self):
        """非法的 alignment/size 回落到编辑端默认值"""
        self.url = _coerce_text(self.url)
        self.alt = _plain(self.alt)
        self.caption = _optional_plain(self.caption)
        if self.alignment not in IMAGE_ALIGNMENTS:
            self.alignment = DEFAULT_IMAGE_ALIGNMENT
        if self.size not in IMAGE_SIZES:
            self.size = DEFAULT_IMAGE_SIZE

    @property
    def is_floated(self) -> bool:
        """左右浮动的图片需要让后续文字环绕"""
        return self.alignment in FLOAT_ALIGNMENTS

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> "ImageBlock":
        return cls(
            url=data.get("url"),
            alt=data.get("alt"),
            caption=data.get("caption"),
            alignment=data.get("alignment"),
            size=data.get("size"),
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "url": self.url,
            "alt": str(self.alt),
            "alignment": self.alignment,
            "size": self.size,
        }
        if self.caption is not None:
            payload["caption"] = str(self.caption)
        return {"type": self.type, "data": payload}


@dataclass
class UnknownBlock:
    """未识别的block类型，保留原始数据，渲染时输出空片段"""

    type_name: Any = None
    data: Dict[str, Any] = field(default_factory=dict)

    type: ClassVar[str] = "unknown"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type_name, "data": dict(self.data)}


ContentBlock = Union[
    ParagraphBlock,
    HeaderBlock,
    ListBlock,
    QuoteBlock,
    MathBlock,
    ImageBlock,
    UnknownBlock,
]

BLOCK_CLASSES: Dict[str, type] = {
    cls.type: cls
    for cls in (ParagraphBlock, HeaderBlock, ListBlock, QuoteBlock, MathBlock, ImageBlock)
}

_TYPED_BLOCKS = tuple(BLOCK_CLASSES.values()) + (UnknownBlock,)


def block_from_dict(raw: Any) -> ContentBlock:
    """
    把 {type, data} 形状的字典容错地转换为强类型block。

    - 已是强类型block时原样返回；
    - 缺失data或data不是对象时按空data处理；
    - 未识别的type落到 UnknownBlock，交给渲染器的默认分支处理。
    """
    if isinstance(raw, _TYPED_BLOCKS):
        return raw
    if not isinstance(raw, Mapping):
        return UnknownBlock(type_name=None, data={})
    block_type = raw.get("type")
    data = _as_mapping(raw.get("data"))
    block_cls = BLOCK_CLASSES.get(block_type) if isinstance(block_type, str) else None
    if block_cls is None:
        return UnknownBlock(type_name=block_type, data=dict(data))
    return block_cls.from_data(data)


def blocks_from_list(raw: Any) -> List[ContentBlock]:
    return [block_from_dict(item) for item in _as_list(raw)]


def is_paragraph_block(block: Any) -> bool:
    return isinstance(block, ParagraphBlock)


def is_header_block(block: Any) -> bool:
    return isinstance(block, HeaderBlock)


def is_list_block(block: Any) -> bool:
    return isinstance(block, ListBlock)


def is_quote_block(block: Any) -> bool:
    return isinstance(block, QuoteBlock)


def is_math_block(block: Any) -> bool:
    return isinstance(block, MathBlock)


def is_image_block(block: Any) -> bool:
    return isinstance(block, ImageBlock)


# ====== 文档 ======


@dataclass
class Metadata:
    """题目/课程的元信息，核心层只读不写"""

    id: Optional[int] = None
    title: PlainText = field(default_factory=lambda: PlainText(""))
    content_type: Optional[str] = None
    category: Optional[PlainText] = None
    difficulty: Optional[PlainText] = None
    tags: List[PlainText] = field(default_factory=list)
    author: str = ""
    draft: bool = False
    timestamp: Optional[str] = None

    def __post_init__(self):
        self.title = _plain(self.title)
        self.category = _optional_plain(self.category)
        self.difficulty = _optional_plain(self.difficulty)
        self.tags = [PlainText(tag) for tag in _as_list(self.tags) if isinstance(tag, str)]

    @classmethod
    def from_dict(cls, raw: Any) -> "Metadata":
        if isinstance(raw, Metadata):
            return raw
        data = _as_mapping(raw)
        raw_id = data.get("id")
        content_type = data.get("contentType")
        timestamp = data.get("timestamp")
        return cls(
            id=raw_id if isinstance(raw_id, int) and not isinstance(raw_id, bool) else None,
            title=data.get("title"),
            content_type=content_type if isinstance(content_type, str) else None,
            category=data.get("category"),
            difficulty=data.get("difficulty"),
            tags=data.get("tags"),
            author=_coerce_text(data.get("author")),
            draft=data.get("draft") is True,
            timestamp=timestamp if isinstance(timestamp, str) else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "title": str(self.title),
            "contentType": self.content_type,
            "category": None if self.category is None else str(self.category),
            "difficulty": None if self.difficulty is None else str(self.difficulty),
            "tags": [str(tag) for tag in self.tags],
            "author": self.author,
            "draft": self.draft,
            "timestamp": self.timestamp,
        }
        return {key: value for key, value in payload.items() if value is not None}


@dataclass
class Solution:
    title: PlainText = field(default_factory=lambda: PlainText(""))
    blocks: List[ContentBlock] = field(default_factory=list)

    def __post_init__(self):
        self.title = _plain(self.title)

    @classmethod
    def from_dict(cls, raw: Any) -> "Solution":
        if isinstance(raw, Solution):
            return raw
        data = _as_mapping(raw)
        return cls(
            title=data.get("title"),
            blocks=blocks_from_list(data.get("blocks")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"title": str(self.title), "blocks": [block.to_dict() for block in self.blocks]}


@dataclass
class CanonicalContent:
    """规范内容根对象：metadata + statement + 可选solutions"""

    metadata: Metadata = field(default_factory=Metadata)
    statement: List[ContentBlock] = field(default_factory=list)
    solutions: Optional[List[Solution]] = None

    @property
    def is_problem(self) -> bool:
        return self.metadata.content_type == "problem"

    @classmethod
    def from_dict(cls, raw: Any) -> "CanonicalContent":
        """容错转换，不做校验；需要严格语义时请先走 ContentValidator"""
        if isinstance(raw, CanonicalContent):
            return raw
        data = _as_mapping(raw)
        solutions_raw = data.get("solutions")
        solutions = None
        if solutions_raw is not None:
            solutions = [Solution.from_dict(item) for item in _as_list(solutions_raw)]
        return cls(
            metadata=Metadata.from_dict(data.get("metadata")),
            statement=blocks_from_list(data.get("statement")),
            solutions=solutions,
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "metadata": self.metadata.to_dict(),
            "statement": [block.to_dict() for block in self.statement],
        }
        if self.solutions is not None:
            payload["solutions"] = [solution.to_dict() for solution in self.solutions]
        return payload


# ====== 校验结果 ======


@dataclass(frozen=True)
class ValidationError:
    """单条校验错误，path 与输入结构的嵌套一一对应"""

    path: str
    message: str
    code: ErrorCode

    def to_dict(self) -> Dict[str, str]:
        return {"path": self.path, "message": self.message, "code": self.code.value}

    def __str__(self) -> str:
        return f"{self.path} [{self.code.value}] {self.message}"


@dataclass
class ValidationResult:
    """校验结果；valid 恒等于 errors 为空"""

    errors: List[ValidationError] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return len(self.errors) == 0

    def errors_at(self, path: str) -> List[ValidationError]:
        """返回指定路径上的全部错误，便于工具回溯到原始片段"""
        return [error for error in self.errors if error.path == path]

    def to_dict(self) -> Dict[str, Any]:
        return {"valid": self.valid, "errors": [error.to_dict() for error in self.errors]}


class ContentValidationError(Exception):
    """严格解析失败时抛出，携带完整的 ValidationResult"""

    def __init__(self, result: ValidationResult):
        self.result = result
        first = str(result.errors[0]) if result.errors else ""
        super().__init__(f"内容校验失败，共 {len(result.errors)} 处错误: {first}")


__all__ = [
    "RichText",
    "PlainText",
    "ParagraphBlock",
    "HeaderBlock",
    "ListBlock",
    "QuoteBlock",
    "MathBlock",
    "ImageBlock",
    "UnknownBlock",
    "ContentBlock",
    "BLOCK_CLASSES",
    "block_from_dict",
    "blocks_from_list",
    "is_paragraph_block",
    "is_header_block",
    "is_list_block",
    "is_quote_block",
    "is_math_block",
    "is_image_block",
    "Metadata",
    "Solution",
    "CanonicalContent",
    "ValidationError",
    "ValidationResult",
    "ContentValidationError",
]
