"""
Content Engine 规范内容（Canonical Content）Schema定义。

这里集中维护题目/课程内容的全部取值集合、长度上限与错误码，
并给出一份等价的JSON Schema文本，确保编辑端、校验器与渲染器
对同一个结构有统一认知。
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Dict, List

SCHEMA_VERSION = "1.0"

# ====== 基础常量 ======
CONTENT_TYPES: List[str] = ["problem", "lesson"]

CATEGORIES: List[str] = [
    "Algebra",
    "Geometry",
    "Number Theory",
    "Combinatorics",
    "Calculus",
    "General",
]

DIFFICULTIES: List[str] = ["Easy", "Medium", "Hard"]

ALLOWED_BLOCK_TYPES: List[str] = [
    "paragraph",
    "header",
    "list",
    "quote",
    "math",
    "image",
]

LIST_STYLES: List[str] = ["ordered", "unordered"]

IMAGE_ALIGNMENTS: List[str] = ["center", "float-left", "float-right"]
FLOAT_ALIGNMENTS = frozenset({"float-left", "float-right"})

IMAGE_SIZES: List[str] = ["small", "medium", "large", "full"]

# 图片尺寸档位对应的容器宽度
IMAGE_SIZE_MAP: Dict[str, str] = {
    "small": "30%",
    "medium": "50%",
    "large": "70%",
    "full": "100%",
}

# 编辑端图片工具的默认值，渲染期兜底使用
DEFAULT_IMAGE_ALIGNMENT = "center"
DEFAULT_IMAGE_SIZE = "medium"

# ====== 长度与数量上限 ======
TITLE_MAX_LENGTH = 200
SOLUTION_TITLE_MAX_LENGTH = 100
MAX_TAGS = 10
TAG_MAX_LENGTH = 50
HEADER_MIN_LEVEL = 1
HEADER_MAX_LEVEL = 6


class ErrorCode(str, Enum):
    """校验错误码（封闭集合），取值与序列化后的字符串一致"""

    INVALID_TYPE = "INVALID_TYPE"
    MISSING_REQUIRED = "MISSING_REQUIRED"
    INVALID_VALUE = "INVALID_VALUE"
    VALUE_TOO_LONG = "VALUE_TOO_LONG"
    ARRAY_EMPTY = "ARRAY_EMPTY"
    ARRAY_TOO_LONG = "ARRAY_TOO_LONG"
    INVALID_LENGTH = "INVALID_LENGTH"

    def __str__(self) -> str:
        return self.value


# ====== Schema定义 ======
metadata_schema: Dict[str, Any] = {
    "title": "Metadata",
    "type": "object",
    "properties": {
        "id": {"type": "number", "minimum": 1},
        "title": {"type": "string", "minLength": 1, "maxLength": TITLE_MAX_LENGTH},
        "contentType": {"type": "string", "enum": CONTENT_TYPES},
        "category": {"type": "string", "enum": CATEGORIES},
        "difficulty": {"type": "string", "enum": DIFFICULTIES},
        "tags": {
            "type": "array",
            "maxItems": MAX_TAGS,
            "items": {"type": "string", "minLength": 1, "maxLength": TAG_MAX_LENGTH},
        },
        "author": {"type": "string"},
        "draft": {"type": "boolean"},
        "timestamp": {"type": "string", "format": "date-time"},
    },
    "required": ["id", "title", "contentType"],
    "additionalProperties": True,
}

paragraph_block: Dict[str, Any] = {
    "title": "ParagraphBlock",
    "type": "object",
    "properties": {
        "type": {"const": "paragraph"},
        "data": {
            "type": "object",
            "properties": {"text": {"type": "string", "minLength": 1}},
            "required": ["text"],
            "additionalProperties": True,
        },
    },
    "required": ["type", "data"],
}

header_block: Dict[str, Any] = {
    "title": "HeaderBlock",
    "type": "object",
    "properties": {
        "type": {"const": "header"},
        "data": {
            "type": "object",
            "properties": {
                "text": {"type": "string", "minLength": 1},
                "level": {
                    "type": "integer",
                    "minimum": HEADER_MIN_LEVEL,
                    "maximum": HEADER_MAX_LEVEL,
                },
            },
            "required": ["text", "level"],
            "additionalProperties": True,
        },
    },
    "required": ["type", "data"],
}

list_block: Dict[str, Any] = {
    "title": "ListBlock",
    "type": "object",
    "properties": {
        "type": {"const": "list"},
        "data": {
            "type": "object",
            "properties": {
                "style": {"type": "string", "enum": LIST_STYLES},
                "items": {"type": "array", "minItems": 1, "items": {"type": "string"}},
            },
            "required": ["style", "items"],
            "additionalProperties": True,
        },
    },
    "required": ["type", "data"],
}

quote_block: Dict[str, Any] = {
    "title": "QuoteBlock",
    "type": "object",
    "properties": {
        "type": {"const": "quote"},
        "data": {
            "type": "object",
            "properties": {
                "text": {"type": "string", "minLength": 1},
                "caption": {"type": "string"},
            },
            "required": ["text"],
            "additionalProperties": True,
        },
    },
    "required": ["type", "data"],
}

math_block: Dict[str, Any] = {
    "title": "MathBlock",
    "type": "object",
    "properties": {
        "type": {"const": "math"},
        "data": {
            "type": "object",
            "properties": {
                "latex": {"type": "string", "minLength": 1},
                "display": {"type": "boolean"},
            },
            "required": ["latex", "display"],
            "additionalProperties": True,
        },
    },
    "required": ["type", "data"],
}

image_block: Dict[str, Any] = {
    "title": "ImageBlock",
    "type": "object",
    "properties": {
        "type": {"const": "image"},
        "data": {
            "type": "object",
            "properties": {
                "url": {"type": "string", "minLength": 1},
                "alt": {"type": "string"},
                "caption": {"type": "string"},
                "alignment": {"type": "string", "enum": IMAGE_ALIGNMENTS},
                "size": {"type": "string", "enum": IMAGE_SIZES},
            },
            "required": ["url"],
            "additionalProperties": True,
        },
    },
    "required": ["type", "data"],
}

block_variants: List[Dict[str, Any]] = [
    paragraph_block,
    header_block,
    list_block,
    quote_block,
    math_block,
    image_block,
]

solution_schema: Dict[str, Any] = {
    "title": "Solution",
    "type": "object",
    "properties": {
        "title": {
            "type": "string",
            "minLength": 1,
            "maxLength": SOLUTION_TITLE_MAX_LENGTH,
        },
        "blocks": {
            "type": "array",
            "minItems": 1,
            "items": {"$ref": "#/definitions/block"},
        },
    },
    "required": ["title", "blocks"],
    "additionalProperties": True,
}

CONTENT_JSON_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "CanonicalContent",
    "version": SCHEMA_VERSION,
    "type": "object",
    "required": ["metadata", "statement"],
    "properties": {
        "metadata": {"$ref": "#/definitions/metadata"},
        "statement": {
            "type": "array",
            "minItems": 1,
            "items": {"$ref": "#/definitions/block"},
        },
        "solutions": {
            "type": "array",
            "items": {"$ref": "#/definitions/solution"},
        },
    },
    "additionalProperties": True,
    "definitions": {
        "metadata": metadata_schema,
        "solution": solution_schema,
        "block": {"oneOf": block_variants},
    },
}

CONTENT_JSON_SCHEMA_TEXT: str = json.dumps(
    CONTENT_JSON_SCHEMA,
    ensure_ascii=False,
    indent=2,
)

__all__ = [
    "SCHEMA_VERSION",
    "CONTENT_TYPES",
    "CATEGORIES",
    "DIFFICULTIES",
    "ALLOWED_BLOCK_TYPES",
    "LIST_STYLES",
    "IMAGE_ALIGNMENTS",
    "FLOAT_ALIGNMENTS",
    "IMAGE_SIZES",
    "IMAGE_SIZE_MAP",
    "DEFAULT_IMAGE_ALIGNMENT",
    "DEFAULT_IMAGE_SIZE",
    "TITLE_MAX_LENGTH",
    "SOLUTION_TITLE_MAX_LENGTH",
    "MAX_TAGS",
    "TAG_MAX_LENGTH",
    "HEADER_MIN_LEVEL",
    "HEADER_MAX_LEVEL",
    "ErrorCode",
    "CONTENT_JSON_SCHEMA",
    "CONTENT_JSON_SCHEMA_TEXT",
]
