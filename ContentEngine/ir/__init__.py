"""
Content Engine的规范内容契约（Canonical Content）定义与校验工具。

该模块暴露统一的Schema常量、强类型模型与校验器，供编辑端、
校验流程与渲染器共同复用，确保从作者输入到HTML的结构一致。
"""

from .schema import (
    SCHEMA_VERSION,
    ALLOWED_BLOCK_TYPES,
    CATEGORIES,
    CONTENT_JSON_SCHEMA,
    CONTENT_JSON_SCHEMA_TEXT,
    CONTENT_TYPES,
    DIFFICULTIES,
    IMAGE_ALIGNMENTS,
    IMAGE_SIZE_MAP,
    IMAGE_SIZES,
    ErrorCode,
)
from .models import (
    CanonicalContent,
    ContentBlock,
    ContentValidationError,
    HeaderBlock,
    ImageBlock,
    ListBlock,
    MathBlock,
    Metadata,
    ParagraphBlock,
    PlainText,
    QuoteBlock,
    RichText,
    Solution,
    UnknownBlock,
    ValidationError,
    ValidationResult,
    block_from_dict,
    is_header_block,
    is_image_block,
    is_list_block,
    is_math_block,
    is_paragraph_block,
    is_quote_block,
)
from .validator import ContentValidator, is_valid_content, parse_content, validate_content

__all__ = [
    "SCHEMA_VERSION",
    "ALLOWED_BLOCK_TYPES",
    "CATEGORIES",
    "CONTENT_JSON_SCHEMA",
    "CONTENT_JSON_SCHEMA_TEXT",
    "CONTENT_TYPES",
    "DIFFICULTIES",
    "IMAGE_ALIGNMENTS",
    "IMAGE_SIZE_MAP",
    "IMAGE_SIZES",
    "ErrorCode",
    "CanonicalContent",
    "ContentBlock",
    "ContentValidationError",
    "HeaderBlock",
    "ImageBlock",
    "ListBlock",
    "MathBlock",
    "Metadata",
    "ParagraphBlock",
    "PlainText",
    "QuoteBlock",
    "RichText",
    "Solution",
    "UnknownBlock",
    "ValidationError",
    "ValidationResult",
    "block_from_dict",
    "is_header_block",
    "is_image_block",
    "is_list_block",
    "is_math_block",
    "is_paragraph_block",
    "is_quote_block",
    "ContentValidator",
    "is_valid_content",
    "parse_content",
    "validate_content",
]
