"""
规范内容结构校验器。

编辑端产出的内容在落库与渲染前需要经过严格校验。本模块以纯Python
逻辑遍历未知形状的JSON值（dict/list/str/数字/bool/None），一次调用
收集全部带路径的错误，不会在第一处错误处停下。
"""

from __future__ import annotations

import math
from typing import Any, List, Mapping
from urllib.parse import urlsplit

from loguru import logger

from .models import (
    CanonicalContent,
    ContentValidationError,
    ValidationError,
    ValidationResult,
)
from .schema import (
    ALLOWED_BLOCK_TYPES,
    CATEGORIES,
    CONTENT_TYPES,
    DIFFICULTIES,
    HEADER_MAX_LEVEL,
    HEADER_MIN_LEVEL,
    IMAGE_ALIGNMENTS,
    IMAGE_SIZES,
    LIST_STYLES,
    MAX_TAGS,
    SOLUTION_TITLE_MAX_LENGTH,
    TAG_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    ErrorCode,
)


# ====== JSON值判定 ======


def _is_object(value: Any) -> bool:
    return isinstance(value, Mapping)


def _is_array(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _is_number(value: Any) -> bool:
    """bool 在Python中是int子类，这里显式排除"""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_integral(value: Any) -> bool:
    if isinstance(value, int):
        return True
    return math.isfinite(value) and float(value).is_integer()


def _is_non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and len(value) > 0


def _is_one_of(value: Any, allowed: List[str]) -> bool:
    """只对字符串做枚举判断，避免不可哈希的脏数据参与比较"""
    return isinstance(value, str) and value in allowed


def _is_acceptable_image_url(url: str) -> bool:
    """绝对URL、根相对路径或data URI均可接受"""
    if url.startswith("/") or url.startswith("data:"):
        return True
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return bool(parts.scheme) and bool(parts.netloc or parts.path)


class ValidationSession:
    """
    单次 validate 调用的错误收集器。

    每次调用都会新建一个会话，校验器实例本身不持有任何调用期状态，
    因此同一个实例可以被重复调用或在多线程中共享，错误不会串到别的调用里。
    """

    def __init__(self):
        self.errors: List[ValidationError] = []

    def add(self, path: str, message: str, code: ErrorCode) -> None:
        self.errors.append(ValidationError(path=path, message=message, code=code))

    def result(self) -> ValidationResult:
        return ValidationResult(errors=list(self.errors))


class ContentValidator:
    """
    规范内容校验器。

    说明：
        - validate 返回 ValidationResult，永不抛出异常
        - 错误定位采用path语法（metadata.title / statement[2].data.level），便于快速追踪
        - 同级字段全部检查后再返回，按深度优先、字段声明顺序记录错误
    """

    # ======== 对外接口 ========

    def validate(self, content: Any) -> ValidationResult:
        """校验完整内容对象，返回本次调用发现的全部错误"""
        session = ValidationSession()

        if not _is_object(content):
            session.add("root", "内容必须是对象", ErrorCode.INVALID_TYPE)
            return self._finish(session)

        metadata = content.get("metadata")
        if metadata is None:
            session.add("root", "缺少必填属性: metadata", ErrorCode.MISSING_REQUIRED)
        else:
            self._validate_metadata(metadata, session)

        statement = content.get("statement")
        if statement is None:
            session.add("root", "缺少必填属性: statement", ErrorCode.MISSING_REQUIRED)
        else:
            self._validate_blocks(statement, "statement", session)

        if "solutions" in content:
            self._validate_solutions(content["solutions"], session)

        return self._finish(session)

    # ======== 内部工具 ========

    def _finish(self, session: ValidationSession) -> ValidationResult:
        result = session.result()
        if result.valid:
            logger.debug("内容校验通过")
        else:
            logger.debug(f"内容校验未通过，共 {len(result.errors)} 处错误")
        return result

    def _validate_metadata(self, metadata: Any, session: ValidationSession):
        """metadata 各字段独立校验，全部违规都会记录"""
        path = "metadata"
        if not _is_object(metadata):
            session.add(path, "metadata 必须是对象", ErrorCode.INVALID_TYPE)
            return

        content_id = metadata.get("id")
        if not _is_number(content_id) or not content_id >= 1:
            session.add(f"{path}.id", "id 必须是正整数", ErrorCode.INVALID_VALUE)

        title = metadata.get("title")
        if not _is_non_empty_string(title):
            session.add(f"{path}.title", "标题必须是非空字符串", ErrorCode.INVALID_VALUE)
        elif len(title) > TITLE_MAX_LENGTH:
            session.add(
                f"{path}.title",
                f"标题不能超过 {TITLE_MAX_LENGTH} 个字符",
                ErrorCode.VALUE_TOO_LONG,
            )

        content_type = metadata.get("contentType")
        if content_type is None:
            session.add(f"{path}.contentType", "缺少必填字段: contentType", ErrorCode.MISSING_REQUIRED)
        elif not _is_one_of(content_type, CONTENT_TYPES):
            session.add(
                f"{path}.contentType",
                'contentType 取值非法，只允许 "problem" 或 "lesson"',
                ErrorCode.INVALID_VALUE,
            )

        # category/difficulty 缺省时放行，出现时才检查取值
        category = metadata.get("category")
        if category is not None and not _is_one_of(category, CATEGORIES):
            session.add(f"{path}.category", f"category 取值非法: {category}", ErrorCode.INVALID_VALUE)

        difficulty = metadata.get("difficulty")
        if difficulty is not None and not _is_one_of(difficulty, DIFFICULTIES):
            session.add(
                f"{path}.difficulty",
                'difficulty 取值非法，只允许 "Easy"、"Medium" 或 "Hard"',
                ErrorCode.INVALID_VALUE,
            )

        if "tags" in metadata:
            self._validate_tags(metadata["tags"], f"{path}.tags", session)

    def _validate_tags(self, tags: Any, path: str, session: ValidationSession):
        if not _is_array(tags):
            session.add(path, "tags 必须是数组", ErrorCode.INVALID_TYPE)
            return
        if len(tags) > MAX_TAGS:
            session.add(path, f"最多允许 {MAX_TAGS} 个标签", ErrorCode.ARRAY_TOO_LONG)
        for idx, tag in enumerate(tags):
            if not isinstance(tag, str):
                session.add(f"{path}[{idx}]", "标签必须是字符串", ErrorCode.INVALID_TYPE)
            elif not 1 <= len(tag) <= TAG_MAX_LENGTH:
                session.add(
                    f"{path}[{idx}]",
                    f"标签长度必须在 1-{TAG_MAX_LENGTH} 个字符之间",
                    ErrorCode.INVALID_LENGTH,
                )

    def _validate_blocks(self, blocks: Any, path: str, session: ValidationSession):
        """block数组必须非空，并逐个校验"""
        if not _is_array(blocks):
            session.add(path, "blocks 必须是数组", ErrorCode.INVALID_TYPE)
            return
        if not blocks:
            session.add(path, "至少需要一个block", ErrorCode.ARRAY_EMPTY)
            return
        for idx, block in enumerate(blocks):
            self._validate_block(block, f"{path}[{idx}]", session)

    def _validate_block(self, block: Any, path: str, session: ValidationSession):
        """根据block类型调用不同的校验器"""
        if not _is_object(block):
            session.add(path, "block 必须是对象", ErrorCode.INVALID_TYPE)
            return

        block_type = block.get("type")
        if block_type is None:
            session.add(f"{path}.type", "缺少必填字段: type", ErrorCode.MISSING_REQUIRED)
            return
        if not _is_one_of(block_type, ALLOWED_BLOCK_TYPES):
            session.add(f"{path}.type", f"不被支持的block类型: {block_type}", ErrorCode.INVALID_VALUE)
            return

        data = block.get("data")
        if not _is_object(data):
            session.add(f"{path}.data", "data 缺失或不是对象", ErrorCode.INVALID_TYPE)
            return

        validators = {
            "paragraph": self._validate_paragraph_block,
            "header": self._validate_header_block,
            "list": self._validate_list_block,
            "quote": self._validate_quote_block,
            "math": self._validate_math_block,
            "image": self._validate_image_block,
        }
        validators[block_type](data, f"{path}.data", session)

    def _validate_paragraph_block(self, data: Mapping[str, Any], path: str, session: ValidationSession):
        """paragraph需要非空text"""
        if not _is_non_empty_string(data.get("text")):
            session.add(f"{path}.text", "段落text必须是非空字符串", ErrorCode.INVALID_VALUE)

    def _validate_header_block(self, data: Mapping[str, Any], path: str, session: ValidationSession):
        """header需要非空text与1-6的level"""
        if not _is_non_empty_string(data.get("text")):
            session.add(f"{path}.text", "标题text必须是非空字符串", ErrorCode.INVALID_VALUE)

        level = data.get("level")
        if not _is_number(level):
            session.add(f"{path}.level", "缺少必填字段: level", ErrorCode.MISSING_REQUIRED)
        elif not _is_integral(level):
            session.add(f"{path}.level", "level 必须是整数", ErrorCode.INVALID_VALUE)
        elif not HEADER_MIN_LEVEL <= level <= HEADER_MAX_LEVEL:
            session.add(
                f"{path}.level",
                f"level 必须在 {HEADER_MIN_LEVEL}-{HEADER_MAX_LEVEL} 之间",
                ErrorCode.INVALID_VALUE,
            )

    def _validate_list_block(self, data: Mapping[str, Any], path: str, session: ValidationSession):
        """列表需要声明style且每个item都是字符串"""
        if not _is_one_of(data.get("style"), LIST_STYLES):
            session.add(
                f"{path}.style",
                'list.style 只允许 "ordered" 或 "unordered"',
                ErrorCode.INVALID_VALUE,
            )

        items = data.get("items")
        if not _is_array(items):
            session.add(f"{path}.items", "list.items 必须是数组", ErrorCode.INVALID_TYPE)
        elif not items:
            session.add(f"{path}.items", "列表至少需要一个条目", ErrorCode.ARRAY_EMPTY)
        else:
            for idx, item in enumerate(items):
                if not isinstance(item, str):
                    session.add(f"{path}.items[{idx}]", "列表条目必须是字符串", ErrorCode.INVALID_TYPE)

    def _validate_quote_block(self, data: Mapping[str, Any], path: str, session: ValidationSession):
        """引用需要非空text，caption可选但必须是字符串"""
        if not _is_non_empty_string(data.get("text")):
            session.add(f"{path}.text", "引用text必须是非空字符串", ErrorCode.INVALID_VALUE)
        if "caption" in data and not isinstance(data["caption"], str):
            session.add(f"{path}.caption", "引用caption必须是字符串", ErrorCode.INVALID_TYPE)

    def _validate_math_block(self, data: Mapping[str, Any], path: str, session: ValidationSession):
        """数学块要求latex与严格布尔的display"""
        if not _is_non_empty_string(data.get("latex")):
            session.add(f"{path}.latex", "latex 必须是非空字符串", ErrorCode.INVALID_VALUE)
        if not isinstance(data.get("display"), bool):
            session.add(f"{path}.display", "display 必须是布尔值", ErrorCode.INVALID_TYPE)

    def _validate_image_block(self, data: Mapping[str, Any], path: str, session: ValidationSession):
        """图片需要可用的url；alignment/size 缺省交给渲染层兜底"""
        url = data.get("url")
        if not _is_non_empty_string(url):
            session.add(f"{path}.url", "图片url必须是非空字符串", ErrorCode.INVALID_VALUE)
        elif not _is_acceptable_image_url(url):
            session.add(
                f"{path}.url",
                "图片url必须是合法URL、根相对路径或data URI",
                ErrorCode.INVALID_VALUE,
            )

        for name in ("alt", "caption"):
            if name in data and not isinstance(data[name], str):
                session.add(f"{path}.{name}", f"图片{name}必须是字符串", ErrorCode.INVALID_TYPE)

        alignment = data.get("alignment")
        if alignment is not None and not _is_one_of(alignment, IMAGE_ALIGNMENTS):
            session.add(
                f"{path}.alignment",
                'alignment 只允许 "center"、"float-left" 或 "float-right"',
                ErrorCode.INVALID_VALUE,
            )

        size = data.get("size")
        if size is not None and not _is_one_of(size, IMAGE_SIZES):
            session.add(
                f"{path}.size",
                'size 只允许 "small"、"medium"、"large" 或 "full"',
                ErrorCode.INVALID_VALUE,
            )

    def _validate_solutions(self, solutions: Any, session: ValidationSession):
        """solutions 允许为空数组，每个元素独立校验"""
        path = "solutions"
        if not _is_array(solutions):
            session.add(path, "solutions 必须是数组", ErrorCode.INVALID_TYPE)
            return
        for idx, solution in enumerate(solutions):
            self._validate_solution(solution, f"{path}[{idx}]", session)

    def _validate_solution(self, solution: Any, path: str, session: ValidationSession):
        if not _is_object(solution):
            session.add(path, "solution 必须是对象", ErrorCode.INVALID_TYPE)
            return

        title = solution.get("title")
        if not _is_non_empty_string(title):
            session.add(f"{path}.title", "解答标题必须是非空字符串", ErrorCode.INVALID_VALUE)
        elif len(title) > SOLUTION_TITLE_MAX_LENGTH:
            session.add(
                f"{path}.title",
                f"解答标题不能超过 {SOLUTION_TITLE_MAX_LENGTH} 个字符",
                ErrorCode.VALUE_TOO_LONG,
            )

        blocks = solution.get("blocks")
        if blocks is None:
            session.add(f"{path}.blocks", "缺少必填字段: blocks", ErrorCode.MISSING_REQUIRED)
        else:
            self._validate_blocks(blocks, f"{path}.blocks", session)


def validate_content(content: Any) -> ValidationResult:
    """快捷校验函数"""
    return ContentValidator().validate(content)


def is_valid_content(content: Any) -> bool:
    return validate_content(content).valid


def parse_content(content: Any) -> CanonicalContent:
    """
    严格解析：先校验，再转换为强类型的 CanonicalContent。

    Raises:
        ContentValidationError: 校验未通过时抛出，result 中带全部错误
    """
    result = validate_content(content)
    if not result.valid:
        raise ContentValidationError(result)
    return CanonicalContent.from_dict(content)


__all__ = [
    "ContentValidator",
    "ValidationSession",
    "validate_content",
    "is_valid_content",
    "parse_content",
]
