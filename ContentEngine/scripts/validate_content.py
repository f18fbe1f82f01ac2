#!/usr/bin/env python3
"""
规范内容验证工具。

命令行工具，用于：
- 校验指定 JSON 文件是否符合规范内容结构
- 按路径列出全部错误（path [code] message）
- 可选地为通过校验的文件生成独立预览 HTML
- 输出规范内容的 JSON Schema，供编辑端或外部工具对照
- 支持批量处理

使用方法:
    python -m ContentEngine.scripts.validate_content problem-001.json
    python -m ContentEngine.scripts.validate_content ./content/ --recursive --render
    python -m ContentEngine.scripts.validate_content *.json --verbose
    python -m ContentEngine.scripts.validate_content --print-schema > content.schema.json
"""

from __future__ import annotations

import argparse
import glob
import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger

from ContentEngine.ir.models import ValidationError
from ContentEngine.ir.schema import CONTENT_JSON_SCHEMA_TEXT, ErrorCode
from ContentEngine.ir.validator import ContentValidator
from ContentEngine.renderers.html_renderer import HTMLRenderer
from ContentEngine.utils.config import settings


@dataclass
class FileReport:
    """单个文件的验证报告"""
    file_path: str
    errors: List[ValidationError] = field(default_factory=list)
    rendered_path: Optional[str] = None

    @property
    def valid(self) -> bool:
        return len(self.errors) == 0

    @property
    def error_count(self) -> int:
        return len(self.errors)


def print_report(report: FileReport, verbose: bool = False):
    """打印验证报告"""
    print(f"\n{'=' * 60}")
    print(f"文件: {report.file_path}")
    print(f"{'=' * 60}")

    if report.valid:
        print("\n✅ 校验通过")
    else:
        print(f"\n❌ 发现 {report.error_count} 处错误:")
        for error in report.errors:
            print(f"  - {error}")

    if report.rendered_path:
        print(f"\n📄 已生成预览: {report.rendered_path}")
    elif verbose and report.valid:
        print("\n（未生成预览，使用 --render 输出 HTML）")


def validate_file(
    file_path: Path,
    validator: ContentValidator,
    renderer: Optional[HTMLRenderer] = None,
) -> FileReport:
    """验证单个文件，renderer 不为空时为通过校验的文件写出预览页"""
    report = FileReport(file_path=str(file_path))
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            document: Any = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"JSON 解析错误: {file_path}: {e}")
        report.errors.append(
            ValidationError(path="root", message=f"JSON 解析错误: {e}", code=ErrorCode.INVALID_TYPE)
        )
        return report
    except OSError as e:
        logger.error(f"读取文件错误: {file_path}: {e}")
        report.errors.append(
            ValidationError(path="root", message=f"读取文件错误: {e}", code=ErrorCode.INVALID_TYPE)
        )
        return report

    result = validator.validate(document)
    report.errors.extend(result.errors)

    if renderer is not None and result.valid:
        output_path = file_path.with_suffix(".html")
        try:
            output_path.write_text(renderer.render_document(document), encoding="utf-8")
            report.rendered_path = str(output_path)
            logger.info(f"已保存预览: {output_path}")
        except OSError as e:
            logger.error(f"保存预览失败: {output_path}: {e}")

    return report


def collect_files(paths: List[str], recursive: bool = False) -> List[Path]:
    """收集待验证的 JSON 文件，支持文件、目录与 glob 模式"""
    files: List[Path] = []
    for path_str in paths:
        path = Path(path_str)
        if path.is_file():
            if path.suffix.lower() == ".json":
                files.append(path)
        elif path.is_dir():
            pattern = path.rglob("*.json") if recursive else path.glob("*.json")
            files.extend(sorted(pattern))
        else:
            for matched in sorted(glob.glob(path_str)):
                candidate = Path(matched)
                if candidate.is_file() and candidate.suffix.lower() == ".json":
                    files.append(candidate)
    return files


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="规范内容验证工具",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
示例:
  %(prog)s problem-001.json
  %(prog)s ./content/ --recursive --render
  %(prog)s *.json --verbose
  %(prog)s --print-schema
        """,
    )
    parser.add_argument(
        "paths",
        nargs="*",
        help="要验证的 JSON 文件或目录",
    )
    parser.add_argument(
        "--print-schema",
        action="store_true",
        help="输出规范内容的 JSON Schema 后退出",
    )
    parser.add_argument(
        "-r", "--recursive",
        action="store_true",
        help="递归处理目录",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="显示详细信息",
    )
    parser.add_argument(
        "--render",
        action="store_true",
        help="为通过校验的文件生成同名 .html 预览",
    )
    parser.add_argument(
        "--no-metadata",
        action="store_true",
        help="预览中不渲染标题/分类/难度/标签头部",
    )
    parser.add_argument(
        "--image-base-url",
        default=None,
        help="拼接在图片 url 前的前缀",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """主函数，返回退出码"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.print_schema:
        print(CONTENT_JSON_SCHEMA_TEXT)
        return 0
    if not args.paths:
        parser.error("至少需要一个文件或目录")

    # 配置日志
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if args.verbose else settings.LOG_LEVEL)

    files = collect_files(args.paths, args.recursive)
    if not files:
        print("未找到 JSON 文件")
        return 1

    print(f"找到 {len(files)} 个文件")

    validator = ContentValidator()
    renderer = None
    if args.render:
        overrides: Dict[str, Any] = {}
        if args.no_metadata:
            overrides["include_metadata"] = False
        if args.image_base_url is not None:
            overrides["image_base_url"] = args.image_base_url
        renderer = HTMLRenderer(overrides)

    reports: List[FileReport] = []
    for file_path in files:
        report = validate_file(file_path, validator, renderer)
        reports.append(report)
        if args.verbose or not report.valid:
            print_report(report, args.verbose)

    invalid = [report for report in reports if not report.valid]

    # 打印总结
    print(f"\n{'=' * 60}")
    print("总结")
    print(f"{'=' * 60}")
    print(f"  - 文件数: {len(reports)}")
    print(f"  - 未通过: {len(invalid)}")
    print(f"  - 错误总数: {sum(report.error_count for report in reports)}")
    if args.render:
        print(f"  - 已生成预览: {sum(1 for report in reports if report.rendered_path)}")

    return 1 if invalid else 0


if __name__ == "__main__":
    sys.exit(main())
