"""
Content Engine 配置。

以 pydantic-settings 读取环境变量（优先大写变量名）与 .env 文件，
为渲染器提供默认选项，并为命令行工具提供日志级别。
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Content Engine 全局配置，字段均可通过同名环境变量覆盖"""

    # ===== 渲染默认值 =====
    RENDER_INCLUDE_METADATA: bool = Field(True, description="是否在HTML顶部渲染标题/分类/难度/标签")
    RENDER_MATH_DELIMITERS: Literal["mathjax", "katex"] = Field(
        "mathjax", description="公式定界符风格"
    )
    RENDER_IMAGE_BASE_URL: str = Field("", description="图片url前缀，便于迁移到CDN")
    RENDER_WRAPPER_CLASS: str = "content-wrapper"
    RENDER_STATEMENT_CLASS: str = "statement-block"
    RENDER_SOLUTION_CLASS: str = "solution-block"
    RENDER_SOLUTIONS_HEADING: str = "Solutions"

    # ===== 日志 =====
    LOG_LEVEL: str = Field("INFO", description="命令行工具的日志级别")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
