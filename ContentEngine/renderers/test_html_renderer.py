"""
HTML渲染器的测试用例。

运行测试：
    python -m pytest ContentEngine/renderers/test_html_renderer.py -v
"""

import json
from pathlib import Path

import pytest

from ContentEngine.ir.models import (
    CanonicalContent,
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
)
from ContentEngine.renderers.html_renderer import (
    CssClasses,
    HTMLRenderer,
    RenderOptions,
    escape_html,
    render_to_html,
)
from ContentEngine.utils.config import Settings

FIXTURES = Path(__file__).resolve().parent.parent / "ir" / "fixtures"


def load_fixture(name: str) -> dict:
    with open(FIXTURES / name, "r", encoding="utf-8") as f:
        return json.load(f)


def image(**data):
    data.setdefault("url", "/a.png")
    data.setdefault("alt", "A")
    return {"type": "image", "data": data}


class TestBlockRendering:
    """各类block的输出"""

    def setup_method(self):
        """每个测试前初始化"""
        self.renderer = HTMLRenderer(RenderOptions())

    def test_paragraph_keeps_inline_html(self):
        """段落正文原样输出"""
        html = self.renderer.render_blocks([
            {"type": "paragraph", "data": {"text": "Let <b>x</b> be $x^2$"}}
        ])
        assert html == '<div class="content-block"><p>Let <b>x</b> be $x^2$</p></div>'

    def test_header_is_escaped(self):
        """标题文字需要转义"""
        html = self.renderer.render_blocks([
            {"type": "header", "data": {"text": "<b>Part</b>", "level": 3}}
        ])
        assert html == '<div class="content-block"><h3>&lt;b&gt;Part&lt;/b&gt;</h3></div>'

    def test_escaping_asymmetry(self):
        """同样的标记在段落中保留，在标题中转义"""
        html = self.renderer.render_blocks([
            {"type": "header", "data": {"text": "<b>", "level": 2}},
            {"type": "paragraph", "data": {"text": "<b>"}},
        ])
        assert "<h2>&lt;b&gt;</h2>" in html
        assert "<p><b></p>" in html

    def test_header_level_clamped(self):
        """越界的level被夹到1-6"""
        html = self.renderer.render_blocks([
            {"type": "header", "data": {"text": "T", "level": 9}},
            {"type": "header", "data": {"text": "T", "level": 0}},
        ])
        assert "<h6>T</h6>" in html
        assert "<h1>T</h1>" in html

    def test_ordered_and_unordered_lists(self):
        """列表标签与条目"""
        html = self.renderer.render_blocks([
            {"type": "list", "data": {"style": "ordered", "items": ["a", "<i>b</i>"]}},
            {"type": "list", "data": {"style": "unordered", "items": ["c"]}},
        ])
        assert html == (
            '<div class="content-block"><ol class="content-list"><li>a</li><li><i>b</i></li></ol></div>\n'
            '<div class="content-block"><ul class="content-list"><li>c</li></ul></div>'
        )

    def test_quote_with_caption(self):
        """引用caption转义并带破折号"""
        html = self.renderer.render_blocks([
            {"type": "quote", "data": {"text": "Stay <em>hungry</em>", "caption": "A & B"}}
        ])
        assert html == (
            '<div class="content-block"><blockquote class="content-quote">'
            "<p>Stay <em>hungry</em></p>"
            '<footer class="quote-caption">— A &amp; B</footer>'
            "</blockquote></div>"
        )

    def test_quote_without_caption(self):
        """没有caption时不输出footer"""
        html = self.renderer.render_blocks([{"type": "quote", "data": {"text": "q"}}])
        assert "footer" not in html

    def test_math_mathjax(self):
        """MathJax 定界符"""
        html = self.renderer.render_blocks([
            {"type": "math", "data": {"latex": "a<b", "display": True}},
            {"type": "math", "data": {"latex": "x", "display": False}},
        ])
        assert html == (
            '<div class="content-block math-display">$$a<b$$</div>\n'
            '<div class="content-block math-inline">$x$</div>'
        )

    def test_math_katex(self):
        """KaTeX 定界符"""
        renderer = HTMLRenderer(RenderOptions(math_delimiters="katex"))
        html = renderer.render_blocks([
            {"type": "math", "data": {"latex": "x", "display": True}},
            {"type": "math", "data": {"latex": "y", "display": False}},
        ])
        assert '<div class="content-block math-display">\\[x\\]</div>' in html
        assert '<div class="content-block math-inline">\\(y\\)</div>' in html

    def test_unknown_delimiter_style_falls_back(self):
        """未知的定界符风格回退为 mathjax"""
        renderer = HTMLRenderer(RenderOptions(math_delimiters="asciimath"))
        html = renderer.render_blocks([{"type": "math", "data": {"latex": "x", "display": False}}])
        assert "$x$" in html

    def test_unknown_block_renders_nothing(self):
        """未知类型输出空串，不影响其他block"""
        html = self.renderer.render_blocks([
            {"type": "video", "data": {"url": "x"}},
            {"type": "paragraph", "data": {"text": "after"}},
        ])
        assert html == '\n<div class="content-block"><p>after</p></div>'

    def test_typed_blocks_accepted(self):
        """直接传入强类型block"""
        html = self.renderer.render_blocks([ImageBlock(url="/x.png", alt=PlainText("x"))])
        assert html.startswith('<div class="content-block"><div class="image-block align-center size-medium">')


class TestImageRendering:
    """图片与浮动规则"""

    def setup_method(self):
        self.renderer = HTMLRenderer(RenderOptions())

    def test_float_left_is_not_wrapped(self):
        """左浮动图片裸输出"""
        html = self.renderer.render_blocks([image(alignment="float-left")])
        assert html == (
            '<div class="image-block align-float-left size-medium">'
            '<img src="/a.png" alt="A" loading="lazy"></div>'
        )

    def test_float_right_is_not_wrapped(self):
        """右浮动图片裸输出"""
        html = self.renderer.render_blocks([image(alignment="float-right", size="small")])
        assert html.startswith('<div class="image-block align-float-right size-small">')
        assert "content-block" not in html

    def test_center_is_wrapped(self):
        """居中图片与其他block一样包裹"""
        html = self.renderer.render_blocks([image(alignment="center", size="large")])
        assert html == (
            '<div class="content-block"><div class="image-block align-center size-large">'
            '<img src="/a.png" alt="A" loading="lazy"></div></div>'
        )

    @pytest.mark.parametrize("alignment", [None, "left", 7])
    def test_missing_or_unknown_alignment_is_wrapped(self, alignment):
        """缺省或非法的alignment按居中处理"""
        data = {} if alignment is None else {"alignment": alignment}
        html = self.renderer.render_blocks([image(**data)])
        assert html.startswith('<div class="content-block"><div class="image-block align-center size-medium">')

    def test_float_followed_by_paragraph(self):
        """浮动图片后的段落是相邻兄弟节点"""
        html = self.renderer.render_blocks([
            image(alignment="float-right"),
            {"type": "paragraph", "data": {"text": "wraps around"}},
        ])
        figure, paragraph = html.split("\n")
        assert figure.startswith('<div class="image-block align-float-right')
        assert paragraph == '<div class="content-block"><p>wraps around</p></div>'

    def test_caption(self):
        """caption 渲染为 image-caption"""
        html = self.renderer.render_blocks([image(caption="Fig <1>")])
        assert '<span class="image-caption">Fig &lt;1&gt;</span>' in html

    def test_without_caption(self):
        """没有caption时不输出caption元素"""
        html = self.renderer.render_blocks([image()])
        assert "image-caption" not in html

    def test_attributes_escaped(self):
        """url 与 alt 在属性中转义"""
        html = self.renderer.render_blocks([image(url='/a.png?x=1&y="2"', alt='say "hi"')])
        assert 'src="/a.png?x=1&amp;y=&quot;2&quot;"' in html
        assert 'alt="say &quot;hi&quot;"' in html

    def test_image_base_url(self):
        """图片url前拼接前缀"""
        renderer = HTMLRenderer(RenderOptions(image_base_url="https://cdn.example.com"))
        html = renderer.render_blocks([image(url="/a.png")])
        assert 'src="https://cdn.example.com/a.png"' in html


class TestDocumentRendering:
    """完整内容"""

    def setup_method(self):
        self.renderer = HTMLRenderer(RenderOptions())
        self.problem = load_fixture("valid-problem.json")

    def test_statement_only_without_metadata(self):
        """关闭头部后的完整结构"""
        renderer = HTMLRenderer(RenderOptions(include_metadata=False))
        html = renderer.render({
            "metadata": {"id": 1, "title": "T", "contentType": "lesson"},
            "statement": [{"type": "paragraph", "data": {"text": "x"}}],
        })
        assert html == (
            '<div class="content-wrapper"><div class="statement-block">\n'
            '<div class="content-block"><p>x</p></div>\n'
            "</div></div>"
        )

    def test_metadata_header(self):
        """头部包含标题与徽章"""
        html = self.renderer.render(self.problem)
        assert html.startswith('<div class="content-wrapper"><div class="content-metadata">')
        assert '<h1 class="content-title">Sum of Two Squares</h1>' in html
        assert '<span class="badge badge-category">Number Theory</span>' in html
        assert '<span class="badge badge-difficulty badge-medium">Medium</span>' in html
        assert '<span class="badge badge-tag">#primes</span>' in html

    def test_metadata_title_escaped(self):
        """标题进入头部时转义"""
        self.problem["metadata"]["title"] = "<script>alert(1)</script>"
        html = self.renderer.render(self.problem)
        assert "<script>" not in html
        assert "&lt;script&gt;" in html

    def test_metadata_omitted(self):
        """include_metadata=False 时不输出头部"""
        renderer = HTMLRenderer(RenderOptions(include_metadata=False))
        html = renderer.render(self.problem)
        assert "content-metadata" not in html
        assert "Sum of Two Squares" not in html

    def test_solutions(self):
        """解答区包含标题与各解答"""
        html = self.renderer.render(self.problem)
        assert '<div class="solutions-container"><h2 class="solutions-header">Solutions</h2>' in html
        assert '<div class="solution-block clearfix"><h2 class="solution-title">Solution 1: Thue&apos;s Lemma</h2>' in html
        assert html.endswith("</div></div></div>")

    @pytest.mark.parametrize("solutions", [None, []])
    def test_solutions_omitted(self, solutions):
        """没有解答时不输出解答区"""
        if solutions is None:
            del self.problem["solutions"]
        else:
            self.problem["solutions"] = solutions
        html = self.renderer.render(self.problem)
        assert "solutions-container" not in html

    def test_custom_css_classes(self):
        """自定义外层class"""
        options = RenderOptions(css_classes=CssClasses(wrapper="w", statement="s", solution="sol"))
        html = HTMLRenderer(options).render(self.problem)
        assert html.startswith('<div class="w">')
        assert '<div class="s">' in html
        assert '<div class="sol clearfix">' in html

    def test_typed_and_dict_input_match(self):
        """字典输入与强类型输入结果一致"""
        typed = CanonicalContent.from_dict(self.problem)
        assert self.renderer.render(typed) == self.renderer.render(self.problem)

    def test_deterministic(self):
        """同一输入两次渲染结果相同"""
        assert self.renderer.render(self.problem) == self.renderer.render(self.problem)

    @pytest.mark.parametrize(
        "content",
        [
            None,
            [],
            {"metadata": "x", "statement": "y", "solutions": 3},
            {"statement": [None, {"type": "header", "data": {"level": float("inf")}}, {"type": 5}]},
        ],
    )
    def test_malformed_input_does_not_raise(self, content):
        """不合法输入也不会抛出异常"""
        html = self.renderer.render(content)
        assert html.startswith('<div class="content-wrapper">')

    def test_render_to_html(self):
        """快捷函数接受字典选项"""
        html = render_to_html(self.problem, {"includeMetadata": False, "imageBaseUrl": ""})
        assert "content-metadata" not in html
        assert "lattice.png" in html

    def test_render_document(self):
        """预览页包含样式、脚本与片段"""
        page = self.renderer.render_document(load_fixture("valid-lesson.json"))
        assert page.startswith("<!DOCTYPE html>")
        assert ".image-block.size-large { width: 70%; }" in page
        assert "float: right" in page
        assert "mathjax" in page
        assert self.renderer.render(load_fixture("valid-lesson.json")) in page

    def test_render_document_katex(self):
        """KaTeX 预览页加载 KaTeX 脚本"""
        renderer = HTMLRenderer(RenderOptions(math_delimiters="katex"))
        page = renderer.render_document(self.problem, title="Preview <1>")
        assert "katex.min.js" in page
        assert "<title>Preview &lt;1&gt;</title>" in page


class TestRenderOptions:
    """渲染选项"""

    def test_from_mapping_camel_case(self):
        """驼峰键名与部分 cssClasses 覆盖"""
        options = RenderOptions.from_mapping(
            {"includeMetadata": False, "mathDelimiters": "katex", "cssClasses": {"wrapper": "outer"}},
            base=RenderOptions(),
        )
        assert options.include_metadata is False
        assert options.math_delimiters == "katex"
        assert options.css_classes == CssClasses(wrapper="outer")

    def test_from_mapping_ignores_unknown_keys(self):
        """未知键被忽略"""
        options = RenderOptions.from_mapping({"colour": "red"}, base=RenderOptions())
        assert options == RenderOptions()

    def test_from_settings(self):
        """从配置对象构造"""
        config = Settings(RENDER_MATH_DELIMITERS="katex", RENDER_IMAGE_BASE_URL="/static")
        options = RenderOptions.from_settings(config)
        assert options.math_delimiters == "katex"
        assert options.image_base_url == "/static"

    def test_escape_html(self):
        """五个特殊字符全部转义"""
        assert escape_html("""<a href="x">'&'</a>""") == (
            "&lt;a href=&quot;x&quot;&gt;&apos;&amp;&apos;&lt;/a&gt;"
        )
        assert escape_html(None) == ""

    def test_escape_apostrophe_named_entity(self):
        """单引号输出为 &apos;"""
        assert escape_html("it's") == "it&apos;s"

    def test_null_options_fall_back_to_base(self):
        """None 取值沿用基础选项"""
        base = RenderOptions(image_base_url="/cdn", include_metadata=True)
        options = RenderOptions.from_mapping(
            {"imageBaseUrl": None, "includeMetadata": None, "cssClasses": None},
            base=base,
        )
        assert options == base

    def test_null_image_base_url_renders(self):
        """imageBaseUrl 为 None 时正常渲染图片"""
        options = RenderOptions.from_mapping({"imageBaseUrl": None}, base=RenderOptions())
        html = HTMLRenderer(options).render_blocks([image(url="/a.png")])
        assert 'src="/a.png"' in html

    def test_null_options_through_renderer(self):
        """字典选项中的 None 不会导致渲染失败或关闭头部"""
        renderer = HTMLRenderer({"imageBaseUrl": None, "includeMetadata": None})
        assert renderer.options.image_base_url is not None
        assert renderer.options.include_metadata is not None
        renderer.render_blocks([image(url="/a.png")])

    def test_css_classes_empty_string_kept(self):
        """cssClasses 中的空字符串是显式取值，None 才沿用原值"""
        options = RenderOptions.from_mapping(
            {"cssClasses": {"wrapper": "", "statement": None}},
            base=RenderOptions(),
        )
        assert options.css_classes == CssClasses(wrapper="", statement="statement-block")


class TestTrustBoundary:
    """转义按字段决定，与传入值的类型无关"""

    def setup_method(self):
        self.renderer = HTMLRenderer(RenderOptions())

    def test_typed_rich_fields_from_plain_str(self):
        """直接用普通 str 构造的富文本字段原样输出"""
        html = self.renderer.render_blocks([
            ParagraphBlock(text="<b>x</b>"),
            ListBlock(style="ordered", items=["<i>a</i>"]),
            QuoteBlock(text="<em>q</em>"),
            MathBlock(latex="a<b", display=True),
        ])
        assert "<p><b>x</b></p>" in html
        assert "<li><i>a</i></li>" in html
        assert "<p><em>q</em></p>" in html
        assert "$$a<b$$" in html

    def test_rich_text_in_plain_fields_is_escaped(self):
        """RichText 放进普通文本字段仍然被转义"""
        payload = RichText("<script>x</script>")
        html = self.renderer.render_blocks([
            HeaderBlock(text=payload, level=2),
            QuoteBlock(text="q", caption=payload),
            ImageBlock(url="/a.png", alt=payload, caption=payload),
        ])
        assert "<script>" not in html
        assert "<h2>&lt;script&gt;x&lt;/script&gt;</h2>" in html

    def test_rich_text_in_metadata_and_solution_is_escaped(self):
        """metadata 与解答标题同样按字段转义"""
        payload = RichText("<script>x</script>")
        content = CanonicalContent(
            metadata=Metadata(title=payload, category=payload, difficulty=payload, tags=[payload]),
            statement=[ParagraphBlock(text="ok")],
            solutions=[Solution(title=payload, blocks=[ParagraphBlock(text="ok")])],
        )
        html = self.renderer.render(content)
        assert "<script>" not in html

    def test_mutated_field_still_escaped(self):
        """构造后再改写字段，渲染仍按字段转义"""
        block = HeaderBlock(text="T", level=2)
        block.text = RichText("<b>T</b>")
        html = self.renderer.render_blocks([block])
        assert html == '<div class="content-block"><h2>&lt;b&gt;T&lt;/b&gt;</h2></div>'

    def test_fractional_level_renders_integer_tag(self):
        """小数 level 输出整数标题标签"""
        html = self.renderer.render_blocks([HeaderBlock(text="T", level=2.5)])
        assert html == '<div class="content-block"><h2>T</h2></div>'

    def test_level_reassigned_after_construction(self):
        """构造后改成小数 level 也输出整数标签"""
        block = HeaderBlock(text="T", level=3)
        block.level = 4.7
        html = self.renderer.render_blocks([block])
        assert html == '<div class="content-block"><h4>T</h4></div>'
