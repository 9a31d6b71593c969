"""Tests for masking and unmasking of ESI tags."""

import unittest

from tagrewriter.esi import (
    COMMENT_PREFIX,
    EsiTagProcessor,
    find_tags,
    is_masked_comment,
    postprocess,
    preprocess,
)

PREPROCESS_CASES = [
    (
        "self-closing tag",
        '<esi:include src="url" />',
        '<!--esi html5-tagrewriter <esi:include src="url" />-->',
    ),
    (
        "opening tag",
        "<esi:remove>",
        "<!--esi html5-tagrewriter <esi:remove>-->",
    ),
    (
        "closing tag",
        "</esi:remove>",
        "<!--esi html5-tagrewriter </esi:remove>-->",
    ),
    (
        "opening and closing tags in separate comments",
        "<esi:remove>content</esi:remove>",
        "<!--esi html5-tagrewriter <esi:remove>-->content<!--esi html5-tagrewriter </esi:remove>-->",
    ),
    (
        "adjacent tags",
        '<esi:include src="a" /><esi:include src="b" />',
        '<!--esi html5-tagrewriter <esi:include src="a" />--><!--esi html5-tagrewriter <esi:include src="b" />-->',
    ),
    (
        "surrounding html untouched",
        '<div><p>Hello</p><esi:include src="url" /><span>World</span></div>',
        '<div><p>Hello</p><!--esi html5-tagrewriter <esi:include src="url" />--><span>World</span></div>',
    ),
    (
        "tags spanning element boundaries",
        "<p>Start <esi:remove>content</p><p>more</esi:remove> end</p>",
        "<p>Start <!--esi html5-tagrewriter <esi:remove>-->content</p>"
        "<p>more<!--esi html5-tagrewriter </esi:remove>--> end</p>",
    ),
    (
        "double dash kept verbatim",
        '<esi:include src="/a?x=1--2" />',
        '<!--esi html5-tagrewriter <esi:include src="/a?x=1--2" />-->',
    ),
]

ROUNDTRIP_CASES = [
    "<esi:include />",
    '<esi:include src="url" />',
    '<esi:include src="url" alt="fallback" onerror="continue" />',
    '<esi:include src="url?foo=bar&bar=baz" />',
    '<esi:include src="a" /><esi:include src="b" />',
    "<esi:remove>content</esi:remove>",
    '<esi:try><esi:attempt><esi:include src="url" /></esi:attempt>'
    '<esi:except><esi:include src="fallback" /></esi:except></esi:try>',
    "<p>Start <esi:remove>content</p><p>more</esi:remove> end</p>",
    "<p><esi:remove><b>Important:</esi:remove>text<esi:remove></b></esi:remove></p>",
    '<div><esi:include src="header" /><p>Content</p><esi:include src="footer" /></div>',
    '<esi:include\n    src="url"\n    alt="fallback" />',
    '<esi:choose><esi:when test="$(HTTP_COOKIE{group})==\'Advanced\'">a</esi:when></esi:choose>',
    '<esi:include src="/a?x=1--2" />',
    '<esi:include src="a\x01\x0b" />',
    '<esi:vars>--$(HTTP_HOST)-</esi:vars>',
]


class TestPreprocess(unittest.TestCase):
    def test_wraps_tags_in_comments(self) -> None:
        for name, source, expected in PREPROCESS_CASES:
            with self.subTest(name):
                assert preprocess(source) == expected

    def test_non_esi_content_is_unchanged(self) -> None:
        html = '<!DOCTYPE html><p class="x">a &amp; b <!-- note --> <esi-like> <xesi:include /></p>'
        assert preprocess(html) == html

    def test_uppercase_tag_names_are_not_esi(self) -> None:
        assert preprocess("<ESI:include />") == "<ESI:include />"
        assert preprocess("<esi:Include />") == "<esi:Include />"

    def test_gt_in_quoted_attribute_ends_the_match(self) -> None:
        # The scan does not understand quoting; what it masks is cut at the first ">".
        masked = preprocess('<esi:include src="a>b" />')
        assert masked == '<!--esi html5-tagrewriter <esi:include src="a>-->b" />'
        assert postprocess(masked) == '<esi:include src="a>b" />'

    def test_multiline_tag(self) -> None:
        masked = preprocess('<esi:include\n src="url" />')
        assert masked == '<!--esi html5-tagrewriter <esi:include\n src="url" />-->'

    def test_find_tags(self) -> None:
        html = '<p><esi:remove>x</esi:remove><esi:include src="a" /></p>'
        assert find_tags(html) == ["<esi:remove>", "</esi:remove>", '<esi:include src="a" />']


class TestPostprocess(unittest.TestCase):
    def test_roundtrip(self) -> None:
        for html in ROUNDTRIP_CASES:
            with self.subTest(html=html):
                assert postprocess(preprocess(html)) == html

    def test_ordinary_comments_are_kept(self) -> None:
        html = "<!-- esi html5-tagrewriter --><!--other--><!--esi:include-->"
        assert postprocess(html) == html

    def test_each_comment_ends_at_first_terminator(self) -> None:
        html = "<!--esi html5-tagrewriter <esi:remove>-->x<!--esi html5-tagrewriter </esi:remove>-->"
        assert postprocess(html) == "<esi:remove>x</esi:remove>"

    def test_empty_input(self) -> None:
        assert preprocess("") == ""
        assert postprocess("") == ""


class TestEsiTagProcessor(unittest.TestCase):
    def setUp(self) -> None:
        self.processor = EsiTagProcessor()

    def test_methods_match_module_functions(self) -> None:
        html = '<div><esi:include src="url" /></div>'
        masked = self.processor.preprocess(html)
        assert masked == preprocess(html)
        assert self.processor.postprocess(masked) == html

    def test_is_masked_comment(self) -> None:
        assert is_masked_comment(COMMENT_PREFIX + "<esi:remove>")
        assert not is_masked_comment(" a comment ")
        assert not is_masked_comment(None)


if __name__ == "__main__":
    unittest.main()
