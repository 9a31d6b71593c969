from __future__ import annotations

import io
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from unittest import mock

from lxml import etree

from tagrewriter import BaseRewriteHandler, set_text_content, text_content
from tagrewriter.cli import HandlerLoadError, load_handler, main


class UpperHeadings(BaseRewriteHandler):
    def applies_to(self) -> str:
        return "//html:h1"

    def match(self, node: etree._Element) -> None:
        set_text_content(node, text_content(node).upper())


shared_handler = UpperHeadings()


def run_cli(argv: list[str], stdin: str = "") -> tuple[int, str, str]:
    # Latin-1 text layers, so only byte-level UTF-8 I/O round-trips non-ASCII.
    stdin_stream = io.TextIOWrapper(io.BytesIO(stdin.encode("utf-8")), encoding="latin-1")
    out = io.TextIOWrapper(io.BytesIO(), encoding="latin-1")
    err = io.StringIO()
    with mock.patch("sys.stdin", stdin_stream), redirect_stdout(out), redirect_stderr(err):
        code = main(argv)
    out.flush()
    return code, out.buffer.getvalue().decode("utf-8"), err.getvalue()


class TestLoadHandler(unittest.TestCase):
    def test_class_is_instantiated(self) -> None:
        handler = load_handler(f"{__name__}:UpperHeadings")

        assert isinstance(handler, UpperHeadings)

    def test_instance_is_used_as_is(self) -> None:
        assert load_handler(f"{__name__}:shared_handler") is shared_handler

    def test_bad_specs(self) -> None:
        for spec in ("no_colon", ":UpperHeadings", f"{__name__}:", "no_such_module_xyz:Handler", f"{__name__}:Missing"):
            with self.subTest(spec=spec):
                with self.assertRaises(HandlerLoadError):
                    load_handler(spec)


class TestMain(unittest.TestCase):
    def test_fragment_from_stdin(self) -> None:
        code, out, _ = run_cli(
            ["--fragment", "--handler", f"{__name__}:UpperHeadings"],
            stdin='<h1>hello</h1><esi:include src="/x?a&b" />',
        )

        assert code == 0
        assert out == '<h1>HELLO</h1><esi:include src="/x?a&b" />'

    def test_stdin_and_stdout_are_utf8(self) -> None:
        code, out, _ = run_cli(
            ["--fragment", "--handler", f"{__name__}:UpperHeadings"],
            stdin="<h1>café</h1><p>☃</p>",
        )

        assert code == 0
        assert out == "<h1>CAFÉ</h1><p>☃</p>"

    def test_document_from_file_to_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            source = Path(tmp) / "in.html"
            target = Path(tmp) / "out.html"
            source.write_text("<!DOCTYPE html><h1>café</h1>", encoding="utf-8")

            code, out, _ = run_cli([str(source), "-o", str(target), "--handler", f"{__name__}:UpperHeadings"])

            assert code == 0
            assert out == ""
            assert target.read_text(encoding="utf-8") == (
                "<!DOCTYPE html><html><head></head><body><h1>CAFÉ</h1></body></html>"
            )

    def test_mask_and_unmask_only(self) -> None:
        html = "<p><esi:remove>x</esi:remove></p>"

        code, masked, _ = run_cli(["--mask-only"], stdin=html)
        assert code == 0
        assert masked == "<p><!--esi html5-tagrewriter <esi:remove>-->x<!--esi html5-tagrewriter </esi:remove>--></p>"

        code, unmasked, _ = run_cli(["--unmask-only"], stdin=masked)
        assert code == 0
        assert unmasked == html

    def test_minimize_boolean_attributes(self) -> None:
        code, out, _ = run_cli(["--fragment", "--minimize-boolean-attributes"], stdin="<input checked>")

        assert code == 0
        assert out == "<input checked>"

    def test_bad_handler_exits_with_2(self) -> None:
        code, out, err = run_cli(["--handler", "no_such_module_xyz:Handler"], stdin="<p>x</p>")

        assert code == 2
        assert out == ""
        assert "no_such_module_xyz" in err

    def test_object_that_is_not_a_handler_exits_with_2(self) -> None:
        code, _, err = run_cli(["--handler", "io:DEFAULT_BUFFER_SIZE"], stdin="<p>x</p>")

        assert code == 2
        assert "Unsupported handler" in err


if __name__ == "__main__":
    unittest.main()
