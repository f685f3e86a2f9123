import logging

import pytest

from minify_css import PUNCTUATION, REWRITE_STEPS, minify


SAMPLES = (
    "",
    "   ",
    ".a{color:red}",
    "/* header */\n.box {\n  color: red;\n  margin: 0 ;\n}\n",
    "ul > li + li ~ p , a:hover { margin : calc( 1px + 2px ) ; }",
    "@media (max-width: 600px) {\n\t.nav { display : none ; }\n}\n",
)


def test_scenario_file_contents():
    source = "/* header */\n.box {\n  color: red;\n  margin: 0 ;\n}\n"
    assert minify(source) == ".box{color:red;margin:0}"


def test_comment_removed():
    result = minify("a/*x*/b")
    assert "/*" not in result
    assert "*/" not in result
    assert "x" not in result
    assert result == "ab"


def test_separate_comments_removed_individually():
    assert minify("/*a*/.c{color:red}/*b*/") == ".c{color:red}"


def test_multiline_comment_removed():
    assert minify("/*\n * banner\n */\n.a { top: 0 }") == ".a{top:0}"


def test_whitespace_collapsed():
    result = minify("a   b\n\tc")
    assert result == "a b c"


def test_punctuation_spacing():
    assert minify(".a , .b { color : red ; }") == ".a,.b{color:red}"


def test_selector_combinators_and_parentheses():
    source = "ul > li + li ~ p { width : calc( 100% - 2px ) }"
    assert minify(source) == "ul>li+li~p{width:calc(100% - 2px)}"


def test_trailing_semicolon_elided():
    assert minify(".a{color:red;}") == ".a{color:red}"


def test_leading_and_trailing_space_trimmed():
    assert minify("\n\n  .a{top:0}  \n") == ".a{top:0}"


def test_unterminated_comment_is_left_alone():
    assert minify(".a{top:0} /* open") == ".a{top:0}/* open"


@pytest.mark.parametrize("source", SAMPLES)
def test_idempotent(source):
    once = minify(source)
    assert minify(once) == once


@pytest.mark.parametrize("source", ["{{{", "}};;", "/**/", "*/ /*", "\x00\r\n\t", "é  ü"])
def test_malformed_input_returns_string(source):
    assert isinstance(minify(source), str)


def test_strings_and_attribute_values_are_rewritten_blindly():
    assert minify('a[title="a + b"]{}') == 'a[title="a+b"]{}'
    assert minify('.x{content:"a ; b"}') == '.x{content:"a;b"}'


def test_comment_markers_inside_url_are_stripped():
    assert minify(".x{background:url(http://x/*y*/z)}") == ".x{background:url(http://xz)}"


def test_steps_follow_punctuation_order():
    replacements = [step.replacement for step in REWRITE_STEPS[2 : 2 + len(PUNCTUATION)]]
    assert tuple(replacements) == PUNCTUATION


def test_progress_is_logged(caplog):
    caplog.set_level(logging.INFO)
    minify(".a { top: 0 }")
    messages = [record.getMessage() for record in caplog.records]
    assert messages[0] == "Starting CSS minification..."
    assert "  -> Removing comments..." in messages
    assert "  -> Removing whitespace..." in messages
    assert "  -> Optimizing syntax..." in messages
    assert messages[-1] == "CSS minification completed"


def test_result_does_not_depend_on_logging(caplog):
    source = "/* c */ .a , .b { color : red ; }"
    caplog.set_level(logging.CRITICAL)
    quiet = minify(source)
    caplog.set_level(logging.DEBUG)
    assert minify(source) == quiet


def test_leading_byte_order_mark_is_dropped():
    assert minify("\ufeff/* h */\n.a { top: 0 }") == ".a{top:0}"
    assert minify("\ufeff.a{top:0}") == ".a{top:0}"
