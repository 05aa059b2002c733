from wrash.core.model import DoubleQuote, SingleQuote, VariableExpansion, Word
from wrash.core.parse.parse_line import parse_line
from wrash.core.render.render_args import render_node


def test_command_render_args():
    cmd = parse_line("i 'want'   $NUM  \"$ITEM's\"")
    assert cmd.render_args() == ["i", "'want'", "$NUM", "\"$ITEM's\""]


def test_render_args_round_trip():
    line = r"""abc '$SOME_VAR \'' "$SOME_VAR  d\"e\"f"  $SOMETHING    g'h'j a\*b "\$x \n" """
    assert parse_line(line).render_args() == [
        "abc",
        r"'$SOME_VAR \''",
        r'"$SOME_VAR  d\"e\"f"',
        "$SOMETHING",
        "g'h'j",
        r"a\*b",
        r'"\$x \n"',
    ]


def test_render_command_joins_with_single_space():
    assert parse_line("  status   --short  ").render() == "status --short"


def test_render_node_shapes():
    assert render_node(Word("plain")) == "plain"
    assert render_node(SingleQuote("it's")) == r"'it\'s'"
    assert render_node(VariableExpansion("HOME")) == "$HOME"
    assert render_node(DoubleQuote((Word("x ", is_quoted=True), VariableExpansion("Y")))) == '"x $Y"'
    assert render_node(DoubleQuote(())) == '""'
