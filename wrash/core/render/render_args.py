from __future__ import annotations

from wrash.core.model import Arg, Command, DoubleQuote, Node, SingleQuote, VariableExpansion, Word


def render_node(node: Node) -> str:
    """Reproduce the lexical shape of a node (not its expanded value)."""

    if isinstance(node, Word):
        if node.is_quoted:
            return node.value.replace('"', '\\"').replace("$", "\\$")
        return node.value
    if isinstance(node, SingleQuote):
        return "'" + node.value.replace("'", "\\'") + "'"
    if isinstance(node, VariableExpansion):
        return "$" + node.name
    if isinstance(node, DoubleQuote):
        return '"' + "".join(render_node(child) for child in node.nodes) + '"'
    raise TypeError(f"unsupported node: {type(node).__name__}")


def render_arg(arg: Arg) -> str:
    return "".join(render_node(node) for node in arg.nodes)


def render_args(command: Command) -> list[str]:
    return [render_arg(arg) for arg in command.args]
