"""PHP AST utility helpers."""

from __future__ import annotations

from tree_sitter import Node

from phpintel.adapters.base import FileContext
from phpintel.reflection.models import VISIBILITY_MASK, Modifier
from phpintel.resolution.types import PRIMITIVE_TYPES

# Native type keywords that are never class names
BUILTIN_TYPE_NAMES = PRIMITIVE_TYPES | {"self", "static", "parent"}

TYPE_NODE_KINDS = (
    "named_type",
    "optional_type",
    "primitive_type",
    "union_type",
    "intersection_type",
    "disjunctive_normal_form_type",
    "type_list",
)

_MODIFIER_BITS = {
    "static_modifier": Modifier.STATIC,
    "abstract_modifier": Modifier.ABSTRACT,
    "final_modifier": Modifier.FINAL,
    "readonly_modifier": Modifier.READONLY,
    "var_modifier": Modifier.PUBLIC,
}

_VISIBILITY_BITS = {
    "public": Modifier.PUBLIC,
    "protected": Modifier.PROTECTED,
    "private": Modifier.PRIVATE,
}


class PhpAstUtils:
    """Utility helpers for tree-sitter-php nodes."""

    @staticmethod
    def get_node_text(node: Node, content: bytes) -> str:
        return content[node.start_byte : node.end_byte].decode("utf-8", errors="ignore")

    @staticmethod
    def start_line(node: Node) -> int:
        return node.start_point[0] + 1

    @staticmethod
    def end_line(node: Node) -> int:
        return node.end_point[0] + 1

    @staticmethod
    def get_name(node: Node, content: bytes) -> str | None:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return None
        return PhpAstUtils.get_node_text(name_node, content)

    @staticmethod
    def extract_modifiers(node: Node, content: bytes, default_public: bool = True) -> int:
        """Modifier bits of a declaration; members without visibility are public."""
        modifiers = 0
        for child in node.children:
            if child.type == "visibility_modifier":
                keyword = PhpAstUtils.get_node_text(child, content).strip().lower()
                modifiers |= _VISIBILITY_BITS.get(keyword, 0)
            elif child.type in _MODIFIER_BITS:
                modifiers |= _MODIFIER_BITS[child.type]
        if default_public and not modifiers & VISIBILITY_MASK:
            modifiers |= Modifier.PUBLIC
        return int(modifiers)

    @staticmethod
    def get_doc_comment(node: Node, content: bytes) -> str:
        """The ``/** ... */`` comment right before a declaration, if any."""
        previous = node.prev_named_sibling
        if previous is None or previous.type != "comment":
            return ""
        text = PhpAstUtils.get_node_text(previous, content)
        return text if text.startswith("/**") else ""

    @staticmethod
    def get_parameter_names(callable_node: Node, content: bytes) -> list[str]:
        params = callable_node.child_by_field_name("parameters")
        if params is None:
            return []

        names: list[str] = []
        for param in params.named_children:
            if param.type not in (
                "simple_parameter",
                "variadic_parameter",
                "property_promotion_parameter",
            ):
                continue
            variable = PhpAstUtils.find_variable_name(param)
            if variable is not None:
                names.append(PhpAstUtils.get_node_text(variable, content).lstrip("$"))
        return names

    @staticmethod
    def find_variable_name(node: Node) -> Node | None:
        name_node = node.child_by_field_name("name")
        if name_node is not None and name_node.type == "variable_name":
            return name_node
        for child in node.named_children:
            if child.type == "variable_name":
                return child
        return None

    @staticmethod
    def find_type_node(node: Node, field: str = "type") -> Node | None:
        type_node = node.child_by_field_name(field)
        if type_node is not None:
            return type_node
        for child in node.named_children:
            if child.type in TYPE_NODE_KINDS:
                return child
        return None

    @staticmethod
    def render_type(type_node: Node | None, content: bytes, context: FileContext) -> str | None:
        """Render a native type declaration with class names fully qualified."""
        if type_node is None:
            return None
        text = PhpAstUtils.get_node_text(type_node, content).strip()
        nullable = text.startswith("?")

        members: list[str] = []
        for member in text.lstrip("?").split("|"):
            member = member.strip().strip("()")
            if not member:
                continue
            members.append(
                "&".join(PhpAstUtils.qualify_type(part, context) for part in member.split("&"))
            )
        if nullable and "null" not in members:
            members.append("null")
        return "|".join(members) or None

    @staticmethod
    def qualify_type(name: str, context: FileContext) -> str:
        name = name.strip()
        if name.lower() in BUILTIN_TYPE_NAMES:
            return name.lower()
        return context.qualify(name)

    @staticmethod
    def render_value(node: Node, content: bytes) -> str:
        """Render a constant value the way PHP's string conversion shows it."""
        text = PhpAstUtils.get_node_text(node, content).strip()
        if node.type in ("string", "encapsed_string") and len(text) >= 2 and text[0] == text[-1]:
            return text[1:-1]
        return text
