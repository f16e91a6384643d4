"""PHP scanner producing declaration records from tree-sitter parse trees."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from pathlib import Path

from tree_sitter import Node, Parser

from phpintel.adapters.base import FileContext
from phpintel.adapters.php.ast_utils import PhpAstUtils
from phpintel.reflection.models import (
    ClassDecl,
    ClassKind,
    ConstantDecl,
    FileDeclarations,
    FunctionDecl,
    MethodDecl,
    Modifier,
    PropertyDecl,
)
from phpintel.resolution.imports import parse_use_statement

logger = logging.getLogger(__name__)

_FUNCTION_OR_CONST_USE = re.compile(r"^use\s+(?:function|const)\b", re.IGNORECASE)

CLASS_NODE_KINDS = {
    "class_declaration": ClassKind.CLASS,
    "interface_declaration": ClassKind.INTERFACE,
    "trait_declaration": ClassKind.TRAIT,
    "enum_declaration": ClassKind.ENUM,
}

# Statements whose children never hold top-level declarations
_OPAQUE_NODE_KINDS = {
    "method_declaration",
    "anonymous_function",
    "arrow_function",
    "object_creation_expression",
    "comment",
}


class PhpScanner:
    """Scan PHP files into ``FileDeclarations``."""

    def __init__(self, parser: Parser) -> None:
        self._parser = parser

    def scan_file(self, file_path: Path) -> FileDeclarations:
        """Parse one file.

        Raises:
            OSError: If the file cannot be read.
        """
        content = file_path.read_bytes()
        tree = self._parser.parse(content)
        declarations = FileDeclarations(path=str(file_path))
        self._scan_statements(tree.root_node, content, FileContext(), declarations)
        return declarations

    def scan_directory(
        self, source_path: Path, exclude: Iterable[Path] = ()
    ) -> list[FileDeclarations]:
        """Parse every ``*.php`` file below ``source_path``."""
        excluded = [p.resolve() for p in exclude]
        results: list[FileDeclarations] = []

        php_files = sorted(source_path.rglob("*.php"))
        for php_file in php_files:
            resolved = php_file.resolve()
            if any(resolved.is_relative_to(ex) for ex in excluded):
                continue
            try:
                results.append(self.scan_file(php_file))
            except Exception as exc:
                logger.warning(f"Failed to scan {php_file}: {exc}")

        return results

    def _scan_statements(
        self,
        node: Node,
        content: bytes,
        context: FileContext,
        declarations: FileDeclarations,
    ) -> None:
        for child in node.named_children:
            if child.type == "namespace_definition":
                name_node = child.child_by_field_name("name")
                namespace = (
                    PhpAstUtils.get_node_text(name_node, content).strip("\\")
                    if name_node is not None
                    else ""
                )
                body = child.child_by_field_name("body")
                if body is not None:
                    self._scan_statements(
                        body, content, FileContext(namespace=namespace), declarations
                    )
                else:
                    context.namespace = namespace
                    context.imports = {}
                continue

            if child.type == "namespace_use_declaration":
                context.imports.update(self._scan_use(child, content))
                continue

            if child.type in CLASS_NODE_KINDS:
                decl = self._scan_class(child, content, context, declarations.path)
                if decl is not None:
                    declarations.classes.append(decl)
                continue

            if child.type == "function_definition":
                decl = self._scan_function(child, content, context, declarations.path)
                if decl is not None:
                    declarations.functions.append(decl)
                continue

            if child.type == "const_declaration":
                for constant in self._scan_constants(child, content):
                    constant.name = context.declare(constant.name)
                    constant.file_name = declarations.path
                    declarations.constants.append(constant)
                continue

            if child.type == "function_call_expression":
                constant = self._scan_define(child, content, declarations.path)
                if constant is not None:
                    declarations.constants.append(constant)
                continue

            if child.type in _OPAQUE_NODE_KINDS:
                continue

            # Conditional declarations, e.g. inside if (!function_exists(...))
            self._scan_statements(child, content, context, declarations)

    @staticmethod
    def _scan_use(node: Node, content: bytes) -> dict[str, str]:
        """Class imports of a ``use`` declaration (function/const imports are skipped)."""
        text = " ".join(PhpAstUtils.get_node_text(node, content).split())
        if _FUNCTION_OR_CONST_USE.match(text):
            return {}

        if any(c.type == "namespace_use_group" for c in node.named_children):
            statements = [parse_use_statement(text)]
        else:
            statements = [
                parse_use_statement(f"use {PhpAstUtils.get_node_text(clause, content)};")
                for clause in node.named_children
                if clause.type == "namespace_use_clause"
            ]

        imports: dict[str, str] = {}
        for statement in statements:
            if statement is not None and statement.is_class_import:
                imports.update(statement.imports)
        return imports

    def _scan_class(
        self, node: Node, content: bytes, context: FileContext, path: str
    ) -> ClassDecl | None:
        short_name = PhpAstUtils.get_name(node, content)
        if not short_name:
            return None

        kind = CLASS_NODE_KINDS[node.type]
        decl = ClassDecl(
            name=context.declare(short_name),
            kind=kind,
            modifiers=PhpAstUtils.extract_modifiers(node, content, default_public=False),
            doc_comment=PhpAstUtils.get_doc_comment(node, content),
            file_name=path,
            start_line=PhpAstUtils.start_line(node),
            end_line=PhpAstUtils.end_line(node),
        )

        for named in node.named_children:
            if named.type not in ("base_clause", "class_interface_clause"):
                continue
            names = [
                context.qualify(PhpAstUtils.get_node_text(n, content))
                for n in named.named_children
                if n.type in ("name", "qualified_name")
            ]
            if named.type == "base_clause" and kind is not ClassKind.INTERFACE:
                decl.parent = names[0] if names else None
            else:
                decl.interfaces.extend(names)

        body = node.child_by_field_name("body")
        if body is not None:
            self._scan_members(body, content, context, decl)
        return decl

    def _scan_members(
        self, body: Node, content: bytes, context: FileContext, decl: ClassDecl
    ) -> None:
        for member in body.named_children:
            if member.type == "method_declaration":
                method = self._scan_method(member, content, context)
                if method is None:
                    continue
                if decl.kind is ClassKind.INTERFACE:
                    method.modifiers |= Modifier.ABSTRACT
                decl.methods.append(method)
                if method.name.lower() == "__construct":
                    decl.properties.extend(self._scan_promoted_properties(member, content, context))

            elif member.type == "property_declaration":
                decl.properties.extend(self._scan_properties(member, content, context))

            elif member.type == "const_declaration":
                decl.constants.extend(self._scan_constants(member, content))

            elif member.type == "enum_case":
                name = PhpAstUtils.get_name(member, content)
                if name:
                    decl.constants.append(
                        ConstantDecl(
                            name=name,
                            value=f"{decl.short_name}::{name}",
                            doc_comment=PhpAstUtils.get_doc_comment(member, content),
                            start_line=PhpAstUtils.start_line(member),
                        )
                    )

            elif member.type == "use_declaration":
                decl.traits.extend(
                    context.qualify(PhpAstUtils.get_node_text(n, content))
                    for n in member.named_children
                    if n.type in ("name", "qualified_name")
                )

    def _scan_method(self, node: Node, content: bytes, context: FileContext) -> MethodDecl | None:
        name = PhpAstUtils.get_name(node, content)
        if not name:
            return None
        return MethodDecl(
            name=name,
            modifiers=PhpAstUtils.extract_modifiers(node, content),
            parameters=PhpAstUtils.get_parameter_names(node, content),
            return_type=PhpAstUtils.render_type(
                node.child_by_field_name("return_type"), content, context
            ),
            doc_comment=PhpAstUtils.get_doc_comment(node, content),
            start_line=PhpAstUtils.start_line(node),
            end_line=PhpAstUtils.end_line(node),
        )

    def _scan_properties(
        self, node: Node, content: bytes, context: FileContext
    ) -> list[PropertyDecl]:
        modifiers = PhpAstUtils.extract_modifiers(node, content)
        prop_type = PhpAstUtils.render_type(PhpAstUtils.find_type_node(node), content, context)
        doc = PhpAstUtils.get_doc_comment(node, content)

        properties: list[PropertyDecl] = []
        for element in node.named_children:
            if element.type != "property_element":
                continue
            variable = PhpAstUtils.find_variable_name(element)
            if variable is None:
                continue
            properties.append(
                PropertyDecl(
                    name=PhpAstUtils.get_node_text(variable, content).lstrip("$"),
                    modifiers=modifiers,
                    type=prop_type,
                    doc_comment=doc,
                    start_line=PhpAstUtils.start_line(element),
                )
            )
        return properties

    def _scan_promoted_properties(
        self, constructor: Node, content: bytes, context: FileContext
    ) -> list[PropertyDecl]:
        params = constructor.child_by_field_name("parameters")
        if params is None:
            return []

        properties: list[PropertyDecl] = []
        for param in params.named_children:
            if param.type != "property_promotion_parameter":
                continue
            variable = PhpAstUtils.find_variable_name(param)
            if variable is None:
                continue
            properties.append(
                PropertyDecl(
                    name=PhpAstUtils.get_node_text(variable, content).lstrip("$"),
                    modifiers=PhpAstUtils.extract_modifiers(param, content),
                    type=PhpAstUtils.render_type(
                        PhpAstUtils.find_type_node(param), content, context
                    ),
                    start_line=PhpAstUtils.start_line(param),
                )
            )
        return properties

    def _scan_constants(self, node: Node, content: bytes) -> list[ConstantDecl]:
        modifiers = PhpAstUtils.extract_modifiers(node, content)
        doc = PhpAstUtils.get_doc_comment(node, content)

        constants: list[ConstantDecl] = []
        for element in node.named_children:
            if element.type != "const_element":
                continue
            parts = element.named_children
            if len(parts) < 2:
                continue
            value = parts[-1]
            constants.append(
                ConstantDecl(
                    name=PhpAstUtils.get_node_text(parts[0], content),
                    value=PhpAstUtils.render_value(value, content),
                    is_array=value.type == "array_creation_expression",
                    modifiers=modifiers,
                    doc_comment=doc,
                    start_line=PhpAstUtils.start_line(element),
                )
            )
        return constants

    def _scan_define(self, call: Node, content: bytes, path: str) -> ConstantDecl | None:
        function = call.child_by_field_name("function")
        if function is None:
            return None
        if PhpAstUtils.get_node_text(function, content).lstrip("\\").lower() != "define":
            return None

        arguments = call.child_by_field_name("arguments")
        if arguments is None:
            return None
        values = [
            arg.named_children[-1]
            for arg in arguments.named_children
            if arg.type == "argument" and arg.named_children
        ]
        if len(values) < 2 or values[0].type not in ("string", "encapsed_string"):
            return None

        return ConstantDecl(
            name=PhpAstUtils.render_value(values[0], content).lstrip("\\"),
            value=PhpAstUtils.render_value(values[1], content),
            is_array=values[1].type == "array_creation_expression",
            file_name=path,
            start_line=PhpAstUtils.start_line(call),
        )

    def _scan_function(
        self, node: Node, content: bytes, context: FileContext, path: str
    ) -> FunctionDecl | None:
        name = PhpAstUtils.get_name(node, content)
        if not name:
            return None
        return FunctionDecl(
            name=context.declare(name),
            parameters=PhpAstUtils.get_parameter_names(node, content),
            return_type=PhpAstUtils.render_type(
                node.child_by_field_name("return_type"), content, context
            ),
            doc_comment=PhpAstUtils.get_doc_comment(node, content),
            file_name=path,
            start_line=PhpAstUtils.start_line(node),
        )
