import json
from abc import ABC, abstractmethod
from typing import List, Optional

import click

from prettynode.models import ModuleInfo, Parameter, SignatureInfo
from prettynode.settings import PrettyNodeSettings

NOT_AVAILABLE = "signature not available"


class TreeFormatter:
    """
    Render ModuleInfo trees and signatures as box-drawing text. Colors are
    applied with click.style unless the settings disable them.
    """

    def __init__(self, settings: Optional[PrettyNodeSettings] = None) -> None:
        self.settings = settings or PrettyNodeSettings(no_color=True)

    def _style(self, text: str, **styles) -> str:
        if self.settings.no_color:
            return text
        return click.style(text, **styles)

    def format_tree(self, module: ModuleInfo) -> str:
        lines: List[str] = []
        self._format_module(module, lines, prefix="", is_last=True, is_root=True)
        return "".join(lines)

    def _format_module(
        self,
        module: ModuleInfo,
        lines: List[str],
        prefix: str,
        is_last: bool,
        is_root: bool = False,
    ) -> None:
        connector = "" if is_root else ("└── " if is_last else "├── ")
        icon = self._style(self.settings.icon("module"), fg="bright_yellow")
        name = self._style(module.name, fg="bright_blue")
        version = f"@{self._style(module.version, dim=True)}" if module.version else ""
        lines.append(f"{prefix}{connector}{icon} {name}{version}\n")

        if is_root:
            child_prefix = ""
        else:
            child_prefix = prefix + ("    " if is_last else "│   ")

        sections = (
            ("exports", "__all__", module.exports, "bright_magenta", "cyan"),
            (
                "function",
                "functions",
                [f.name for f in module.functions],
                "bright_green",
                "green",
            ),
            ("class", "classes", [c.name for c in module.classes], "bright_blue", "blue"),
            ("type", "types", [t.name for t in module.types], None, "magenta"),
            (
                "constant",
                "constants",
                [c.name for c in module.constants],
                "bright_red",
                "red",
            ),
        )
        for kind, label, names, icon_color, text_color in sections:
            if not names:
                continue
            icon = self.settings.icon(kind)
            if icon_color:
                icon = self._style(icon, fg=icon_color)
            text = self._style(", ".join(names), fg=text_color)
            lines.append(f"{child_prefix}├── {icon} {label}: {text}\n")

        count = len(module.submodules)
        for i, submodule in enumerate(module.submodules.values()):
            self._format_module(submodule, lines, child_prefix, i == count - 1)

    def format_signature(self, signature: SignatureInfo) -> str:
        icon = self._style(self.settings.icon("signature"), fg="bright_cyan")
        name = self._style(signature.name, fg="bright_blue")
        lines = [f"{icon} {name}\n"]

        if signature.parameters:
            lines.append("├── Parameters:\n")
            count = len(signature.parameters)
            for i, param in enumerate(signature.parameters):
                last = i == count - 1 and signature.return_type is None
                connector = "└── " if last else "├── "
                lines.append(f"{connector}{self.format_parameter(param)}\n")

        if signature.return_type is not None:
            return_type = self._style(signature.return_type, fg="green")
            lines.append(f"└── Returns: {return_type}\n")
        return "".join(lines)

    def format_parameter(self, param: Parameter) -> str:
        text = "..." if param.is_rest else ""
        text += self._style(param.name, fg="bright_white")
        if param.is_optional:
            text += "?"
        if param.param_type is not None:
            text += f": {self._style(param.param_type, fg='bright_yellow')}"
        if param.default_value is not None:
            text += f" = {self._style(param.default_value, dim=True)}"
        return text


class OutputFormatter(ABC):
    @abstractmethod
    def format_tree(self, tree: ModuleInfo) -> str: ...

    @abstractmethod
    def format_signature(self, signature: SignatureInfo) -> str: ...

    @abstractmethod
    def format_signature_not_available(self, object_name: str) -> str: ...


class PrettyFormatter(OutputFormatter):
    def __init__(self, settings: Optional[PrettyNodeSettings] = None) -> None:
        self.tree_formatter = TreeFormatter(settings)

    def format_tree(self, tree: ModuleInfo) -> str:
        return self.tree_formatter.format_tree(tree)

    def format_signature(self, signature: SignatureInfo) -> str:
        return self.tree_formatter.format_signature(signature)

    def format_signature_not_available(self, object_name: str) -> str:
        icon = self.tree_formatter.settings.icon("signature")
        return f"{icon} {object_name}\n{NOT_AVAILABLE}"


class JsonFormatter(OutputFormatter):
    """Machine-readable output using the models' JSON field names."""

    def format_tree(self, tree: ModuleInfo) -> str:
        return tree.model_dump_json(indent=2)

    def format_signature(self, signature: SignatureInfo) -> str:
        return signature.model_dump_json(indent=2)

    def format_signature_not_available(self, object_name: str) -> str:
        fallback = {
            "name": object_name,
            "kind": "Function",
            "parameters": [],
            "return_type": None,
            "doc_comment": NOT_AVAILABLE,
        }
        return json.dumps(fallback, indent=2, ensure_ascii=False)


def create_formatter(
    output_format: str, settings: Optional[PrettyNodeSettings] = None
) -> OutputFormatter:
    if output_format.lower() == "json":
        return JsonFormatter()
    return PrettyFormatter(settings)
