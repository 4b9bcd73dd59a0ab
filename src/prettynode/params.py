import re
from typing import Iterator, List, Optional, Tuple

from prettynode.models import Parameter
from prettynode.logger import logger

_OPEN = "([{"
_CLOSE = ")]}"
_QUOTES = "'\"`"
_IDENT_RE = re.compile(r"^[A-Za-z_$][\w$]*$")
_MODIFIERS = ("public", "private", "protected", "readonly", "override")


def _top_level(text: str) -> Iterator[Tuple[int, str]]:
    """
    Yield ``(index, char)`` for every character of *text* that sits outside
    brackets, generic angle brackets and string literals.

    Bracket depth counts ``([{``, angle depth counts ``<``/``>`` (the ``>`` of an
    arrow ``=>`` is not a closer). A quote toggles string state unless escaped
    with a backslash.
    """
    depth = 0
    angle_depth = 0
    quote: Optional[str] = None
    prev = ""
    for i, ch in enumerate(text):
        if ch in _QUOTES and prev != "\\":
            if quote is None:
                quote = ch
            elif ch == quote:
                quote = None
            prev = ch
            continue
        if quote is None:
            if ch in _OPEN:
                depth += 1
            elif ch in _CLOSE:
                depth = max(depth - 1, 0)
            elif ch == "<":
                angle_depth += 1
            elif ch == ">" and prev != "=":
                angle_depth = max(angle_depth - 1, 0)
            elif depth == 0 and angle_depth == 0:
                yield i, ch
        prev = ch


def split_top_level(text: str, sep: str = ",") -> List[str]:
    """Split *text* on top-level *sep* characters, dropping empty segments."""
    result: List[str] = []
    start = 0
    for i, ch in _top_level(text):
        if ch == sep:
            segment = text[start:i].strip()
            if segment:
                result.append(segment)
            start = i + 1
    segment = text[start:].strip()
    if segment:
        result.append(segment)
    return result


def find_matching_paren(text: str, open_index: int) -> Optional[int]:
    """Index of the ``)`` closing the ``(`` at *open_index*, or None."""
    depth = 0
    quote: Optional[str] = None
    prev = ""
    for i in range(open_index, len(text)):
        ch = text[i]
        if ch in _QUOTES and prev != "\\":
            if quote is None:
                quote = ch
            elif ch == quote:
                quote = None
        elif quote is None:
            if ch in _OPEN:
                depth += 1
            elif ch in _CLOSE:
                depth -= 1
                if depth == 0:
                    return i
        prev = ch
    return None


class ParameterParser:
    """
    Parse raw parameter-list text (the part between a function's parentheses)
    into Parameter records, respecting nested brackets, generics and quotes.
    """

    def split_parameters(self, params: str) -> List[str]:
        result = split_top_level(params)
        logger.debug("Split parameters", raw=params, result=result)
        return result

    def parse_parameter(self, param_str: str) -> Parameter:
        text = self._strip_modifiers(param_str.strip())

        # Rest parameters never carry defaults and are never optional.
        if text.startswith("..."):
            name, param_type = self._extract_name_and_type(text[3:])
            return self._build(name.rstrip("?").rstrip(), param_type, is_rest=True)

        eq_pos = self._find_assignment_operator(text)
        if eq_pos is not None:
            name, param_type = self._extract_name_and_type(text[:eq_pos].strip())
            return self._build(
                name.rstrip("?").rstrip(),
                param_type,
                is_optional=True,
                default_value=text[eq_pos + 1 :].strip(),
            )

        is_optional = False
        if text.endswith("?"):
            text = text[:-1].rstrip()
            is_optional = True
        name, param_type = self._extract_name_and_type(text)
        if name.endswith("?"):
            name = name[:-1].rstrip()
            is_optional = True
        return self._build(name, param_type, is_optional=is_optional)

    def parse_parameters(self, params: str) -> List[Parameter]:
        return [self.parse_parameter(p) for p in self.split_parameters(params)]

    def parse_parameters_from_signature(self, signature: str) -> List[Parameter]:
        start = signature.find("(")
        if start < 0:
            return []
        end = find_matching_paren(signature, start)
        if end is None:
            end = len(signature)
        return self.parse_parameters(signature[start + 1 : end])

    # --- helpers ----------------------------------------------------
    def _build(
        self,
        name: str,
        param_type: Optional[str],
        *,
        is_optional: bool = False,
        is_rest: bool = False,
        default_value: Optional[str] = None,
    ) -> Parameter:
        if not (_IDENT_RE.match(name) or name == "this"):
            # Destructuring and other patterns have no single name.
            logger.debug("Unparsable parameter pattern", pattern=name)
            name, param_type = "unknown", None
        return Parameter(
            name=name,
            param_type=param_type,
            is_optional=is_optional or default_value is not None,
            is_rest=is_rest,
            default_value=None if is_rest else default_value,
        )

    def _strip_modifiers(self, text: str) -> str:
        # Constructor parameter properties: `private readonly name: string`
        while True:
            head, _, rest = text.partition(" ")
            if head in _MODIFIERS and rest:
                text = rest.lstrip()
                continue
            return text

    def _extract_name_and_type(self, param_str: str) -> Tuple[str, Optional[str]]:
        colon = self._find_type_separator(param_str)
        if colon is None:
            return param_str.strip(), None
        type_part = param_str[colon + 1 :].strip()
        return param_str[:colon].strip(), type_part or None

    def _find_type_separator(self, param_str: str) -> Optional[int]:
        for i, ch in _top_level(param_str):
            if ch == ":":
                return i
        return None

    def _find_assignment_operator(self, param_str: str) -> Optional[int]:
        for i, ch in _top_level(param_str):
            if ch != "=":
                continue
            nxt = param_str[i + 1 : i + 2]
            prev = param_str[i - 1 : i] if i > 0 else ""
            # Skip ==, ===, => and comparison operators.
            if nxt in ("=", ">") or prev in ("=", "!", "<", ">"):
                continue
            return i
        return None
