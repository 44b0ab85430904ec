"""
Subset of kubectl's JSONPath templates, evaluated against already-fetched objects.

Supported: ``{.a.b}``, escaped dots (``{.metadata.annotations.haproxy\\.router\\.openshift\\.io/timeout}``),
``['quoted key']``, ``[0]``, ``[-1]``, ``[1:3]``, ``[*]`` and filters such as
``[?(@.type=="Available")]`` / ``[?(@.status!="False")]`` / ``[?(@.name)]``.
Literal text between expressions is kept, like ``-o jsonpath='{.a}:{.b}'``.
Missing fields render as empty strings, matching kubectl's default.
"""
import json
import re

from .errors import JsonPathError

_FILTER = re.compile(r'^@((?:\.[^=!<>\s]+)+)\s*(?:(==|!=)\s*(.+))?$')


class JsonPath:
    def __init__(self, template):
        self.template = template
        self.parts = self._split(template if "{" in template else "{" + template + "}")

    def render(self, obj):
        output = []
        for kind, value in self.parts:
            if kind == "text":
                output.append(value)
            else:
                output.append(" ".join(self._format(v) for v in self._evaluate(value, obj)))
        return "".join(output)

    def find(self, obj):
        """Return the raw list of values matched by every expression in the template."""
        values = []
        for kind, segments in self.parts:
            if kind == "expr":
                values.extend(self._evaluate(segments, obj))
        return values

    @staticmethod
    def _split(template):
        parts = []
        i = 0
        while i < len(template):
            start = template.find("{", i)
            if start == -1:
                parts.append(("text", template[i:]))
                break
            if start > i:
                parts.append(("text", template[i:start]))
            end = JsonPath._closing(template, start, "{", "}")
            expr = template[start + 1:end].strip()
            if expr.startswith("range") or expr == "end":
                raise JsonPathError(f"Unsupported jsonpath construct '{expr}' in {template}")
            parts.append(("expr", JsonPath._parse(expr)))
            i = end + 1
        return parts

    @staticmethod
    def _closing(text, start, opening, closing):
        depth = 0
        quote = None
        for i in range(start, len(text)):
            c = text[i]
            if quote:
                if c == quote:
                    quote = None
            elif c in "\"'":
                quote = c
            elif c == opening:
                depth += 1
            elif c == closing:
                depth -= 1
                if depth == 0:
                    return i
        raise JsonPathError(f"Unbalanced '{opening}' in jsonpath '{text}'")

    @staticmethod
    def _parse(expr):
        if expr in ("", "."):
            return []
        if expr[0] not in ".[":
            raise JsonPathError(f"Jsonpath expression must start with '.' or '[': '{expr}'")

        segments = []
        i = 0
        while i < len(expr):
            c = expr[i]
            if c == ".":
                i += 1
                buf = []
                while i < len(expr) and expr[i] not in ".[":
                    if expr[i] == "\\" and i + 1 < len(expr):
                        buf.append(expr[i + 1])
                        i += 2
                        continue
                    buf.append(expr[i])
                    i += 1
                if buf:
                    segments.append(("key", "".join(buf)))
            elif c == "[":
                end = JsonPath._closing(expr, i, "[", "]")
                segments.append(JsonPath._bracket(expr[i + 1:end].strip(), expr))
                i = end + 1
            else:
                raise JsonPathError(f"Unexpected character '{c}' in jsonpath '{expr}'")
        return segments

    @staticmethod
    def _bracket(inner, expr):
        if inner == "*":
            return ("all", None)
        if inner.startswith("?(") and inner.endswith(")"):
            match = _FILTER.match(inner[2:-1].strip())
            if not match:
                raise JsonPathError(f"Unsupported filter '{inner}' in jsonpath '{expr}'")
            field_path, operator, literal = match.groups()
            value = JsonPath._literal(literal) if literal is not None else None
            return ("filter", (JsonPath._parse(field_path), operator, value))
        if len(inner) >= 2 and inner[0] == inner[-1] and inner[0] in "\"'":
            return ("key", inner[1:-1])
        try:
            if ":" in inner:
                start, _, stop = inner.partition(":")
                return ("slice", (int(start) if start else None, int(stop) if stop else None))
            return ("index", int(inner))
        except ValueError:
            raise JsonPathError(f"Invalid subscript '[{inner}]' in jsonpath '{expr}'")

    @staticmethod
    def _literal(text):
        text = text.strip()
        if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'":
            return text[1:-1]
        if text in ("true", "false"):
            return text == "true"
        try:
            return int(text)
        except ValueError:
            pass
        try:
            return float(text)
        except ValueError:
            return text

    @staticmethod
    def _evaluate(segments, obj):
        values = [obj]
        for kind, arg in segments:
            selected = []
            for value in values:
                if kind == "key":
                    if isinstance(value, dict) and arg in value:
                        selected.append(value[arg])
                elif kind == "index":
                    if isinstance(value, list) and -len(value) <= arg < len(value):
                        selected.append(value[arg])
                elif kind == "slice":
                    if isinstance(value, list):
                        selected.extend(value[arg[0]:arg[1]])
                elif kind == "all":
                    if isinstance(value, list):
                        selected.extend(value)
                    elif isinstance(value, dict):
                        selected.extend(value.values())
                elif kind == "filter":
                    if isinstance(value, list):
                        selected.extend(item for item in value if JsonPath._keep(item, *arg))
            values = selected
        return values

    @staticmethod
    def _keep(item, field_path, operator, expected):
        found = JsonPath._evaluate(field_path, item)
        if operator is None:
            return len(found) > 0
        if not found:
            return operator == "!="
        actual = found[0]
        if isinstance(expected, str) and not isinstance(actual, str):
            actual = JsonPath._format(actual)
        return (actual == expected) if operator == "==" else (actual != expected)

    @staticmethod
    def _format(value):
        if value is None:
            return ""
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (dict, list)):
            return json.dumps(value, separators=(",", ":"), sort_keys=True)
        return str(value)
