"""Prompt template rendering."""

from typing import Mapping, Optional

DEFAULT_LANGUAGE = "javascript"
DEFAULT_TEST_FRAMEWORK = "jest"

PREVIOUS_OUTPUT = "previous_output"
CONTEXT = "context"
RESERVED_PLACEHOLDERS = frozenset({PREVIOUS_OUTPUT, CONTEXT})


def placeholder(name: str) -> str:
    return "{{" + name + "}}"


def render_prompt(template: Optional[str], values: Mapping[str, str]) -> str:
    """Replace every {{name}} occurrence with its value.

    Substitution is literal and single-pass: text inserted for one placeholder
    is never expanded again, so distinct placeholders do not interact.
    """
    text = template or ""
    if not values:
        return text

    out = []
    pos = 0
    while True:
        start = text.find("{{", pos)
        if start < 0:
            break
        end = text.find("}}", start + 2)
        if end < 0:
            break
        name = text[start + 2 : end]
        if name in values:
            out.append(text[pos:start])
            out.append(str(values[name]))
            pos = end + 2
        else:
            out.append(text[pos : start + 1])
            pos = start + 1
    out.append(text[pos:])
    return "".join(out)


def build_template_values(
    variables: Optional[Mapping[str, str]] = None,
    language: Optional[str] = None,
    test_framework: Optional[str] = None,
) -> dict:
    """Collect the per-run placeholder values, excluding previous_output.

    Explicit language/test_framework arguments win over same-named variables,
    which win over the defaults. Reserved names in variables are ignored.
    """
    values = {
        "language": DEFAULT_LANGUAGE,
        "test_framework": DEFAULT_TEST_FRAMEWORK,
    }
    for key, value in (variables or {}).items():
        if key in RESERVED_PLACEHOLDERS or value is None:
            continue
        values[key] = str(value)
    if language is not None:
        values["language"] = language
    if test_framework is not None:
        values["test_framework"] = test_framework
    return values
