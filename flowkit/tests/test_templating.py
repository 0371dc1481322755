from flowkit.templating import build_template_values, render_prompt


def test_substitutes_all_occurrences():
    assert render_prompt("{{a}} and {{a}}", {"a": "x"}) == "x and x"


def test_unknown_placeholders_are_left_alone():
    assert render_prompt("{{missing}} {{a}}", {"a": "x"}) == "{{missing}} x"


def test_substituted_text_is_not_expanded_again():
    values = {"language": "{{previous_output}}", "previous_output": "PREV"}
    assert render_prompt("{{language}}|{{previous_output}}", values) == "{{previous_output}}|PREV"


def test_all_three_fixed_placeholders():
    values = build_template_values()
    values["previous_output"] = "earlier"
    rendered = render_prompt(
        "Write {{test_framework}} tests in {{language}} for: {{previous_output}}", values
    )
    assert rendered == "Write jest tests in javascript for: earlier"


def test_extra_brace_before_placeholder():
    assert render_prompt("{{{a}}", {"a": "x"}) == "{x"


def test_none_template_renders_empty():
    assert render_prompt(None, {"a": "x"}) == ""


def test_variables_override_defaults_but_not_reserved_names():
    values = build_template_values(
        {"language": "python", "previous_output": "hijack", "context": "hijack", "audience": "devs"}
    )
    assert values["language"] == "python"
    assert values["test_framework"] == "jest"
    assert values["audience"] == "devs"
    assert "previous_output" not in values
    assert "context" not in values


def test_explicit_arguments_win_over_variables():
    values = build_template_values({"language": "python"}, language="go", test_framework="testing")
    assert values["language"] == "go"
    assert values["test_framework"] == "testing"
