import pytest

from config.manager import EnvironmentManager
from server import handlers


class FakeTool:
    name = "fake"
    description = "A fake tool"
    input_schema = {"type": "object", "properties": {}}

    def __init__(self):
        self.received = []

    async def execute_tool(self, arguments):
        self.received.append(arguments)
        if arguments.get("boom"):
            raise ValueError("tool blew up")
        return {"result": {"echo": arguments}}


class FakeRegistry:
    def __init__(self, *tools):
        self._tools = {tool.name: tool for tool in tools}

    def get_tool_instance(self, name):
        return self._tools.get(name)

    def get_all_instances(self):
        return list(self._tools.values())


@pytest.fixture
def flow_environment(monkeypatch, write_flow_file):
    path = write_flow_file(
        {"flows": [{"name": "test-flow", "steps": [{"prompt": "Analyze this: {{language}}"}]}]}
    )
    monkeypatch.setenv("FLOW_FILE_PATH", str(path))
    EnvironmentManager._instance = None
    yield path
    EnvironmentManager._instance = None


def test_list_tools_advertises_flowkit():
    tools = handlers.list_tools()["tools"]
    flowkit = next(tool for tool in tools if tool["name"] == "flowkit")
    assert flowkit["inputSchema"]["required"] == ["flow_name", "target_model"]
    assert flowkit["description"]


def test_list_tools_with_custom_registry():
    assert handlers.list_tools(FakeRegistry(FakeTool())) == {
        "tools": [
            {
                "name": "fake",
                "description": "A fake tool",
                "inputSchema": {"type": "object", "properties": {}},
            }
        ]
    }


@pytest.mark.asyncio
@pytest.mark.parametrize("request_body", [None, {}, {"tool": ""}, {"tool": "unknown"}, "flowkit"])
async def test_unsupported_tool(request_body):
    assert await handlers.call_tool(request_body) == {"error": "unsupported tool"}


@pytest.mark.asyncio
async def test_call_delegates_input():
    tool = FakeTool()
    envelope = await handlers.call_tool({"tool": "fake", "input": {"x": "1"}}, FakeRegistry(tool))

    assert envelope == {"result": {"echo": {"x": "1"}}}
    assert tool.received == [{"x": "1"}]


@pytest.mark.asyncio
async def test_missing_input_defaults_to_empty():
    tool = FakeTool()
    await handlers.call_tool({"tool": "fake"}, FakeRegistry(tool))
    assert tool.received == [{}]


@pytest.mark.asyncio
async def test_tool_exception_becomes_error():
    envelope = await handlers.call_tool(
        {"tool": "fake", "input": {"boom": True}}, FakeRegistry(FakeTool())
    )
    assert envelope == {"error": "tool blew up"}


@pytest.mark.asyncio
async def test_flowkit_call_end_to_end(flow_environment):
    envelope = await handlers.call_tool(
        {"tool": "flowkit", "input": {"flow_name": "test-flow", "target_model": "dummy"}}
    )

    result = envelope["result"]
    assert result["success"] is True
    assert len(result["steps_executed"]) == 1
    assert "Analyze this: javascript" in result["final_output"]


@pytest.mark.asyncio
async def test_flowkit_call_unknown_flow(flow_environment):
    envelope = await handlers.call_tool(
        {"tool": "flowkit", "input": {"flow_name": "non-existent-flow", "target_model": "dummy"}}
    )

    assert "non-existent-flow" in envelope["error"]
