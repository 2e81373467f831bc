"""Tests for the individual IBM Cloud tool handlers."""

from __future__ import annotations

import json

import pytest

from conftest import FakeInvoker
from ibmcloud_mcp.tools.base import ToolContext
from ibmcloud_mcp.tools.builtin_tools.account import GetAccountInfoTool, GetTargetTool, ListRegionsTool
from ibmcloud_mcp.tools.builtin_tools.cf_apps import ListCfAppsTool
from ibmcloud_mcp.tools.builtin_tools.execute_command import ExecuteCommandTool
from ibmcloud_mcp.tools.builtin_tools.resources import ListResourceGroupsTool, ListResourcesTool
from ibmcloud_mcp.tools.builtin_tools.vpc import ListVpcInstancesTool, ListVpcsTool

PLUGINS = "Listing installed plug-ins...\nvpc-infrastructure[infrastructure-service/is]   13.1.0"


@pytest.fixture
def ctx(fake_invoker: FakeInvoker) -> ToolContext:
    return ToolContext(invoker=fake_invoker)


class TestSimpleQueries:
    @pytest.mark.parametrize(
        "tool, argv",
        [
            (GetTargetTool(), ["target", "--output", "json"]),
            (ListRegionsTool(), ["regions", "--output", "json"]),
            (GetAccountInfoTool(), ["account", "show", "--output", "json"]),
            (ListResourceGroupsTool(), ["resource", "groups", "--output", "json"]),
        ],
    )
    def test_returns_backend_output_verbatim(self, ctx: ToolContext, fake_invoker: FakeInvoker, tool, argv) -> None:
        fake_invoker.on(argv, '[{"name":"x"}]')
        res = tool.execute(ctx, {})
        assert res.is_error is False
        assert res.content == '[{"name":"x"}]'
        assert fake_invoker.calls == [argv]

    def test_failure_message_shape(self, ctx: ToolContext, fake_invoker: FakeInvoker) -> None:
        fake_invoker.on(["regions"], "FAILED\nsomething broke", returncode=1)
        res = ListRegionsTool().execute(ctx, {})
        assert res.is_error is True
        assert res.content == "Error listing regions: FAILED\nsomething broke"


class TestListResources:
    def test_without_region(self, ctx: ToolContext, fake_invoker: FakeInvoker) -> None:
        fake_invoker.on(["resource", "service-instances"], "[]")
        res = ListResourcesTool().execute(ctx, {"resource_type": "all"})
        assert res.content == "[]"
        assert fake_invoker.calls == [["resource", "service-instances", "--output", "json"]]

    def test_region_passed_as_discrete_argument(self, ctx: ToolContext, fake_invoker: FakeInvoker) -> None:
        fake_invoker.on(["resource", "service-instances"], "[]")
        ListResourcesTool().execute(ctx, {"region": "us-south; rm -rf /"})
        assert fake_invoker.calls == [
            ["resource", "service-instances", "--location", "us-south; rm -rf /", "--output", "json"]
        ]

    @pytest.mark.parametrize("region", [None, "", "null"])
    def test_empty_region_is_omitted(self, ctx: ToolContext, fake_invoker: FakeInvoker, region) -> None:
        fake_invoker.on(["resource"], "[]")
        ListResourcesTool().execute(ctx, {"region": region})
        assert "--location" not in fake_invoker.calls[0]

    def test_error_prefix(self, ctx: ToolContext, fake_invoker: FakeInvoker) -> None:
        fake_invoker.on(["resource"], "boom", returncode=2)
        res = ListResourcesTool().execute(ctx, {})
        assert res.is_error and res.content == "Error listing resources: boom"


class TestVpc:
    def test_plugin_missing(self, ctx: ToolContext, fake_invoker: FakeInvoker) -> None:
        fake_invoker.on(["plugin", "list"], "Listing installed plug-ins...\nNo plug-ins installed.")
        res = ListVpcsTool().execute(ctx, {})
        assert res.is_error
        assert "VPC plugin is not installed" in res.content
        assert "ibmcloud plugin install vpc-infrastructure" in res.content
        assert not fake_invoker.called("is")

    def test_retarget_then_list(self, ctx: ToolContext, fake_invoker: FakeInvoker) -> None:
        fake_invoker.on(["plugin", "list"], PLUGINS)
        fake_invoker.on(["target", "-r"], "OK")
        fake_invoker.on(["is", "instances"], '{"instances":[]}')
        res = ListVpcInstancesTool().execute(ctx, {"region": "eu-de"})
        assert res.content == '{"instances":[]}'
        assert fake_invoker.calls[1:] == [["target", "-r", "eu-de"], ["is", "instances", "--output", "json"]]

    def test_retarget_failure_does_not_abort(self, ctx: ToolContext, fake_invoker: FakeInvoker) -> None:
        fake_invoker.on(["plugin", "list"], PLUGINS)
        fake_invoker.on(["target", "-r"], "FAILED unknown region", returncode=1)
        fake_invoker.on(["is", "vpcs"], "[]")
        res = ListVpcsTool().execute(ctx, {"region": "nowhere"})
        assert res.is_error is False
        assert res.content == "[]"

    def test_list_failure(self, ctx: ToolContext, fake_invoker: FakeInvoker) -> None:
        fake_invoker.on(["plugin", "list"], PLUGINS)
        fake_invoker.on(["is", "instances"], "FAILED", returncode=1)
        res = ListVpcInstancesTool().execute(ctx, {})
        assert res.content == "Error listing VPC instances: FAILED"
        assert not fake_invoker.called("target")


class TestListCfApps:
    def test_wraps_text_output_as_json(self, ctx: ToolContext, fake_invoker: FakeInvoker) -> None:
        text = 'name   requested state\nmy-app "started"'
        fake_invoker.on(["cf", "apps"], text)
        res = ListCfAppsTool().execute(ctx, {})
        assert res.is_error is False
        assert json.loads(res.content) == {"apps": text}
        assert fake_invoker.calls == [["cf", "apps"]]

    def test_targets_org_and_space(self, ctx: ToolContext, fake_invoker: FakeInvoker) -> None:
        fake_invoker.on(["target"], "OK")
        fake_invoker.on(["cf", "apps"], "none")
        ListCfAppsTool().execute(ctx, {"org": "my-org", "space": "dev"})
        assert fake_invoker.calls[0] == ["target", "-o", "my-org", "-s", "dev"]

    def test_space_without_org_is_ignored(self, ctx: ToolContext, fake_invoker: FakeInvoker) -> None:
        fake_invoker.on(["cf", "apps"], "none")
        ListCfAppsTool().execute(ctx, {"space": "dev"})
        assert fake_invoker.calls == [["cf", "apps"]]

    def test_failure(self, ctx: ToolContext, fake_invoker: FakeInvoker) -> None:
        fake_invoker.on(["cf", "apps"], "no org targeted", returncode=1)
        res = ListCfAppsTool().execute(ctx, {})
        assert res.is_error and res.content == "Error listing CF apps: no org targeted"


class TestExecuteCommand:
    def test_missing_command(self, ctx: ToolContext, fake_invoker: FakeInvoker) -> None:
        for args in ({}, {"command": ""}, {"command": None}, {"command": "   "}):
            res = ExecuteCommandTool().execute(ctx, args)
            assert res.is_error
            assert res.content == "Error: No command provided"
        assert fake_invoker.calls == []

    def test_safe_mode_denies_write(self, ctx: ToolContext, fake_invoker: FakeInvoker) -> None:
        res = ExecuteCommandTool().execute(ctx, {"command": "resource service-instance-create x", "safe_mode": True})
        assert res.is_error
        assert "'resource service-instance-create x'" in res.content
        assert "not allowed in safe mode" in res.content
        assert fake_invoker.calls == []

    def test_safe_mode_defaults_to_on(self, ctx: ToolContext, fake_invoker: FakeInvoker) -> None:
        res = ExecuteCommandTool().execute(ctx, {"command": "iam api-key-delete k"})
        assert res.is_error and "not allowed in safe mode" in res.content

    @pytest.mark.parametrize("flag", [False, "false", "0"])
    def test_safe_mode_off_runs_anything(self, ctx: ToolContext, fake_invoker: FakeInvoker, flag) -> None:
        fake_invoker.on(["resource", "service-instance-create"], "Creating... OK")
        res = ExecuteCommandTool().execute(ctx, {"command": "resource service-instance-create x", "safe_mode": flag})
        assert res.is_error is False
        assert res.content == "Creating... OK"

    def test_arguments_are_tokenized_not_shell_expanded(self, ctx: ToolContext, fake_invoker: FakeInvoker) -> None:
        fake_invoker.on(["resource"], "ok")
        ExecuteCommandTool().execute(ctx, {"command": "resource service-instances --location 'us south' ; echo hi"})
        assert fake_invoker.calls == [["resource", "service-instances", "--location", "us south", ";", "echo", "hi"]]

    def test_leading_binary_name_dropped(self, ctx: ToolContext, fake_invoker: FakeInvoker) -> None:
        fake_invoker.on(["regions"], "ok")
        ExecuteCommandTool().execute(ctx, {"command": "ibmcloud regions"})
        assert fake_invoker.calls == [["regions"]]

    def test_unbalanced_quotes(self, ctx: ToolContext, fake_invoker: FakeInvoker) -> None:
        res = ExecuteCommandTool().execute(ctx, {"command": "target -r 'us-south"})
        assert res.is_error and res.content.startswith("Error executing command:")
        assert fake_invoker.calls == []

    def test_backend_failure(self, ctx: ToolContext, fake_invoker: FakeInvoker) -> None:
        fake_invoker.on(["plugin", "show"], "FAILED plugin not found", returncode=1)
        res = ExecuteCommandTool().execute(ctx, {"command": "plugin show nope"})
        assert res.content == "Error executing command: FAILED plugin not found"
