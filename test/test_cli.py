import io
from unittest import mock

import pytest
from rich.console import Console

from orioncp import cli
from orioncp.cli import CustomPropertyCli, create_parser
from orioncp.exceptions import ConnectionFailure, WriteFailure
from orioncp.nodes import NodeRecord
from orioncp.remediation import ApplyResult, ServerReport, UpdatePatch


# ----------------------------------------------------------------------------
# FIXTURES: CLI writing to a string buffer, SolarWinds and remediate mocked
# ----------------------------------------------------------------------------
@pytest.fixture
def output():
    return io.StringIO()


@pytest.fixture
def runner(output):
    return CustomPropertyCli(console=Console(file=output, width=200))


def parse(*argv):
    return create_parser().parse_args(["-s", "orion01", "-u", "admin", "-p", "secret"] + list(argv))


# ----------------------------------------------------------------------------
# 1. FLAGS: Settings resolution
# ----------------------------------------------------------------------------
class TestResolveSettings:

    def test_flags(self, runner):
        err_msg = "❌ resolve_settings: Runtime flags not used"
        opts = runner.resolve_settings(parse("list"))
        assert opts["servers"] == ["orion01"] and opts["user"] == "admin", err_msg
        assert opts["ssl_verify"] is False, err_msg

    def test_server_file(self, runner, tmp_path):
        server_file = tmp_path / "servers.txt"
        server_file.write_text("orion-dream\norion-magic\n")
        args = create_parser().parse_args(["-f", str(server_file), "-u", "admin", "list"])
        assert runner.resolve_settings(args)["servers"] == ["orion-dream", "orion-magic"]

    def test_missing_user(self, runner, output):
        args = create_parser().parse_args(["-s", "orion01", "-p", "secret", "list"])
        assert runner.run(args) == 1
        assert "No username given" in output.getvalue()


# ----------------------------------------------------------------------------
# 2. COMMANDS: Administration commands run against each server
# ----------------------------------------------------------------------------
class TestCommands:

    @pytest.fixture
    def sw(self):
        with mock.patch.object(cli, "SolarWinds") as sw_class:
            yield sw_class

    def test_set(self, runner, sw, output):
        sw.connect.return_value.set_node_custom_property.return_value = True
        assert runner.run(parse("set", "SW-01", "Environment", "Dream")) == 0
        sw.connect.return_value.set_node_custom_property.assert_called_once_with("SW-01", "Environment", "Dream")
        assert "set Environment = 'Dream' on SW-01" in output.getvalue()

    def test_add_failure(self, runner, sw, output):
        sw.connect.return_value.add_node_custom_property.return_value = False
        assert runner.run(parse("add", "Environment", "--values", "Dream", "Magic")) == 1
        sw.connect.return_value.add_node_custom_property.assert_called_once_with(
            "Environment", "", "string", 100, ["Dream", "Magic"])
        assert "Failed" in output.getvalue()

    def test_connection_failure_continues(self, runner, sw, output):
        err_msg = "❌ run: Connection failure on one server should not stop the next"
        good = mock.Mock()
        good.get_list_of_values_for_custom_property.return_value = ["Dream"]
        sw.connect.side_effect = [ConnectionFailure("orion01", "refused"), good]
        args = create_parser().parse_args(["-s", "orion01", "-s", "orion02", "-u", "admin", "-p", "x",
                                           "values", "Environment"])
        assert runner.run(args) == 1, err_msg
        assert "ConnectionFailure" in output.getvalue(), err_msg
        assert "-Dream" in output.getvalue(), err_msg

    def test_get_unknown_node(self, runner, sw, output):
        sw.connect.return_value.get_node_custom_properties.return_value = {}
        assert runner.run(parse("get", "nope")) == 1
        assert "Node nope not found" in output.getvalue()

    def test_nodes_missing(self, runner, sw, output):
        sw.connect.return_value.get_list_of_nodes_missing_custom_property.return_value = ["SW-01", "SW-02"]
        assert runner.run(parse("nodes", "Device_Type", "--missing")) == 0
        assert "2 nodes matched" in output.getvalue()

    def test_nodes_requires_value(self):
        err_msg = "❌ parse_args: nodes without a VALUE or --missing should be rejected"
        with pytest.raises(SystemExit) as error:
            cli.parse_args(["-s", "orion01", "-u", "admin", "nodes", "Environment"])
        assert error.value.code == 2, err_msg
        args = cli.parse_args(["-s", "orion01", "-u", "admin", "nodes", "Environment", "--missing"])
        assert args.missing is True and args.value is None, err_msg

    def test_modify_keeps_current_definition(self, runner, sw):
        err_msg = "❌ cmd_modify: Current description and size should be kept when not given"
        swc = sw.connect.return_value
        swc.get_custom_property_definitions.return_value = [
            {"Field": "Device_Type", "DataType": "nvarchar", "MaxLength": 100, "Description": ""},
            {"Field": "Environment", "DataType": "nvarchar", "MaxLength": 400, "Description": "Ship environment"},
        ]
        swc.modify_node_custom_property.return_value = True
        assert runner.run(parse("modify", "Environment", "--values", "Dream", "Magic")) == 0, err_msg
        swc.modify_node_custom_property.assert_called_once_with(
            "Environment", "Ship environment", 400, ["Dream", "Magic"])

    def test_modify_explicit_flags(self, runner, sw):
        swc = sw.connect.return_value
        swc.modify_node_custom_property.return_value = True
        assert runner.run(parse("modify", "Environment", "-d", "Ship", "--size", "50", "--values", "Dream")) == 0
        swc.get_custom_property_definitions.assert_not_called()
        swc.modify_node_custom_property.assert_called_once_with("Environment", "Ship", 50, ["Dream"])

    def test_modify_unknown_property(self, runner, sw, output):
        swc = sw.connect.return_value
        swc.get_custom_property_definitions.return_value = []
        assert runner.run(parse("modify", "Nope", "--values", "Dream")) == 1
        swc.modify_node_custom_property.assert_not_called()
        assert "Custom property Nope not found" in output.getvalue()


# ----------------------------------------------------------------------------
# 3. REMEDIATE: Per node decisions and summary
# ----------------------------------------------------------------------------
class TestRemediate:

    def make_report(self, result=None):
        node = NodeRecord("u1", "SW-Core01", machine_type="Cisco Nexus 9000", ip_address="10.58.0.1",
                          custom_properties={"Environment": "", "Device_Type": "", "Device_Function": ""})
        report = ServerReport("orion01")
        report.nodes = [node, NodeRecord("u2", "SW-02")]
        report.patches = [UpdatePatch("u1", "SW-Core01", {"Environment": "Magic",
                                                          "Device_Type": "Data Center Switch"})]
        report.result = result
        return report

    def test_dry_run(self, runner, output):
        with mock.patch.object(cli, "remediate", return_value=[self.make_report()]) as remediate:
            assert runner.run(parse("remediate")) == 0
        assert remediate.call_args[1]["apply"] is False
        text = output.getvalue()
        assert "-Node: SW-Core01" in text and "Environment: '' -> 'Magic'" in text
        assert "1 of 2 nodes changed, 1 unchanged" in text
        assert "Dry run" in text

    def test_verbose_lists_unchanged_nodes(self, runner, output):
        err_msg = "❌ print_remediation: Unchanged nodes should be listed with --verbose"
        with mock.patch.object(cli, "remediate", return_value=[self.make_report()]):
            assert runner.run(parse("-v", "remediate")) == 0
        assert "-Node: SW-02   unchanged" in output.getvalue(), err_msg

    def test_apply_with_failure(self, runner, output):
        result = ApplyResult()
        result.failures.append((self.make_report().patches[0], WriteFailure("u1", "denied")))
        with mock.patch.object(cli, "remediate", return_value=[self.make_report(result)]):
            assert runner.run(parse("remediate", "--apply")) == 1
        text = output.getvalue()
        assert "WriteFailure" in text and "Applied: 0   Failed: 1" in text
