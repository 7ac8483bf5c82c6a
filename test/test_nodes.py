from unittest import mock

import pytest

from orioncp.exceptions import QueryFailure
from orioncp.nodes import NodeRecord, build_node_query, fetch_nodes, split_octets


# ----------------------------------------------------------------------------
# 1. OCTETS: IPv4 addresses are split, anything else gives blank octets
# ----------------------------------------------------------------------------
class TestSplitOctets:

    def test_ipv4(self):
        assert split_octets("10.58.1.254") == ("10", "58", "1", "254"), "❌ split_octets: IPv4 split failed"
        assert split_octets(" 10.58.1.254 ") == ("10", "58", "1", "254"), "❌ split_octets: Whitespace not ignored"

    def test_not_ipv4(self):
        err_msg = "❌ split_octets: Non IPv4 input should give blank octets"
        for value in [None, "", "fe80::1", "10.58.1", "host.example.com"]:
            assert split_octets(value) == ("", "", "", ""), err_msg


# ----------------------------------------------------------------------------
# 2. NODE_RECORD: Built from a SWIS row, custom properties kept apart
# ----------------------------------------------------------------------------
class TestNodeRecord:

    def test_from_row(self):
        err_msg = "❌ NodeRecord.from_row: Known attributes or custom properties not mapped"
        row = {"Uri": "swis://orion/Orion/Orion.Nodes/NodeID=7", "Caption": "SW-Core01", "Vendor": "Cisco",
               "MachineType": "Cisco Nexus 9000", "IPAddress": "10.58.0.1", "Environment": "Magic",
               "Device_Type": None, "Device_Function": "", "Site": "Deck 4"}
        node = NodeRecord.from_row(row)
        assert (node.uri, node.caption, node.vendor, node.machine_type) == (
            row["Uri"], "SW-Core01", "Cisco", "Cisco Nexus 9000"), err_msg
        assert (node.octet1, node.octet2, node.octet3, node.octet4) == ("10", "58", "0", "1"), err_msg
        assert node.environment == "Magic" and node.device_type is None and node.device_function == "", err_msg
        assert node.custom_properties == {"Environment": "Magic", "Device_Type": None, "Device_Function": "",
                                          "Site": "Deck 4"}, err_msg

    def test_missing_classification_fields(self):
        node = NodeRecord("uri", "SW-01")
        assert node.environment is None, "❌ NodeRecord: Missing custom property should read as None"


# ----------------------------------------------------------------------------
# 3. FETCH: SWQL built from the discovered fields
# ----------------------------------------------------------------------------
class TestFetchNodes:

    def test_build_node_query(self):
        err_msg = "❌ build_node_query: SWQL query not built as expected"
        desired_result = (
            "SELECT N.Uri, N.Caption, N.Vendor, N.MachineType, N.IPAddress, "
            "N.CustomProperties.Environment AS Environment, N.CustomProperties.Site AS Site "
            "FROM Orion.Nodes N ORDER BY N.Caption"
        )
        assert build_node_query(["Environment", "Site", "Caption"]) == desired_result, err_msg

    def test_fetch_nodes(self):
        err_msg = "❌ fetch_nodes: Nodes not returned from the query rows"
        sw = mock.Mock(server="orion01")
        sw.list_custom_property_fields.return_value = ["Environment", "Device_Type", "Device_Function"]
        sw.query.return_value = [{"Uri": "u1", "Caption": "A", "IPAddress": "10.56.0.1"},
                                 {"Uri": "u2", "Caption": "B", "IPAddress": "10.58.0.1"}]
        nodes = fetch_nodes(sw)
        assert [node.caption for node in nodes] == ["A", "B"], err_msg
        assert "N.CustomProperties.Device_Function AS Device_Function" in sw.query.call_args[0][0], err_msg

    def test_missing_classification_field(self):
        sw = mock.Mock(server="orion01")
        sw.list_custom_property_fields.return_value = ["Environment"]
        with pytest.raises(QueryFailure) as error:
            fetch_nodes(sw)
        assert "Device_Type, Device_Function" in str(error.value)
        sw.query.assert_not_called()
