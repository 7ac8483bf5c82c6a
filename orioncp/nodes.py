# -*- coding: utf-8 -*-
"""Node records and the Orion node fetcher used by the classification remediation job."""

import ipaddress
import logging

from orioncp.classification import CLASSIFICATION_FIELDS, DEVICE_FUNCTION, DEVICE_TYPE, ENVIRONMENT
from orioncp.exceptions import QueryFailure

logger = logging.getLogger(__name__)

# Static Orion.Nodes attributes selected for every node.
NODE_FIELDS = ('Uri', 'Caption', 'Vendor', 'MachineType', 'IPAddress')


def split_octets(ip_address):
    """ Splits an IPv4 address into four octet strings.  Anything that is not IPv4 gives four blank strings. """

    try:
        address = ipaddress.IPv4Address((ip_address or '').strip())
    except ValueError:
        return ('', '', '', '')
    return tuple(str(address).split('.'))


class NodeRecord:
    """ One Orion node as seen by the classifier.

        The known attributes are plain attributes.  Every custom property returned by the node query, including the
        three classification fields, is also kept in `custom_properties` keyed by its field name.
    """

    def __init__(self, uri, caption, vendor='', machine_type='', ip_address='', custom_properties=None):
        self.uri = uri
        self.caption = caption
        self.vendor = vendor
        self.machine_type = machine_type
        self.ip_address = ip_address
        self.octet1, self.octet2, self.octet3, self.octet4 = split_octets(ip_address)
        self.custom_properties = dict(custom_properties or {})

    @classmethod
    def from_row(cls, row):
        custom_properties = {key: value for key, value in row.items() if key not in NODE_FIELDS}
        return cls(row.get('Uri'), row.get('Caption'), vendor=row.get('Vendor'),
                   machine_type=row.get('MachineType'), ip_address=row.get('IPAddress'),
                   custom_properties=custom_properties)

    @property
    def environment(self):
        return self.custom_properties.get(ENVIRONMENT)

    @property
    def device_type(self):
        return self.custom_properties.get(DEVICE_TYPE)

    @property
    def device_function(self):
        return self.custom_properties.get(DEVICE_FUNCTION)

    def __repr__(self):
        return "NodeRecord(caption={0!r}, uri={1!r})".format(self.caption, self.uri)


def build_node_query(custom_fields):
    """ Builds the SWQL query for every node with its static attributes and the given custom property fields. """

    columns = ["N.{0}".format(field) for field in NODE_FIELDS]
    for field in custom_fields:
        if field in NODE_FIELDS:
            continue
        columns.append("N.CustomProperties.{0} AS {0}".format(field))

    return "SELECT " + ", ".join(columns) + " FROM Orion.Nodes N ORDER BY N.Caption"


def fetch_nodes(solarwinds):
    """ Fetches every node from the server along with all of its custom properties.

        Args:
            solarwinds(SolarWinds): A connected SolarWinds object.

        Returns:
            (list): A list of NodeRecord objects in caption order.

        Raises:
            QueryFailure: A query failed, or the server does not define one of the classification fields.

    """

    custom_fields = solarwinds.list_custom_property_fields()
    missing = [field for field in CLASSIFICATION_FIELDS if field not in custom_fields]
    if missing:
        raise QueryFailure(solarwinds.server,
                           "node custom properties not defined: {0}".format(", ".join(missing)))

    rows = solarwinds.query(build_node_query(custom_fields))
    logger.info("fetch_nodes - %d nodes returned from %s.", len(rows), solarwinds.server)

    return [NodeRecord.from_row(row) for row in rows]
