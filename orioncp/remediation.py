# -*- coding: utf-8 -*-
"""Classification remediation

Recomputes Environment, Device_Type and Device_Function for every node on a server and writes back only the
properties that changed.

    fetch_nodes -> build_update_list -> apply_updates

Servers are handled one after another.  A connection or query failure skips that server, a write failure skips that
node, and neither stops the run.

"""

import logging

from orioncp.classification import CLASSIFICATION_FIELDS, DEFAULT_RULES, classify
from orioncp.exceptions import ConnectionFailure, QueryFailure, WriteFailure
from orioncp.nodes import fetch_nodes
from orioncp.solarwinds import SolarWinds

logger = logging.getLogger(__name__)


def _normalise(value):
    # None and "" both mean the property is unset.
    if value is None:
        return ''
    return str(value)


class UpdatePatch:
    """ The custom property values that changed for one node. """

    def __init__(self, node_uri, caption, properties):
        if not properties:
            raise ValueError("An update patch needs at least one property, none given for {0}".format(caption))
        self.node_uri = node_uri
        self.caption = caption
        self.properties = dict(properties)

    def __eq__(self, other):
        if not isinstance(other, UpdatePatch):
            return NotImplemented
        return (self.node_uri, self.caption, self.properties) == (other.node_uri, other.caption, other.properties)

    def __repr__(self):
        return "UpdatePatch(caption={0!r}, properties={1!r})".format(self.caption, self.properties)


class ApplyResult:

    def __init__(self):
        self.applied = 0
        self.failures = []

    @property
    def failed(self):
        return len(self.failures)


class ServerReport:
    """ Outcome of one server: the nodes read, the patches built and how many were written. """

    def __init__(self, server):
        self.server = server
        self.nodes = []
        self.patches = []
        self.result = None
        self.error = None

    @property
    def ok(self):
        return self.error is None and (self.result is None or not self.result.failures)


def diff_node(node, rules=DEFAULT_RULES):
    """ Returns the classification properties whose derived value differs from the value stored on the node. """

    current = {field: node.custom_properties.get(field) for field in CLASSIFICATION_FIELDS}
    derived = classify(node, rules)

    return {field: derived[field] for field in CLASSIFICATION_FIELDS
            if _normalise(derived[field]) != _normalise(current[field])}


def build_update_list(nodes, rules=DEFAULT_RULES):
    """ Builds one UpdatePatch per node that has at least one changed classification property.

        Args:
            nodes(list): NodeRecord objects.
            rules(RuleSet): The classification tables to use.

        Returns:
            (list): UpdatePatch objects in the same order as `nodes`.

    """

    patches = []
    for node in nodes:
        changes = diff_node(node, rules)
        if not changes:
            logger.info("build_update_list - %s unchanged.", node.caption)
            continue
        logger.info("build_update_list - %s changed: %s", node.caption, changes)
        patches.append(UpdatePatch(node.uri, node.caption, changes))

    return patches


def apply_updates(solarwinds, patches):
    """ Writes each patch independently.  A failed write is recorded and the next patch is still attempted.

        Returns:
            (ApplyResult): The number of patches applied and a list of (patch, error) failures.

    """

    result = ApplyResult()
    for patch in patches:
        try:
            solarwinds.update_node_custom_properties(patch.node_uri, patch.properties)

        except WriteFailure as error:
            logger.error("apply_updates - %s failed: %s", patch.caption, error)
            result.failures.append((patch, error))
            continue

        result.applied += 1

    logger.info("apply_updates - %d applied, %d failed.", result.applied, result.failed)
    return result


def remediate_server(server, username, password, apply=False, rules=DEFAULT_RULES, ssl_verify=False):
    """ Runs the remediation against one server.

        Args:
            server(string): The name or IP of the SolarWinds Orion server.
            username(string): The SWIS username.
            password(string): The SWIS password.
            apply(boolean): Write the patches.  When False the patches are built but nothing is written.
            rules(RuleSet): The classification tables to use.
            ssl_verify(boolean): Whether to validate the server certificate.

        Returns:
            (ServerReport): The nodes, patches and write results.  A connection or query failure is stored in
                `error` rather than raised.

    """

    report = ServerReport(server)

    try:
        solarwinds = SolarWinds.connect(server, username, password, ssl_verify=ssl_verify)
        report.nodes = fetch_nodes(solarwinds)

    except (ConnectionFailure, QueryFailure) as error:
        logger.error("remediate_server - skipping %s: %s", server, error)
        report.error = error
        return report

    report.patches = build_update_list(report.nodes, rules)
    logger.info("remediate_server - %s: %d of %d nodes need updating.", server, len(report.patches),
                len(report.nodes))

    if apply:
        report.result = apply_updates(solarwinds, report.patches)

    return report


def remediate(servers, username, password, apply=False, rules=DEFAULT_RULES, ssl_verify=False):
    """ Runs the remediation against each server in turn and returns a list of ServerReport objects. """

    return [remediate_server(server, username, password, apply=apply, rules=rules, ssl_verify=ssl_verify)
            for server in servers]
