# -*- coding: utf-8 -*-
"""Node classification rules

Derives the Environment, Device_Type and Device_Function custom properties of a node from its raw attributes.

    Environment      exact lookup of the second IPv4 octet in ENVIRONMENT_MAP.
    Device_Type      keyword rules against MachineType, then against Caption.
    Device_Function  keyword rules against Caption.

Keyword rules are evaluated in the order they are declared and the last matching rule wins.  All MachineType rules
are declared ahead of the Caption rules, so a Caption match always overrides a MachineType match.  Keywords are
case-sensitive substrings.  When nothing matches, the value currently stored on the node is returned unchanged, so
an unmapped node is never cleared.

"""

from collections import namedtuple

MACHINE_TYPE = 'MachineType'
CAPTION = 'Caption'

ENVIRONMENT = 'Environment'
DEVICE_TYPE = 'Device_Type'
DEVICE_FUNCTION = 'Device_Function'

CLASSIFICATION_FIELDS = (ENVIRONMENT, DEVICE_TYPE, DEVICE_FUNCTION)

# A keyword rule.  `unless` is an optional MachineType keyword that vetoes the rule.
Rule = namedtuple('Rule', ['source', 'keyword', 'label', 'unless'], defaults=(None,))

ENVIRONMENT_MAP = {
    '56': 'Dream',
    '57': 'Wonder',
    '58': 'Magic',
    '59': 'Fantasy',
    '217': 'LightHouse Point',
}

DEVICE_TYPE_RULES = (
    Rule(MACHINE_TYPE, 'Catalyst', 'Switch'),
    Rule(MACHINE_TYPE, 'Nexus', 'Data Center Switch'),
    Rule(MACHINE_TYPE, 'ISR', 'Router'),
    Rule(MACHINE_TYPE, 'ASR', 'Router'),
    Rule(MACHINE_TYPE, 'ASA', 'Firewall'),
    Rule(MACHINE_TYPE, 'Palo Alto', 'Firewall'),
    Rule(MACHINE_TYPE, 'Aironet', 'Wireless Access Point'),
    Rule(MACHINE_TYPE, 'Wireless LAN Controller', 'Wireless Controller'),
    Rule(MACHINE_TYPE, 'Linux', 'Server'),
    Rule(MACHINE_TYPE, 'Windows', 'Server'),
    Rule(MACHINE_TYPE, 'VMware', 'Hypervisor'),
    Rule(CAPTION, 'PRN', 'Printer'),
    Rule(CAPTION, 'CCTV', 'Camera'),
    Rule(CAPTION, 'brightsign', 'Digital Signage', unless='Windows'),
)

DEVICE_FUNCTION_RULES = (
    Rule(CAPTION, 'POS', 'Point of Sale'),
    Rule(CAPTION, 'VOIP', 'Voice'),
    Rule(CAPTION, 'PRN', 'Printing'),
    Rule(CAPTION, 'CCTV', 'Surveillance'),
    Rule(CAPTION, 'brightsign', 'Brightsign'),
)


class RuleSet:
    """ Read-only bundle of the three classification tables. """

    def __init__(self, environment_map=None, device_type_rules=None, device_function_rules=None):
        self._environment_map = dict(ENVIRONMENT_MAP if environment_map is None else environment_map)
        self._device_type_rules = tuple(DEVICE_TYPE_RULES if device_type_rules is None else device_type_rules)
        self._device_function_rules = tuple(
            DEVICE_FUNCTION_RULES if device_function_rules is None else device_function_rules)

    @property
    def environment_map(self):
        return dict(self._environment_map)

    @property
    def device_type_rules(self):
        return self._device_type_rules

    @property
    def device_function_rules(self):
        return self._device_function_rules

    def environment_for(self, octet):
        return self._environment_map.get(octet)

    def __repr__(self):
        return "RuleSet(environments={0}, device_type_rules={1}, device_function_rules={2})".format(
            len(self._environment_map), len(self._device_type_rules), len(self._device_function_rules))


DEFAULT_RULES = RuleSet()


def _source_text(node, source):
    if source == MACHINE_TYPE:
        return node.machine_type or ''
    if source == CAPTION:
        return node.caption or ''
    raise ValueError("Unknown rule source: {0}".format(source))


def _last_match(node, rules):
    label = None
    machine_type = node.machine_type or ''
    for rule in rules:
        if rule.keyword not in _source_text(node, rule.source):
            continue
        if rule.unless and rule.unless in machine_type:
            continue
        label = rule.label
    return label


def derive_environment(node, rules=DEFAULT_RULES):
    """ Returns the Environment label for the node's second octet, or its current Environment when unmapped. """

    label = rules.environment_for(node.octet2 or '')
    if label is None:
        return node.environment
    return label


def derive_device_type(node, rules=DEFAULT_RULES):
    """ Returns the Device_Type from the last matching MachineType/Caption rule, or the current Device_Type. """

    label = _last_match(node, rules.device_type_rules)
    if label is None:
        return node.device_type
    return label


def derive_device_function(node, rules=DEFAULT_RULES):
    """ Returns the Device_Function from the last matching Caption rule, or the current Device_Function. """

    label = _last_match(node, rules.device_function_rules)
    if label is None:
        return node.device_function
    return label


def classify(node, rules=DEFAULT_RULES):
    """ Derives all three classification fields for a node without modifying it.

        Returns:
            (dictionary): The classification field names mapped to the derived values.

    """

    return {
        ENVIRONMENT: derive_environment(node, rules),
        DEVICE_TYPE: derive_device_type(node, rules),
        DEVICE_FUNCTION: derive_device_function(node, rules),
    }
