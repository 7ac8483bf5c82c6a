# -*- coding: utf-8 -*-
"""Loads the server list and the YAML settings file.

Example settings file:

    npm:
      user: svc_orion
      ssl_verify: false
      servers:
        - orion-dream.example.com
        - orion-magic.example.com
      # or instead of servers:
      # server_file: servers.txt
    rules:
      environment:
        "56": Dream
      device_type:
        - {source: MachineType, keyword: Nexus, label: Data Center Switch}
      device_function:
        - {source: Caption, keyword: brightsign, label: Brightsign}

The `rules` section is optional; any table it leaves out keeps the built-in rules.
"""

import logging
import os

import yaml

from orioncp.classification import CAPTION, MACHINE_TYPE, RuleSet, Rule
from orioncp.exceptions import ConfigError

logger = logging.getLogger(__name__)

NPM_SETTINGS = dict(user=str, ssl_verify=bool, servers=list, server_file=str)
RULE_SETTINGS = dict(source=str, keyword=str, label=str, unless=str)


def load_server_list(filename):
    """ Reads one server per line, ignoring blank lines, '#' comments and repeated servers. """

    if not os.path.exists(filename):
        raise ConfigError("Cannot find server file '{0}'".format(filename))

    servers = []
    with open(filename) as server_file:
        for line in server_file:
            server = line.split('#', 1)[0].strip()
            if server and server not in servers:
                servers.append(server)

    logger.info("load_server_list - %d servers read from %s.", len(servers), filename)
    return servers


# ----------------------------------------------------------------------------
# TESTING: Checks each setting exists and is of the right type
# ----------------------------------------------------------------------------
def _check_types(section, settings, expected):
    errors = []
    for name, value in settings.items():
        if name not in expected:
            errors.append("{0}: unknown setting '{1}'".format(section, name))
        elif not isinstance(value, expected[name]):
            errors.append("{0}: '{1}' should be a {2}".format(section, name, expected[name].__name__))
    return errors


def _check_rules(name, rules):
    errors = []
    if not isinstance(rules, list):
        return ["rules: '{0}' should be a list".format(name)]
    for index, rule in enumerate(rules):
        section = "rules {0}[{1}]".format(name, index)
        if not isinstance(rule, dict):
            errors.append("{0}: should be a dict".format(section))
            continue
        errors.extend(_check_types(section, rule, RULE_SETTINGS))
        missing = [key for key in ('source', 'keyword', 'label') if rule.get(key) is None]
        if missing:
            errors.append("{0}: missing {1}".format(section, ", ".join(missing)))
        for key in ('keyword', 'unless'):
            if rule.get(key) == "":
                errors.append("{0}: '{1}' cannot be blank".format(section, key))
        if rule.get('source') not in (None, MACHINE_TYPE, CAPTION):
            errors.append("{0}: source must be {1} or {2}".format(section, MACHINE_TYPE, CAPTION))
    return errors


def validate_settings(settings):
    """ Returns a list of every problem found in the settings, empty when they are valid. """

    if not isinstance(settings, dict):
        return ["settings file must contain a dictionary"]

    errors = []
    npm = settings.get('npm')
    if npm is None:
        errors.append("npm: missing this mandatory dictionary")
    elif not isinstance(npm, dict):
        errors.append("npm: should be a dict")
    else:
        errors.extend(_check_types('npm', npm, NPM_SETTINGS))
        if npm.get('servers') is None and npm.get('server_file') is None:
            errors.append("npm: one of 'servers' or 'server_file' is required")

    rules = settings.get('rules')
    if rules is not None:
        if not isinstance(rules, dict):
            errors.append("rules: should be a dict")
        else:
            if 'environment' in rules and not isinstance(rules['environment'], dict):
                errors.append("rules: 'environment' should be a dict")
            for name in ('device_type', 'device_function'):
                if name in rules:
                    errors.extend(_check_rules(name, rules[name]))

    return errors


def load_settings(filename):
    """ Loads and validates the YAML settings file.

        Raises:
            ConfigError: The file is missing, is not valid YAML or has invalid settings.

    """

    if not os.path.exists(filename):
        raise ConfigError("Cannot find settings file '{0}'".format(filename))

    try:
        with open(filename) as settings_file:
            settings = yaml.safe_load(settings_file)
    except yaml.YAMLError as error:
        raise ConfigError("Settings file '{0}' is not valid YAML: {1}".format(filename, error)) from error

    errors = validate_settings(settings)
    if errors:
        raise ConfigError("Invalid settings in '{0}':\n  {1}".format(filename, "\n  ".join(errors)))

    # Relative server files are resolved against the settings file.
    server_file = settings['npm'].get('server_file')
    if server_file and not os.path.isabs(server_file):
        settings['npm']['server_file'] = os.path.join(os.path.dirname(os.path.abspath(filename)), server_file)

    return settings


def rules_from_settings(settings):
    """ Builds the RuleSet from the optional `rules` section, using the built-in tables for anything left out. """

    rules = (settings or {}).get('rules') or {}

    environment_map = None
    if 'environment' in rules:
        environment_map = {str(octet): label for octet, label in rules['environment'].items()}

    device_type_rules = None
    if 'device_type' in rules:
        device_type_rules = [Rule(**rule) for rule in rules['device_type']]

    device_function_rules = None
    if 'device_function' in rules:
        device_function_rules = [Rule(**rule) for rule in rules['device_function']]

    return RuleSet(environment_map, device_type_rules, device_function_rules)
