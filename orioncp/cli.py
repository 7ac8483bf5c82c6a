# -*- coding: utf-8 -*-
"""Command line entry point for the Orion node custom property helpers."""

import argparse
import getpass
import logging
import sys

from rich.console import Console
from rich.theme import Theme

from orioncp.classification import CLASSIFICATION_FIELDS, DEFAULT_RULES
from orioncp.exceptions import ConfigError, ConnectionFailure
from orioncp.remediation import remediate
from orioncp.settings import load_server_list, load_settings, rules_from_settings
from orioncp.solarwinds import SolarWinds

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


# ----------------------------------------------------------------------------
# FLAGS: Connection flags shared by every command plus one subcommand per action
# ----------------------------------------------------------------------------
def create_parser():
    parser = argparse.ArgumentParser(prog='orioncp', description="Administer SolarWinds Orion node custom properties")
    parser.add_argument("-s", "--server", action="append", help="Orion server, can be repeated")
    parser.add_argument("-f", "--server-file", help="File listing one Orion server per line")
    parser.add_argument("-c", "--config", help="YAML settings file")
    parser.add_argument("-u", "--user", help="SWIS username, overrides the settings file")
    parser.add_argument("-p", "--password", help="SWIS password, prompted for when not given")
    parser.add_argument("--ssl-verify", action="store_true", default=None, help="Validate server certificates")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug messages")
    parser.add_argument("--log-file", help="Also write log messages to this file")

    commands = parser.add_subparsers(dest="command", metavar="command")
    commands.required = True

    commands.add_parser("validate", help="Check the credentials against each server")
    commands.add_parser("list", help="List the node custom properties")

    values = commands.add_parser("values", help="List the in use values of a custom property")
    values.add_argument("name")

    add = commands.add_parser("add", help="Create a node custom property")
    add.add_argument("name")
    add.add_argument("-d", "--description", default="")
    add.add_argument("-t", "--type", default="string",
                     choices=["string", "integer", "datetime", "single", "double", "boolean"])
    add.add_argument("--size", type=int, default=100)
    add.add_argument("--values", nargs="+", help="Restrict the property to these values")

    modify = commands.add_parser("modify", help="Replace the allowed values of a node custom property")
    modify.add_argument("name")
    modify.add_argument("-d", "--description", help="Defaults to the current description")
    modify.add_argument("--size", type=int, help="Defaults to the current size")
    modify.add_argument("--values", nargs="+", required=True)

    remove = commands.add_parser("remove", help="Delete a node custom property")
    remove.add_argument("name")

    get = commands.add_parser("get", help="Show the custom properties of a node")
    get.add_argument("node")
    get.add_argument("name", nargs="?")

    set_ = commands.add_parser("set", help="Set a custom property on a node")
    set_.add_argument("node")
    set_.add_argument("name")
    set_.add_argument("value")

    nodes = commands.add_parser("nodes", help="List the nodes holding a custom property value")
    nodes.add_argument("name")
    nodes.add_argument("value", nargs="?")
    nodes.add_argument("--missing", action="store_true", help="List nodes where the property is empty instead")

    fix = commands.add_parser("remediate", help="Recompute Environment, Device_Type and Device_Function")
    fix.add_argument("-a", "--apply", action="store_true", help="Write the changes, by default only a dry run")

    return parser


def configure_logging(verbose=False, log_file=None):
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format=LOG_FORMAT, handlers=handlers)


class CustomPropertyCli:

    def __init__(self, console=None):
        my_theme = {"repr.ipv4": "none", "repr.number": "none", "repr.call": "none"}
        self.rc = console or Console(theme=Theme(my_theme))
        self.failed = False

    # ----------------------------------------------------------------------------
    # 1. SETTINGS: Flags override the settings file
    # ----------------------------------------------------------------------------
    def resolve_settings(self, args):
        settings = load_settings(args.config) if args.config else {}
        npm = settings.get('npm', {})

        if args.server:
            servers = args.server
        elif args.server_file:
            servers = load_server_list(args.server_file)
        elif npm.get('servers'):
            servers = npm['servers']
        elif npm.get('server_file'):
            servers = load_server_list(npm['server_file'])
        else:
            raise ConfigError("No servers given, use --server, --server-file or a settings file")

        user = args.user or npm.get('user')
        if not user:
            raise ConfigError("No username given, use --user or set npm.user in the settings file")

        ssl_verify = args.ssl_verify if args.ssl_verify is not None else npm.get('ssl_verify', False)
        rules = rules_from_settings(settings) if settings else DEFAULT_RULES

        return dict(servers=servers, user=user, ssl_verify=ssl_verify, rules=rules)

    # ----------------------------------------------------------------------------
    # 2. CONNECT: One server at a time, a failed server is reported and skipped
    # ----------------------------------------------------------------------------
    def each_server(self, opts, password):
        for server in opts['servers']:
            self.rc.print("[blue]=[/blue]" * 70)
            self.rc.print(f"[b]{server}[/b]")
            try:
                yield SolarWinds.connect(server, opts['user'], password, ssl_verify=opts['ssl_verify'])
            except ConnectionFailure as error:
                self.failed = True
                self.rc.print(f":x: [red]ConnectionFailure[/red]: {error}")

    def report(self, ok, action):
        if ok:
            self.rc.print(f":white_check_mark: {action}")
        else:
            self.failed = True
            self.rc.print(f":x: [red]Failed[/red]: {action}")

    # ----------------------------------------------------------------------------
    # 3. COMMANDS
    # ----------------------------------------------------------------------------
    def cmd_validate(self, args, sw):
        self.rc.print(":white_check_mark: Credentials accepted")

    def cmd_list(self, args, sw):
        for prop in sw.get_custom_property_definitions():
            self.rc.print(f"[green]-{prop['Field']}[/green]  [i]{prop.get('DataType')}({prop.get('MaxLength')})"
                          f"[/i]  {prop.get('Description') or ''}")

    def cmd_values(self, args, sw):
        for value in sw.get_list_of_values_for_custom_property(args.name):
            self.rc.print(f"-{value}")

    def cmd_add(self, args, sw):
        ok = sw.add_node_custom_property(args.name, args.description, args.type, args.size, args.values)
        self.report(ok, f"create custom property [i]{args.name}[/i]")

    def cmd_modify(self, args, sw):
        description, size = args.description, args.size
        if description is None or size is None:
            current = [prop for prop in sw.get_custom_property_definitions() if prop['Field'] == args.name]
            if not current:
                self.failed = True
                self.rc.print(f":x: Custom property [i]{args.name}[/i] not found")
                return
            if description is None:
                description = current[0].get('Description') or ""
            if size is None:
                size = current[0].get('MaxLength')
        ok = sw.modify_node_custom_property(args.name, description, size, args.values)
        self.report(ok, f"modify custom property [i]{args.name}[/i]")

    def cmd_remove(self, args, sw):
        self.report(sw.remove_node_custom_property(args.name), f"delete custom property [i]{args.name}[/i]")

    def cmd_get(self, args, sw):
        props = sw.get_node_custom_properties(args.node)
        if not props:
            self.failed = True
            self.rc.print(f":x: Node [i]{args.node}[/i] not found")
            return
        if args.name:
            props = {args.name: props.get(args.name, "")}
        for name, value in sorted(props.items()):
            self.rc.print(f"[green]{name}[/green]: {value if value is not None else ''}")

    def cmd_set(self, args, sw):
        ok = sw.set_node_custom_property(args.node, args.name, args.value)
        self.report(ok, f"set [i]{args.name}[/i] = '{args.value}' on [i]{args.node}[/i]")

    def cmd_nodes(self, args, sw):
        if args.missing:
            nodes = sw.get_list_of_nodes_missing_custom_property(args.name)
        else:
            nodes = sw.get_list_of_nodes_for_custom_property_value(args.name, args.value)
        self.rc.print(f"[i cyan]{len(nodes)}[/i cyan] nodes matched")
        for node in nodes:
            self.rc.print(f"[green]-Node: {node}[/green]")

    # ----------------------------------------------------------------------------
    # 4. REMEDIATE: Per node decisions then a summary per server
    # ----------------------------------------------------------------------------
    def print_remediation(self, report, apply, verbose=False):
        self.rc.print("[blue]=[/blue]" * 70)
        self.rc.print(f"[b]{report.server}[/b]")
        if report.error is not None:
            self.failed = True
            self.rc.print(f":x: [red]{type(report.error).__name__}[/red]: {report.error}")
            return

        patches = {patch.node_uri: patch for patch in report.patches}
        for node in report.nodes:
            patch = patches.get(node.uri)
            if patch is None:
                if verbose:
                    self.rc.print(f"-Node: {node.caption}   [i]unchanged[/i]")
                continue
            current = node.custom_properties
            changes = ", ".join(f"{field}: '{current.get(field) or ''}' -> '{patch.properties[field]}'"
                                for field in CLASSIFICATION_FIELDS if field in patch.properties)
            self.rc.print(f"[green]-Node: {patch.caption}[/green]   [i]{changes}[/i]")
        self.rc.print(f"[i cyan]{len(report.patches)}[/i cyan] of [i cyan]{len(report.nodes)}[/i cyan] nodes "
                      f"changed, {len(report.nodes) - len(report.patches)} unchanged")

        if not apply:
            self.rc.print("[yellow]Dry run, nothing written. Use --apply to write the changes.[/yellow]")
            return

        result = report.result
        for patch, error in result.failures:
            self.rc.print(f":x: [red]WriteFailure[/red]: {patch.caption} - {error}")
        if result.failures:
            self.failed = True
        self.rc.print(f"Applied: [green]{result.applied}[/green]   Failed: [red]{result.failed}[/red]")

    def run(self, args):
        try:
            opts = self.resolve_settings(args)
        except ConfigError as error:
            self.rc.print(f":x: [red]ConfigError[/red]: {error}")
            return 1

        password = args.password or getpass.getpass("Enter SWIS password: ")

        if args.command == "remediate":
            reports = remediate(opts['servers'], opts['user'], password, apply=args.apply, rules=opts['rules'],
                                ssl_verify=opts['ssl_verify'])
            for report in reports:
                self.print_remediation(report, args.apply, args.verbose)
        else:
            command = getattr(self, "cmd_" + args.command)
            for sw in self.each_server(opts, password):
                command(args, sw)

        return 1 if self.failed else 0


def parse_args(argv=None):
    parser = create_parser()
    args = parser.parse_args(argv)
    if args.command == "nodes" and args.value is None and not args.missing:
        parser.error("nodes: a VALUE is required unless --missing is given")
    return args


def main(argv=None):
    args = parse_args(argv)
    configure_logging(args.verbose, args.log_file)
    return CustomPropertyCli().run(args)


if __name__ == "__main__":
    sys.exit(main())
