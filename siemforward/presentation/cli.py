"""CLI interface for siemforward."""
import click
import sys
import difflib
import logging
from typing import Optional
from siemforward.utils.config_manager import ConfigManager
from siemforward.utils.validators import (
    validate_address, validate_port, validate_privileges, validate_selectors
)
from siemforward.services.block_manager import BlockManager
from siemforward.services.service_control import ServiceController
from siemforward.presentation.output_formatter import OutputFormatter
from siemforward.core.models import EndpointIdentity, OperationResult, Protocol
from siemforward.core.exceptions import SiemForwardError, RestoreFailedError

EXIT_FAILURE = 1
EXIT_CRITICAL = 3


def get_version():
    """Get the CLI version from package metadata."""
    try:
        from importlib.metadata import version
        return version('siemforward')
    except Exception:
        return '1.0.0'


# Command examples for help display
COMMAND_EXAMPLES = {
    'install': [
        ('siem-forward install 10.0.0.5 --port 514', 'Forward over UDP'),
        ('siem-forward install 10.0.0.5 --port 6514 --tcp', 'Forward over TCP'),
        ('siem-forward install 10.0.0.5 --port 514 --no-restart', 'Skip rsyslog restart'),
    ],
    'uninstall': [
        ('siem-forward uninstall 10.0.0.5 --port 514', 'Remove forwarding block'),
        ('siem-forward uninstall 10.0.0.5 --port 514 --json', 'Remove, JSON output'),
    ],
    'list': [
        ('siem-forward list', 'List configured endpoints'),
        ('siem-forward list --json', 'List endpoints as JSON'),
    ],
    'settings': [
        ('siem-forward settings show', 'Show current settings'),
        ('siem-forward settings set --config-path <file>', 'Change target file'),
    ],
}


class CustomGroup(click.Group):
    """Custom Click group with examples in help and typo suggestions."""

    def format_help(self, ctx, formatter):
        """Override to add examples to help output."""
        formatter.write(f"siem-forward v{get_version()} - rsyslog forwarding to SIEM collectors\n\n")

        self.format_usage(ctx, formatter)
        formatter.write_paragraph()
        self.format_help_text(ctx, formatter)
        self.format_commands(ctx, formatter)

        formatter.write_paragraph()
        formatter.write("Examples:\n")
        examples = [
            ('siem-forward install 10.0.0.5 --port 514', 'Forward logs over UDP'),
            ('siem-forward install 10.0.0.5 --port 514 --tcp', 'Switch the same endpoint to TCP'),
            ('siem-forward uninstall 10.0.0.5 --port 514', 'Stop forwarding'),
            ('siem-forward list', 'Show configured endpoints'),
        ]
        for cmd, desc in examples:
            formatter.write(f"  {cmd:<48} {desc}\n")

        formatter.write_paragraph()
        formatter.write("Run 'siem-forward help <command>' for detailed command usage.\n")

        formatter.write_paragraph()
        formatter.write("Options:\n")
        for param in self.get_params(ctx):
            rv = param.get_help_record(ctx)
            if rv is not None:
                formatter.write(f"  {rv[0]:<20} {rv[1]}\n")

    def format_commands(self, ctx, formatter):
        """Format the commands section."""
        commands = []
        for subcommand in self.list_commands(ctx):
            cmd = self.get_command(ctx, subcommand)
            if cmd is None:
                continue
            commands.append((subcommand, cmd.get_short_help_str(limit=50)))

        if commands:
            formatter.write_paragraph()
            formatter.write("Commands:\n")
            max_len = max(len(cmd[0]) for cmd in commands)
            for subcommand, help_text in commands:
                formatter.write(f"  {subcommand:<{max_len + 2}} {help_text}\n")

    def get_command(self, ctx, cmd_name):
        """Override to suggest similar commands on typo."""
        rv = click.Group.get_command(self, ctx, cmd_name)
        if rv is not None:
            return rv

        matches = difflib.get_close_matches(
            cmd_name,
            self.list_commands(ctx),
            n=3,
            cutoff=0.6
        )

        if matches:
            ctx.fail(f"Unknown command '{cmd_name}'. Did you mean: {', '.join(matches)}?")

        return None


class CustomCommand(click.Command):
    """Custom Click command with examples in help."""

    def format_help(self, ctx, formatter):
        """Override to add examples to command help."""
        self.format_usage(ctx, formatter)
        formatter.write_paragraph()
        self.format_help_text(ctx, formatter)
        self.format_options(ctx, formatter)

        cmd_name = ctx.info_name
        if cmd_name in COMMAND_EXAMPLES:
            formatter.write_paragraph()
            formatter.write("Examples:\n")
            for cmd, desc in COMMAND_EXAMPLES[cmd_name]:
                formatter.write(f"  {cmd:<52} {desc}\n")


def configure_logging(debug: bool):
    """Send log records to stderr; verbose only with --debug."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )


def fail(formatter: OutputFormatter, error: SiemForwardError):
    """Report an error and exit. A failed restore exits with a distinct code."""
    click.echo(formatter.format_error(error), err=True)
    sys.exit(EXIT_CRITICAL if isinstance(error, RestoreFailedError) else EXIT_FAILURE)


def restart_if_needed(result: OperationResult, no_restart: bool, json_output: bool) -> Optional[dict]:
    """Restart rsyslog when the file changed. Returns None if no restart was due."""
    if not result.needs_reload:
        return None
    if no_restart:
        return {
            'ok': False,
            'message': "Restart skipped (--no-restart). Restart rsyslog to apply the changes."
        }

    if not json_output:
        click.echo("Restarting rsyslog to apply the changes...")
    ok, message = ServiceController().restart()
    if not ok and not json_output:
        click.echo(click.style(message, fg='yellow'), err=True)
    return {'ok': ok, 'message': message}


def build_manager(config_file: Optional[str], json_output: bool):
    """Resolve settings and create a block manager for the target file."""
    settings = ConfigManager().load()
    config_path = config_file or settings['config_path']
    reporter = None if json_output else click.echo
    return BlockManager(config_path, reporter=reporter), settings


@click.group(cls=CustomGroup)
@click.version_option(version=get_version(), prog_name='siem-forward')
def cli():
    """Forward rsyslog messages to remote SIEM collectors."""
    pass


@cli.command(cls=CustomCommand)
@click.argument('address')
@click.option('--port', required=True, type=int, help='Destination port (1-65535)')
@click.option('--tcp', is_flag=True, help='Forward over TCP instead of UDP')
@click.option('--no-restart', is_flag=True, help='Do not restart rsyslog after the change')
@click.option('--config-file', type=click.Path(dir_okay=False), help='rsyslog file to edit')
@click.option('--json', 'json_output', is_flag=True, help='Output in JSON format')
@click.option('--debug', is_flag=True, help='Show debug logging')
def install(address, port, tcp, no_restart, config_file, json_output, debug):
    """Add or update forwarding to a SIEM endpoint."""
    configure_logging(debug)
    formatter = OutputFormatter(json_mode=json_output)
    protocol = Protocol.TCP if tcp else Protocol.UDP

    try:
        validate_address(address)
        port = validate_port(port)
        validate_privileges()
        manager, tool_settings = build_manager(config_file, json_output)
        identity = EndpointIdentity(address, port)

        if not json_output:
            click.echo(
                f"Action: add/update SIEM forwarding for {identity} via "
                f"{protocol.name} in '{manager.config_path}'..."
            )
        result = manager.install(identity, protocol.prefix, tool_settings['selectors'])
    except SiemForwardError as e:
        fail(formatter, e)

    restart = restart_if_needed(result, no_restart, json_output)
    click.echo(formatter.format_result(result, restart))


@cli.command(cls=CustomCommand)
@click.argument('address')
@click.option('--port', required=True, type=int, help='Destination port (1-65535)')
@click.option('--no-restart', is_flag=True, help='Do not restart rsyslog after the change')
@click.option('--config-file', type=click.Path(dir_okay=False), help='rsyslog file to edit')
@click.option('--json', 'json_output', is_flag=True, help='Output in JSON format')
@click.option('--debug', is_flag=True, help='Show debug logging')
def uninstall(address, port, no_restart, config_file, json_output, debug):
    """Remove forwarding to a SIEM endpoint."""
    configure_logging(debug)
    formatter = OutputFormatter(json_mode=json_output)

    try:
        validate_address(address)
        port = validate_port(port)
        validate_privileges()
        manager, _ = build_manager(config_file, json_output)
        identity = EndpointIdentity(address, port)

        if not json_output:
            click.echo(
                f"Action: remove SIEM forwarding for {identity} from '{manager.config_path}'..."
            )
        result = manager.uninstall(identity)
    except SiemForwardError as e:
        fail(formatter, e)

    restart = restart_if_needed(result, no_restart, json_output)
    click.echo(formatter.format_result(result, restart))


@cli.command('list', cls=CustomCommand)
@click.option('--config-file', type=click.Path(dir_okay=False), help='rsyslog file to read')
@click.option('--json', 'json_output', is_flag=True, help='Output in JSON format')
def list_endpoints(config_file, json_output):
    """List configured SIEM endpoints."""
    formatter = OutputFormatter(json_mode=json_output)

    try:
        manager, _ = build_manager(config_file, json_output=True)
        identities = manager.list_identities()
    except SiemForwardError as e:
        fail(formatter, e)

    click.echo(formatter.format_identities(str(manager.config_path), identities))


@cli.group()
def settings():
    """Manage siemforward settings."""
    pass


@settings.command('show', cls=CustomCommand)
@click.option('--json', 'json_output', is_flag=True, help='Output in JSON format')
def show_settings(json_output):
    """Show the target file and selectors."""
    formatter = OutputFormatter(json_mode=json_output)
    config_manager = ConfigManager()
    try:
        current = config_manager.load()
    except SiemForwardError as e:
        fail(formatter, e)
    click.echo(formatter.format_settings(current, str(config_manager.config_file)))


@settings.command('set', cls=CustomCommand)
@click.option('--config-path', help='rsyslog file holding the SIEM blocks')
@click.option('--selector', 'selectors', multiple=True,
              help='Selector to forward (repeat for several; replaces the list)')
def set_settings(config_path, selectors):
    """Change the target file or selector list."""
    formatter = OutputFormatter()
    if config_path is None and not selectors:
        click.echo("Nothing to change. Pass --config-path and/or --selector.", err=True)
        sys.exit(EXIT_FAILURE)

    try:
        if selectors:
            validate_selectors(list(selectors))
        config_manager = ConfigManager()
        config_manager.save(
            config_path=config_path,
            selectors=list(selectors) if selectors else None
        )
        click.echo(f"Settings saved to {config_manager.config_file}.")
    except SiemForwardError as e:
        fail(formatter, e)


@settings.command('reset', cls=CustomCommand)
def reset_settings():
    """Restore default settings."""
    formatter = OutputFormatter()
    try:
        removed = ConfigManager().reset()
    except SiemForwardError as e:
        fail(formatter, e)
    if removed:
        click.echo("Settings reset to defaults.")
    else:
        click.echo("Already using default settings.")


@cli.command('help')
@click.argument('command_name', required=False)
@click.pass_context
def help_command(ctx, command_name):
    """Show help for a command."""
    if command_name:
        cmd = cli.get_command(ctx, command_name)
        if cmd:
            sub_ctx = click.Context(cmd, info_name=command_name, parent=ctx)
            click.echo(cmd.get_help(sub_ctx))
        else:
            click.echo(f"Unknown command '{command_name}'.", err=True)
            sys.exit(EXIT_FAILURE)
    else:
        click.echo(ctx.parent.get_help() if ctx.parent else cli.get_help(ctx))


if __name__ == '__main__':
    cli()
