"""Click CLI entry point with lazy-loaded subcommands."""

import os
import sys

# Fix Unicode output on Windows consoles (cp1253, cp1252, etc.)
if sys.platform == "win32" and not os.environ.get("PYTHONIOENCODING"):
    sys.stdout.reconfigure(encoding="utf-8", errors="replace")
    sys.stderr.reconfigure(encoding="utf-8", errors="replace")

import click


# Lazy-loading command group: imports command modules only when invoked.
# This avoids importing networkx on `ruleforge platforms` and `--help`.
_COMMANDS = {
    "analyze":   ("ruleforge.commands.cmd_analyze",   "analyze"),
    "signature": ("ruleforge.commands.cmd_signature", "signature"),
    "adapt":     ("ruleforge.commands.cmd_adapt",     "adapt"),
    "platforms": ("ruleforge.commands.cmd_platforms", "platforms"),
}

# Command categories for organized --help display
_CATEGORIES = {
    "Analysis": ["analyze", "signature"],
    "Rules": ["adapt", "platforms"],
}


class LazyGroup(click.Group):
    """A Click group that lazy-loads command modules on first access."""

    def list_commands(self, ctx):
        return sorted(_COMMANDS.keys())

    def get_command(self, ctx, cmd_name):
        if cmd_name not in _COMMANDS:
            return None
        module_path, attr_name = _COMMANDS[cmd_name]
        import importlib
        mod = importlib.import_module(module_path)
        return getattr(mod, attr_name)

    def format_help(self, ctx, formatter):
        """Categorized help display instead of flat alphabetical list."""
        self.format_usage(ctx, formatter)
        formatter.write("\n")
        if self.help:
            formatter.write(self.help + "\n\n")
        self.format_options(ctx, formatter)
        formatter.write("\n")

        for cat_name, cmds in _CATEGORIES.items():
            formatter.write(f"  {cat_name}:\n")
            for cmd_name in cmds:
                cmd = self.get_command(ctx, cmd_name)
                help_text = cmd.get_short_help_str(limit=60) if cmd else ""
                formatter.write(f"    {cmd_name:12s} {help_text}\n")
            formatter.write("\n")

        formatter.write("  Run `ruleforge <command> --help` for details on any command.\n")


@click.group(cls=LazyGroup)
@click.version_option(package_name="ruleforge")
@click.option('--json', 'json_mode', is_flag=True, help='Output in JSON format')
@click.option('-v', '--verbose', is_flag=True, help='Debug logging on stderr')
@click.option('--strict', is_flag=True, help='Exit with code 6 when diagnostics were produced')
@click.pass_context
def cli(ctx, json_mode, verbose, strict):
    """ruleforge: analyze a project and adapt AI assistant rules to it."""
    from ruleforge.commands.common import setup_logging

    ctx.ensure_object(dict)
    ctx.obj['json'] = json_mode
    ctx.obj['verbose'] = verbose
    ctx.obj['strict'] = strict
    setup_logging(verbose)
