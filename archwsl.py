#!/usr/bin/env python3

import argparse
import sys
from argparse import Namespace
from pathlib import Path
from textwrap import dedent
from typing import NoReturn

if sys.version_info >= (3, 12):
  from typing import override
else:
  from typing_extensions import override

from rich.console import Console
from rich.markup import escape

from wsltools.checks import run_validation
from wsltools.context import RunContext
from wsltools.custom import CustomOptions, ask_custom_options, generate
from wsltools.input import IntegerPrompt
from wsltools.registry import list_profiles, parse_profile
from wsltools.reporter import Reporter
from wsltools.startup import write_startup_script
from wsltools.troubleshoot import troubleshoot
from wsltools.types import (
  CancelledByUser,
  GenerateConfig,
  ProfileKind,
  TroubleshootConfig,
  UnknownProfileError,
  UpdateConfig,
  UserConfig,
  ValidateConfig,
)
from wsltools.update import run_update
from wsltools.user import setup_user
from wsltools.utils import load_defaults
from wsltools.validations import validate_cli_arguments

console = Console()

VERSION = "archwsl 0.1.0"


class IndentedHelpFormatter(argparse.RawDescriptionHelpFormatter):
  def __init__(self, prog: str, **kwargs) -> None:
    super().__init__(prog, max_help_position=30, width=80, **kwargs)

  @override
  def _format_action_invocation(self, action: argparse.Action) -> str:
    options = action.option_strings
    if not options:
      return super()._format_action_invocation(action)

    parts: list[str] = []
    if len(options) == 1:
      parts.append(f"{'':4}{options[0]}")

    else:
      parts.append(f"{', '.join(options)}")

    if action.nargs != 0:
      default_metavar = self._get_default_metavar_for_optional(action)
      parts[-1] += f" {self._format_args(action, default_metavar)}"

    return parts[-1]


class ArgumentParser(argparse.ArgumentParser):
  """Argument parser that reports usage errors with exit status 1."""

  @override
  def error(self, message: str) -> NoReturn:
    console.print(f"[red]\\[ERROR][/] {escape(message)}")
    self.print_usage(sys.stderr)
    sys.exit(1)


def _add_generate_parser(subparsers: "argparse._SubParsersAction[ArgumentParser]") -> None:
  parser = subparsers.add_parser(
    "generate",
    formatter_class=IndentedHelpFormatter,
    help="generate a wsl.conf profile",
    description="Generate optimized wsl.conf configurations for different use cases.",
    epilog=dedent("""
      Profiles:
        development, gaming, server, minimal, desktop, custom

      Examples:
        %(prog)s development              # Generate development config
        %(prog)s -o /tmp gaming           # Generate gaming config to /tmp
        %(prog)s --startup server         # Server config with startup script
        %(prog)s -i custom                # Interactive custom configuration
    """),
  )

  _ = parser.add_argument("profile", metavar="PROFILE", nargs="?", help="profile to generate")
  _ = parser.add_argument(
    "-o", "--output", metavar="DIR", default=".", help="output directory [default: %(default)s]", dest="output_dir"
  )
  _ = parser.add_argument("-s", "--startup", action="store_true", help="also generate a startup script", dest="startup")
  _ = parser.add_argument("-l", "--list", action="store_true", help="list available profiles", dest="list_only")
  _ = parser.add_argument("-i", "--interactive", action="store_true", help="interactive mode", dest="interactive")
  _ = parser.add_argument("--stdout", action="store_true", help="print the configuration instead of writing it")
  parser.set_defaults(subparser=parser)

  custom = parser.add_argument_group("custom profile options")
  _ = custom.add_argument("--automount", action=argparse.BooleanOptionalAction, default=True, help="mount Windows drives")
  _ = custom.add_argument("--interop", action=argparse.BooleanOptionalAction, default=True, help="Windows interop")
  _ = custom.add_argument(
    "--append-windows-path", action=argparse.BooleanOptionalAction, default=False, help="append the Windows PATH"
  )
  _ = custom.add_argument("--systemd", action=argparse.BooleanOptionalAction, default=True, help="boot with systemd")
  _ = custom.add_argument("--boot-command", metavar="CMD", default="", help="command to run at boot")


def _add_validate_parser(subparsers: "argparse._SubParsersAction[ArgumentParser]") -> None:
  parser = subparsers.add_parser(
    "validate",
    formatter_class=IndentedHelpFormatter,
    help="validate the build tree and environment",
    description="Validate the build process and check for common issues.",
    epilog=dedent("""
      Examples:
        %(prog)s --check-only             # Run all checks without building
        %(prog)s --build                  # Run full build with validation
        %(prog)s --system --docker        # Check system and Docker setup only
    """),
  )

  _ = parser.add_argument(
    "-C", "--directory", metavar="DIR", default=".", help="project directory [default: %(default)s]", dest="directory"
  )
  _ = parser.add_argument("-c", "--check-only", action="store_true", help="only run checks without building")
  _ = parser.add_argument("-b", "--build", action="store_true", help="run full build with validation")
  _ = parser.add_argument("-s", "--system", action="store_true", help="check system requirements only")
  _ = parser.add_argument("-p", "--project", action="store_true", help="check project structure only")
  _ = parser.add_argument("-f", "--config", action="store_true", help="check configurations only")
  _ = parser.add_argument("-d", "--docker", action="store_true", help="test Docker setup only")
  _ = parser.add_argument("-a", "--artifacts", action="store_true", help="validate artifacts only")
  _ = parser.add_argument("-v", "--verbose", action="store_true", help="enable verbose output")


def _add_user_parser(subparsers: "argparse._SubParsersAction[ArgumentParser]") -> None:
  parser = subparsers.add_parser(
    "setup-user",
    formatter_class=IndentedHelpFormatter,
    help="create a user and make it the WSL default",
    description="Automate user creation and configuration for ArchWSL2.",
    epilog=dedent("""
      Examples:
        %(prog)s myuser
        %(prog)s -p mypass -s -d myuser
        %(prog)s --dry --ssh --dev myuser
    """),
  )

  _ = parser.add_argument("username", metavar="USERNAME", help="name of the account to create")
  _ = parser.add_argument("-p", "--password", metavar="PASSWORD", help="user password (prompted if omitted)")
  _ = parser.add_argument("-s", "--ssh", action="store_true", help="set up SSH keys for the user")
  _ = parser.add_argument("-d", "--dev", action="store_true", help="set up a development environment")
  _ = parser.add_argument(
    "--wsl-conf", metavar="PATH", default="/etc/wsl.conf", help="wsl.conf to update [default: %(default)s]"
  )
  _ = parser.add_argument("--dry", action="store_true", help="print commands and file writes instead of running them")


def _add_troubleshoot_parser(subparsers: "argparse._SubParsersAction[ArgumentParser]") -> None:
  parser = subparsers.add_parser(
    "troubleshoot",
    formatter_class=IndentedHelpFormatter,
    help="diagnose common ArchWSL2 issues",
    description="Diagnose and help resolve common ArchWSL2 issues.",
    epilog=dedent("""
      Examples:
        %(prog)s                          # Full troubleshooting
        %(prog)s --quick                  # Quick diagnostics
        %(prog)s --network                # Network troubleshooting
        %(prog)s --collect-only           # Collect diagnostics only
    """),
  )

  modes = parser.add_mutually_exclusive_group()
  _ = modes.add_argument("-q", "--quick", action="store_const", const="quick", dest="mode", help="quick diagnostics only")
  _ = modes.add_argument("-f", "--full", action="store_const", const="full", dest="mode", help="comprehensive diagnostics")
  _ = modes.add_argument("-n", "--network", action="store_const", const="network", dest="mode", help="network issues")
  _ = modes.add_argument("-s", "--services", action="store_const", const="services", dest="mode", help="service issues")
  _ = modes.add_argument("-p", "--packages", action="store_const", const="packages", dest="mode", help="package issues")
  _ = modes.add_argument("-g", "--graphics", action="store_const", const="graphics", dest="mode", help="graphics issues")
  parser.set_defaults(mode="full")

  _ = parser.add_argument("-c", "--collect-only", action="store_true", help="only collect diagnostics, no fixes")
  _ = parser.add_argument("-o", "--output", metavar="DIR", help="keep generated files in DIR", dest="output_dir")
  _ = parser.add_argument("-r", "--report", action="store_true", help="generate detailed report")
  _ = parser.add_argument(
    "-C", "--directory", metavar="DIR", default=".", help="project directory for log and report [default: %(default)s]"
  )


def _add_update_parser(subparsers: "argparse._SubParsersAction[ArgumentParser]") -> None:
  parser = subparsers.add_parser(
    "update",
    formatter_class=IndentedHelpFormatter,
    help="update base image and launcher dependencies",
    description="Update base Docker images and project dependencies.",
    epilog=dedent("""
      Examples:
        %(prog)s                          # Full update process
        %(prog)s --docker-only            # Update Docker image only
        %(prog)s --backup --validate      # Update with backup and validation
        %(prog)s --force                  # Update without confirmation
    """),
  )

  only = parser.add_mutually_exclusive_group()
  _ = only.add_argument("-d", "--docker-only", action="store_const", const="docker", dest="only", help="Docker image only")
  _ = only.add_argument("-w", "--wsldl-only", action="store_const", const="wsldl", dest="only", help="wsldl only")
  _ = only.add_argument("-p", "--packages-only", action="store_const", const="packages", dest="only", help="packages only")
  _ = only.add_argument("-s", "--scripts-only", action="store_const", const="scripts", dest="only", help="scripts only")

  _ = parser.add_argument("-b", "--backup", action="store_true", help="create backup before updating")
  _ = parser.add_argument("-v", "--validate", action="store_true", help="validate updates after applying")
  _ = parser.add_argument("-r", "--report", action="store_true", help="generate update report")
  _ = parser.add_argument("-f", "--force", action="store_true", help="update without confirmation")
  _ = parser.add_argument("-l", "--log", metavar="FILE", help="custom log file location", dest="log_file")
  _ = parser.add_argument(
    "-C", "--directory", metavar="DIR", default=".", help="project directory [default: %(default)s]"
  )


def _create_argument_parser() -> ArgumentParser:
  """Create and configure the argument parser."""
  parser = ArgumentParser(
    prog="archwsl",
    formatter_class=IndentedHelpFormatter,
    description=dedent("""
      Tooling for the ArchWSL2 distribution: generate wsl.conf profiles,
      validate the build tree, set up users, troubleshoot a running
      instance and keep build dependencies current.
    """),
  )

  _ = parser.add_argument("--version", action="version", version=VERSION)

  subparsers = parser.add_subparsers(dest="command", metavar="COMMAND", required=True)
  _add_generate_parser(subparsers)
  _add_validate_parser(subparsers)
  _add_user_parser(subparsers)
  _add_troubleshoot_parser(subparsers)
  _add_update_parser(subparsers)
  return parser


def _create_generate_config(args: Namespace) -> GenerateConfig:
  """Create a typed GenerateConfig from an argparse Namespace."""
  return GenerateConfig(
    output_dir=str(args.output_dir),
    profile=getattr(args, "profile", None),
    startup=bool(args.startup),
    list_only=bool(args.list_only),
    interactive=bool(args.interactive),
    stdout=bool(args.stdout),
    automount=bool(args.automount),
    interop=bool(args.interop),
    append_windows_path=bool(args.append_windows_path),
    systemd=bool(args.systemd),
    boot_command=str(args.boot_command),
  )


def _show_config_options() -> None:
  console.print("[cyan]Available Configuration Templates:[/]")
  console.print()
  for i, (kind, data) in enumerate(list_profiles(), start=1):
    console.print(f"{i}. {kind.value:<13} - {data['description']}")
    for highlight in data["highlights"]:  # type: ignore[union-attr]
      console.print(f"   • {highlight}")
    console.print()


def _select_profile() -> ProfileKind:
  profiles = [kind for kind, _ in list_profiles()]
  choices = [str(i) for i in range(1, len(profiles) + 1)]
  selection = IntegerPrompt.ask(f"Select configuration type (1-{len(profiles)})", choices=choices)
  return profiles[selection - 1]


def _custom_flags_given(config: GenerateConfig) -> bool:
  defaults = CustomOptions()
  return (
    config.automount != defaults.automount
    or config.interop != defaults.interop
    or config.append_windows_path != defaults.append_windows_path
    or config.systemd != defaults.systemd
    or config.boot_command != defaults.boot_command
  )


def run_generate(config: GenerateConfig, parser: argparse.ArgumentParser, reporter: Reporter) -> int:
  if config.list_only:
    _show_config_options()
    return 0

  errors = validate_cli_arguments(boot_command=config.boot_command)
  if errors:
    for err in errors:
      reporter.error(err)
    return 1

  if config.profile is not None:
    try:
      kind = parse_profile(config.profile)

    except UnknownProfileError as e:
      reporter.error(str(e))
      parser.print_usage(sys.stderr)
      return 1

  elif config.interactive:
    _show_config_options()
    kind = _select_profile()

  else:
    reporter.error("Configuration type is required")
    parser.print_usage(sys.stderr)
    return 1

  if _custom_flags_given(config):
    if kind is not ProfileKind.CUSTOM:
      reporter.error("Custom options only apply to the custom profile")
      return 1
    if config.interactive:
      reporter.error("Custom options cannot be combined with --interactive")
      return 1

  if config.stdout and config.startup:
    reporter.error("--startup writes a file and cannot be combined with --stdout")
    return 1

  options = None
  if kind is ProfileKind.CUSTOM:
    if config.interactive:
      options = ask_custom_options()
    else:
      options = CustomOptions(
        automount=config.automount,
        interop=config.interop,
        append_windows_path=config.append_windows_path,
        systemd=config.systemd,
        boot_command=config.boot_command,
      )

  content = generate(kind, options)

  if config.stdout:
    sys.stdout.write(content)
    return 0

  reporter.info(f"Generating {kind.value} configuration...")
  output_dir = Path(config.output_dir)
  output_dir.mkdir(parents=True, exist_ok=True)
  config_file = output_dir / "wsl.conf"
  _ = config_file.write_text(content, encoding="utf-8")
  reporter.success(f"Configuration generated: {config_file}")

  if config.startup:
    script_file = write_startup_script(kind, output_dir)
    reporter.success(f"Created startup script: {script_file}")

  reporter.info("To use this configuration:")
  reporter.info(f"1. Copy {config_file} to /etc/wsl.conf in your ArchWSL2 instance")
  reporter.info("2. Restart WSL: wsl --shutdown")
  reporter.info("3. Restart your ArchWSL2 instance")
  return 0


def main(argv: list[str] | None = None) -> int:
  """Main entry point; returns the process exit status."""
  parser = _create_argument_parser()
  args = parser.parse_args(argv)
  reporter = Reporter()

  match args.command:
    case "generate":
      try:
        return run_generate(_create_generate_config(args), args.subparser, reporter)

      except CancelledByUser as e:
        reporter.error(str(e))
        return 1

    case "validate":
      config = ValidateConfig(
        directory=str(args.directory),
        check_only=bool(args.check_only),
        build=bool(args.build),
        system=bool(args.system),
        project=bool(args.project),
        config=bool(args.config),
        docker=bool(args.docker),
        artifacts=bool(args.artifacts),
        verbose=bool(args.verbose),
      )
      return run_validation(config, load_defaults(), reporter)

    case "setup-user":
      user_config = UserConfig(
        username=str(args.username),
        password=args.password,
        ssh=bool(args.ssh),
        dev=bool(args.dev),
        wsl_conf=str(args.wsl_conf),
        dry=bool(args.dry),
      )
      return setup_user(user_config, reporter)

    case "troubleshoot":
      ts_config = TroubleshootConfig(
        mode=str(args.mode),
        collect_only=bool(args.collect_only),
        output_dir=args.output_dir,
        report=bool(args.report),
        directory=str(args.directory),
      )
      root = Path(ts_config.directory)
      with RunContext(
        load_defaults(),
        project_root=root,
        log_path=root / "troubleshoot.log",
        work_dir=ts_config.output_dir,
        session="ArchWSL2 Troubleshooting Session",
      ) as ctx:
        return troubleshoot(ts_config, ctx)

    case "update":
      only = args.only
      update_config = UpdateConfig(
        docker=only in (None, "docker"),
        wsldl=only in (None, "wsldl"),
        packages=only in (None, "packages"),
        scripts=only in (None, "scripts"),
        backup=bool(args.backup),
        validate=bool(args.validate),
        report=bool(args.report),
        force=bool(args.force),
        log_file=args.log_file,
        directory=str(args.directory),
      )
      root = Path(update_config.directory)
      with RunContext(
        load_defaults(),
        project_root=root,
        log_path=update_config.log_file or root / "update.log",
        session="ArchWSL2 Dependency Update",
      ) as ctx:
        return run_update(update_config, ctx)

  parser.print_usage(sys.stderr)
  return 1


def run() -> None:
  try:
    sys.exit(main())

  except KeyboardInterrupt:
    console.print("\n[prompt.invalid]Interrupted. Exiting...[/]")
    sys.exit(1)

  except Exception as e:
    console.print(f"\n[prompt.invalid]Fatal error: {escape(str(e))}[/]")
    sys.exit(1)


if __name__ == "__main__":
  run()
