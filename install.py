#!/usr/bin/env python3
# filename: vds-provisioner/install.py
# -*- coding: utf-8 -*-
"""
Entry point for the VDS provisioner.
"""

import argparse
import importlib
import logging
import os
import subprocess
import sys
from typing import Iterable, List, Optional

from actions.domain_actions import PROJECT_TYPES, add_domain
from actions.errors import ProvisioningError
from actions.laravel_actions import install_project, project_log_file
from common.core_utils import setup_logging
from installer.config import COMPONENT_GROUPS
from installer.config_loader import load_app_settings
from installer.config_models import AppSettings
from installer.orchestrator import ComponentOrchestrator

LOGGER_NAME = "vds_provisioner"


def load_all_components(logger: logging.Logger) -> None:
    """Import every component's installer and configurator module to register them."""
    import installer.components

    components_dir = installer.components.__path__[0]
    for component_name in sorted(os.listdir(components_dir)):
        item_path = os.path.join(components_dir, component_name)
        if not os.path.isdir(item_path) or component_name.startswith("__"):
            continue
        for suffix in ("installer", "configurator"):
            module_name = f"installer.components.{component_name}.{component_name}_{suffix}"
            try:
                importlib.import_module(module_name)
            except ModuleNotFoundError as e:
                if e.name != module_name:
                    raise
                logger.debug(f"No {suffix} module found for {component_name}")


def _global_parser() -> argparse.ArgumentParser:
    global_parser = argparse.ArgumentParser(add_help=False)
    global_parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose output"
    )
    global_parser.add_argument(
        "--config", dest="config_file", default="config.yaml",
        help="YAML configuration file (default: ./config.yaml)",
    )
    global_parser.add_argument("--admin-user", help="Administrative user name")
    global_parser.add_argument("--php-version", help="Pin the PHP MAJOR.MINOR version")
    global_parser.add_argument("--server-fqdn", help="FQDN used instead of 'hostname -f'")
    global_parser.add_argument("--credentials-file", help="Credentials file path")
    global_parser.add_argument("--certbot-email", help="Let's Encrypt registration email")
    global_parser.add_argument("--log-file", help="Log file path")
    global_parser.add_argument("--log-prefix", help="Prefix for log lines")
    return global_parser


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    all_args = args if args is not None else sys.argv[1:]

    # Global flags may appear anywhere in the command line.
    global_parser = _global_parser()
    global_args, remaining_args = global_parser.parse_known_args(all_args)

    parser = argparse.ArgumentParser(
        prog="vds-provision",
        description="Provisioner for an nginx + PHP-FPM + MySQL VDS",
        parents=[global_parser],
    )
    subparsers = parser.add_subparsers(
        dest="command", help="Command to execute", required=True
    )

    list_parser = subparsers.add_parser(
        "list", help="List available components and groups"
    )
    list_parser.add_argument(
        "components", nargs="*", help="Groups to expand (all components if omitted)"
    )

    status_parser = subparsers.add_parser("status", help="Check status of components")
    status_parser.add_argument(
        "components", nargs="*", help="Components to check (all if omitted)"
    )

    for name, help_text in (
        ("install", "Install components (without configuring)"),
        ("configure", "Configure components (without installing)"),
        ("apply", "Install and configure components"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("components", nargs="+", help="Components or groups")
        sub.add_argument(
            "--force", action="store_true",
            help="Re-run steps even if the component is already installed or configured",
        )

    uninstall_parser = subparsers.add_parser("uninstall", help="Uninstall components")
    uninstall_parser.add_argument("components", nargs="+", help="Components or groups")

    unconfigure_parser = subparsers.add_parser(
        "unconfigure", help="Revert component configuration"
    )
    unconfigure_parser.add_argument("components", nargs="+", help="Components or groups")

    full_parser = subparsers.add_parser(
        "full",
        help="Install and configure the 'base' group, then reload services",
    )
    full_parser.add_argument(
        "--force", action="store_true",
        help="Re-run install and configure steps of all components",
    )

    domain_parser = subparsers.add_parser(
        "add-domain", help="Add an nginx vhost with a Let's Encrypt certificate"
    )
    domain_parser.add_argument("domain", nargs="?", help="Domain name, e.g. example.com")
    domain_parser.add_argument(
        "project_type", nargs="?", default="default", choices=PROJECT_TYPES,
        help="Project type (default: default)",
    )

    project_parser = subparsers.add_parser(
        "install-project", help="Bootstrap a Laravel project for a domain"
    )
    project_parser.add_argument(
        "project_domain", nargs="?", help="Project domain (default: laravel.domain)"
    )
    project_parser.add_argument("--db-prefix", help="Database suffix, db_<prefix>")
    project_parser.add_argument("--email", help="Let's Encrypt email for the project")
    project_parser.add_argument(
        "--laravel-php-version", help="PHP version for the project (default 8.1)"
    )
    project_parser.add_argument("--node-major", help="Node.js major version (default 22)")

    parsed_args = parser.parse_args(remaining_args)

    # Combine the global arguments with the subcommand arguments.
    for key, value in vars(global_args).items():
        if value is not None and value is not False:
            setattr(parsed_args, key, value)
    return parsed_args


def expand_components(
    names: Iterable[str], registered: Iterable[str], logger: logging.Logger
) -> List[str]:
    """Expand groups, drop duplicates (keeping order) and skip unregistered names."""
    registered = set(registered)
    expanded: List[str] = []
    for name in names:
        members = COMPONENT_GROUPS.get(name, [name])
        if name in COMPONENT_GROUPS:
            logger.info(f"Using components from group '{name}': {', '.join(members)}")
        for member in members:
            if member in expanded:
                continue
            if member not in registered:
                logger.warning(f"Component '{member}' is not registered and will be skipped.")
                continue
            expanded.append(member)
    return expanded


def _log_file_for(parsed_args: argparse.Namespace, app_settings: AppSettings) -> str:
    if parsed_args.log_file:
        return parsed_args.log_file
    if parsed_args.command == "add-domain":
        return app_settings.domain.log_file
    if parsed_args.command == "install-project":
        domain = parsed_args.project_domain or app_settings.laravel.domain
        if domain:
            return project_log_file(app_settings, domain)
    return app_settings.log_file


def _print_status(status_results, logger: logging.Logger) -> None:
    logger.info("Component Status:")
    if not status_results:
        logger.info("No components to display status for.")
        return
    col_width = max(max(len(name) for name in status_results), len("Component")) + 2
    header = f"{'Component':<{col_width}}{'Installed':<12}{'Configured':<12}"
    logger.info(header)
    logger.info("-" * len(header))
    for name, status in status_results.items():
        installed = "✅ Yes" if status["installed"] else "❌ No"
        configured = "✅ Yes" if status["configured"] else "❌ No"
        logger.info(f"{name:<{col_width}}{installed:<12}{configured:<12}")


def run_command_line(
    parsed_args: argparse.Namespace,
    app_settings: AppSettings,
    logger: logging.Logger,
) -> int:
    orchestrator = ComponentOrchestrator(app_settings, logger)
    registered = orchestrator.get_available_components()
    command = parsed_args.command

    if command == "list":
        if parsed_args.components:
            for group in parsed_args.components:
                if group not in COMPONENT_GROUPS:
                    logger.info(f"'{group}' is not a recognized component group.")
                    continue
                logger.info(f"Components in group '{group}' (in installation order):")
                for i, comp in enumerate(COMPONENT_GROUPS[group], 1):
                    logger.info(f"  {i}. {comp}")
            return 0
        logger.info("Available components:")
        for name, component_class in sorted(registered.items()):
            description = component_class.metadata.get("description", "")
            logger.info(f"  - {name}: {description}")
        for group, members in COMPONENT_GROUPS.items():
            logger.info(f"  - {group} (group with {len(members)} components)")
        return 0

    if command == "status":
        names = parsed_args.components or sorted(registered)
        _print_status(orchestrator.check_status(names), logger)
        return 0

    if command == "add-domain":
        if not parsed_args.domain:
            logger.error("Usage: vds-provision add-domain domain.name [laravel]")
            return 1
        try:
            add_domain(parsed_args.domain, parsed_args.project_type, app_settings, logger)
        except ValueError as e:
            logger.error(f"{e}. Usage: vds-provision add-domain domain.name [laravel]")
            return 1
        return 0

    if command == "install-project":
        install_project(app_settings, logger, domain=parsed_args.project_domain)
        return 0

    if command == "full":
        names = expand_components(["base"], registered, logger)
        logger.info("Starting full system provisioning...")
        if not orchestrator.install(names, force=parsed_args.force):
            logger.error("Full provisioning failed during the installation phase.")
            return 1
        if not orchestrator.configure(names, force=parsed_args.force):
            logger.error("Full provisioning failed during the configuration phase.")
            return 1
        orchestrator.finalize()
        logger.info(
            f"{app_settings.symbols.get('rocket', '🚀')} Full provisioning completed successfully."
        )
        return 0

    names = expand_components(parsed_args.components, registered, logger)
    if not names:
        logger.error("No registered components to process.")
        return 1

    if command == "install":
        success = orchestrator.install(names, force=parsed_args.force)
    elif command == "configure":
        success = orchestrator.configure(names, force=parsed_args.force)
    elif command == "apply":
        success = orchestrator.install(names, force=parsed_args.force) and orchestrator.configure(
            names, force=parsed_args.force
        )
    elif command == "uninstall":
        success = orchestrator.uninstall(names)
    elif command == "unconfigure":
        success = orchestrator.unconfigure(names)
    else:
        logger.error(f"Unknown command: {command}")
        return 1

    if not success:
        logger.error(f"'{command}' failed.")
        return 1
    logger.info(f"'{command}' completed successfully.")
    return 0


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point for the VDS provisioner."""
    # Handle 'help' command as a synonym for '--help'
    if args is None:
        if len(sys.argv) > 1 and sys.argv[1] == "help":
            sys.argv[1] = "--help"
    elif args and args[0] == "help":
        args[0] = "--help"

    parsed_args = parse_args(args)
    app_settings = load_app_settings(parsed_args, parsed_args.config_file)

    setup_logging(
        log_level=logging.DEBUG if parsed_args.verbose else logging.INFO,
        log_file=_log_file_for(parsed_args, app_settings),
        log_prefix=app_settings.log_prefix,
        symbols=app_settings.symbols,
    )
    logger = logging.getLogger(LOGGER_NAME)

    logger.debug("Loading all available components...")
    load_all_components(logger)

    try:
        return run_command_line(parsed_args, app_settings, logger)
    except ProvisioningError as e:
        logger.error(str(e))
        return 1
    except subprocess.CalledProcessError as e:
        logger.error(f"Command failed with exit code {e.returncode}: {e.cmd}")
        return 1
    except Exception as e:
        logger.exception(f"An unexpected error occurred: {str(e)}")
        return 1


def cli_main() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli_main()
