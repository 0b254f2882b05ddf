# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Command-line interface for advinstkit.

Commands:

    provision: Download, license and register Advanced Installer, then
        export AdvancedInstallerRoot, AdvancedInstallerMSBuildTargets and
        the binary directory on PATH for later build steps
    latest: Print the latest Advanced Installer version

Example:
    Provision with a floating license:
        ```bash
        $ advinstkit provision --advinst-version 22.0 --floating-license \\
            --license-host licenses.example.com --enable-com
        ```

    Provision from a GitHub Actions step (inputs come from INPUT_* variables):
        ```bash
        $ advinstkit provision
        ```

Exit Codes:

- 0: Success
- 1: Error (platform, configuration, download, extraction or licensing failure)

Note:
    This is the only module that mutates the process environment: exports
    happen after provisioning has fully succeeded. Verbose mode shows full
    tracebacks on errors for debugging.

"""

from __future__ import annotations

import argparse
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
import sys

from advinstkit import ci
from advinstkit.config import load_effective_config, runtime_settings
from advinstkit.core import provision_from_config
from advinstkit.exceptions import AdvinstError
from advinstkit.logging import get_logger, set_global_logger
from advinstkit.versions import get_latest


def _report_error(err: Exception, args: argparse.Namespace) -> int:
    ci.set_failed(str(err))
    if args.verbose or args.debug:
        import traceback

        traceback.print_exc()
    return 1


def cmd_provision(args: argparse.Namespace) -> int:
    """Handler for 'advinstkit provision' command.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code (0 for success, 1 for failure).

    Note:
        Exports AdvancedInstallerRoot and AdvancedInstallerMSBuildTargets and
        prepends the binary directory to PATH, for this process and (under
        GitHub Actions) for later workflow steps.

    """
    logger = get_logger(verbose=args.verbose, debug=args.debug)
    set_global_logger(logger)

    overrides = {
        "version": args.version,
        "license": args.license,
        "enable_com": args.enable_com,
        "floating_license": args.floating_license,
        "license_host": args.license_host,
        "license_port": args.license_port,
        "license_timeout": args.timeout,
        "cache_dir": str(args.cache_dir) if args.cache_dir else None,
    }

    try:
        config = load_effective_config(args.config, overrides=overrides)
        with ci.group("Advanced Installer Tool Deploy"):
            tool = provision_from_config(config)
    except AdvinstError as err:
        return _report_error(err, args)

    for name, value in tool.exported_variables().items():
        ci.export_variable(name, value)
    ci.add_path(tool.path_entry)

    print("=" * 70)
    print("PROVISION RESULTS")
    print("=" * 70)
    print(f"Version:          {tool.version}")
    print(f"Install Root:     {tool.install_root}")
    print(f"Binary:           {tool.binary_path}")
    print(f"MSBuild Targets:  {tool.msbuild_targets_path}")
    print("=" * 70)
    print()
    print("[SUCCESS] Advanced Installer is ready!")

    return 0


def cmd_latest(args: argparse.Namespace) -> int:
    """Handler for 'advinstkit latest' command.

    Returns:
        Exit code (0 for success, 1 for failure).
    """
    logger = get_logger(verbose=args.verbose, debug=args.debug)
    set_global_logger(logger)

    try:
        config = load_effective_config(args.config)
        latest = get_latest(runtime_settings(config)["versions_url"])
    except AdvinstError as err:
        return _report_error(err, args)

    print(latest)
    return 0


def _package_version() -> str:
    try:
        return version("advinstkit")
    except PackageNotFoundError:
        from advinstkit import __version__

        return __version__


def _add_common_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML config file with an 'advinst:' section",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show progress and high-level status updates",
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Show detailed debugging output (implies --verbose)",
    )


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the advinstkit CLI."""
    parser = argparse.ArgumentParser(
        prog="advinstkit",
        description="Provision a licensed Advanced Installer on a CI runner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"advinstkit {_package_version()}",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands",
        required=True,
    )

    # 'provision' command
    parser_provision = subparsers.add_parser(
        "provision",
        help="Download, license and register Advanced Installer",
        description="Get Advanced Installer from the tool cache (or download it), register a license, enable COM and export its paths.",
    )
    parser_provision.add_argument(
        "--advinst-version",
        dest="version",
        default=None,
        help="Advanced Installer version (default: latest release)",
    )
    parser_provision.add_argument(
        "--license",
        default=None,
        help="Fixed license key to register",
    )
    parser_provision.add_argument(
        "--enable-com",
        action="store_const",
        const=True,
        default=None,
        help="Register the COM automation interface",
    )
    parser_provision.add_argument(
        "--floating-license",
        action="store_const",
        const=True,
        default=None,
        help="Acquire a seat from a floating license server",
    )
    parser_provision.add_argument(
        "--license-host",
        default=None,
        help="Floating license server host",
    )
    parser_provision.add_argument(
        "--license-port",
        type=int,
        default=None,
        help="Floating license server port (default: 1024)",
    )
    parser_provision.add_argument(
        "--timeout",
        type=int,
        default=None,
        help="Seconds to keep trying for a floating license seat (default: 180)",
    )
    parser_provision.add_argument(
        "--cache-dir",
        type=Path,
        default=None,
        help="Tool cache directory (default: RUNNER_TOOL_CACHE or cache/tools)",
    )
    _add_common_flags(parser_provision)
    parser_provision.set_defaults(func=cmd_provision)

    # 'latest' command
    parser_latest = subparsers.add_parser(
        "latest",
        help="Print the latest Advanced Installer version",
        description="Query the Advanced Installer release feed for the newest version.",
    )
    _add_common_flags(parser_latest)
    parser_latest.set_defaults(func=cmd_latest)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the advinstkit CLI.

    This function is registered as the 'advinstkit' console script in pyproject.toml.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
