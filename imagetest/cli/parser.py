"""
imagetest command-line interface.

A single entry point without subcommands: resolve the configuration, check
the environment, then run the selected scenarios in order.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from imagetest import __version__
from imagetest.cli.utils import print_error, print_report
from imagetest.config.parser import load_config
from imagetest.containers.scope import CleanupRegistry
from imagetest.core.exceptions import ImageTestError
from imagetest.core.locking import namespace_lock
from imagetest.runner.suite import TestRunner

logger = logging.getLogger(__name__)


class CLI:
    """imagetest command-line interface."""

    def __init__(self):
        """Initialize CLI with argument parser."""
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """
        Create the argument parser.

        Flags left unset (None) fall back to the environment and the YAML
        configuration file.
        """
        parser = argparse.ArgumentParser(
            prog="imagetest",
            description="imagetest - validate builder and runtime container images",
            epilog=(
                "Environment: IMAGE_NAME, RUNTIME_IMAGE_NAME, TEST_REMOTE_ONLY, "
                "DEBUG, TEST_DIR, CONTAINER_ENGINE, TEST_RUN_ID"
            ),
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        parser.add_argument(
            "--version", action="version", version=f"imagetest {__version__}"
        )
        parser.add_argument(
            "--verbose",
            "-v",
            action="store_true",
            default=None,
            help="Trace every step and external command",
        )
        parser.add_argument(
            "--quiet",
            "-q",
            action="store_true",
            help="Enable minimal output (errors only)",
        )
        parser.add_argument(
            "--config",
            type=Path,
            metavar="PATH",
            help="Path to configuration file (default: ./imagetest.yaml)",
        )
        parser.add_argument(
            "--image",
            dest="image_name",
            metavar="IMAGE",
            help="Builder image under test",
        )
        parser.add_argument(
            "--runtime-image",
            dest="runtime_image_name",
            metavar="IMAGE",
            help="Runtime image paired with the builder image",
        )
        parser.add_argument(
            "--remote-only",
            action="store_true",
            default=None,
            help="Run only the remote-repository scenario",
        )
        parser.add_argument(
            "--test-dir",
            type=Path,
            metavar="PATH",
            help="Directory holding the fixture applications",
        )
        parser.add_argument(
            "--engine",
            metavar="NAME",
            help="Container engine CLI (docker, podman)",
        )
        parser.add_argument(
            "--run-id",
            metavar="ID",
            help="Suffix for image and container names of this run",
        )
        parser.add_argument(
            "--list",
            action="store_true",
            help="List the selected scenarios and exit",
        )

        return parser

    def parse_args(self, args: Optional[List[str]] = None):
        return self.parser.parse_args(args)

    def run(self, args: Optional[List[str]] = None) -> int:
        """
        Run CLI with given arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Exit code (0 only if every scenario passed)
        """
        parsed_args = self.parse_args(args)

        try:
            config = load_config(
                parsed_args.config,
                overrides={
                    "image_name": parsed_args.image_name,
                    "runtime_image_name": parsed_args.runtime_image_name,
                    "remote_only": parsed_args.remote_only,
                    "verbose": parsed_args.verbose,
                    "test_dir": parsed_args.test_dir,
                    "engine": parsed_args.engine,
                    "run_id": parsed_args.run_id,
                },
            )
        except ImageTestError as e:
            print_error(str(e))
            return 1

        self._configure_logging(config.verbose, parsed_args.quiet)

        from imagetest.scenarios import suite

        cases = suite.select(remote_only=config.remote_only)

        if parsed_args.list:
            for case in cases:
                print(case.name)
            return 0

        registry = CleanupRegistry()
        try:
            with namespace_lock(config.engine, config.run_id):
                runner = TestRunner(config, registry=registry)
                runner.check_setup()
                report = runner.run(cases)
        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 130  # Standard exit code for SIGINT
        except ImageTestError as e:
            print_error(str(e))
            return 1
        except Exception as e:
            logger.error(f"Error: {e}")
            if config.verbose:
                import traceback

                traceback.print_exc()
            return 1
        finally:
            registry.cleanup_all()
            registry.restore_handlers()

        print_report(report)
        return report.exit_code

    def _configure_logging(self, verbose: bool, quiet: bool):
        """Configure logging based on verbose/quiet flags."""
        if verbose:
            level = logging.DEBUG
            format_str = "%(levelname)s [%(name)s] %(message)s"
        elif quiet:
            level = logging.ERROR
            format_str = "%(levelname)s: %(message)s"
        else:
            level = logging.INFO
            format_str = "%(message)s"

        logging.basicConfig(
            level=level,
            format=format_str,
            force=True,  # Reconfigure if already configured
        )


def main():
    """Main entry point for CLI."""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
