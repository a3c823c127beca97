#!/usr/bin/env python3
"""Main entry point for the FilteredFS filesystem.

This module handles:
- Source directory validation
- Rules file parsing into a frozen RuleSet
- FUSE filesystem mounting (always read-only)
- Cleanup on exit

SIGINT and SIGTERM are left to libfuse, which unmounts the filesystem and
returns from the FUSE main loop.

Example:
    >>> from filteredfs.main import run_filteredfs
    >>> run_filteredfs("/mnt/music", config, logger)
"""

import sys
from typing import Any, Dict, Optional

from fuse import FUSE

from filteredfs.core.constants import EXEC_NAME, ConfigKey, ExitCode
from filteredfs.core.validators import ValidationError, validate_source_directory
from filteredfs.fuse.operations import FilteredFSOperations
from filteredfs.infrastructure.config_manager import ConfigManager
from filteredfs.infrastructure.logger import Logger
from filteredfs.rules.engine import FilterEngine
from filteredfs.rules.ruleset import RuleSet, RulesError, load_rules


class FilteredFSMain:
    """
    Main class for FilteredFS filesystem management.

    Handles component lifecycle, FUSE mounting, and shutdown.
    """

    def __init__(self, mount_point: str, config: ConfigManager, logger: Logger):
        """
        Initialize FilteredFS main controller.

        Args:
            mount_point: Mount point directory
            config: Merged process settings
            logger: Logger instance
        """
        self.mount_point = mount_point
        self.config = config
        self.logger = logger

        self.rules: Optional[RuleSet] = None
        self.filter_engine: Optional[FilterEngine] = None
        self.fuse_ops: Optional[FilteredFSOperations] = None

    def initialize_components(self) -> None:
        """
        Build the RuleSet, FilterEngine and FilteredFSOperations.

        Raises:
            ValidationError: If the source directory is unusable
            RulesError: If the rules file cannot be used
        """
        source = validate_source_directory(self.config.get(ConfigKey.SOURCE))
        rules_file = self.config.get(ConfigKey.RULES_FILE)

        self.logger.info(f"Starting up. Using source: {source} and config: {rules_file}")

        self.rules = load_rules(
            rules_file,
            source_root=source,
            invert=self.config.get_bool(ConfigKey.INVERT),
            preserve_permissions=self.config.get_bool(ConfigKey.PRESERVE_PERMISSIONS),
            logger=self.logger,
        )

        self.filter_engine = FilterEngine(self.rules, logger=self.logger)
        self.fuse_ops = FilteredFSOperations(
            self.rules, filter_engine=self.filter_engine, logger=self.logger
        )

        self.logger.debug("All components initialized", **self.fuse_ops.get_stats())

    def _build_fuse_options(self) -> Dict[str, Any]:
        """
        Build FUSE mount options dictionary.

        The mount is always read-only; extra options from the settings
        cannot turn that off.
        """
        options: Dict[str, Any] = {"fsname": self.rules.source_root, "subtype": EXEC_NAME}

        if self.config.get_bool(ConfigKey.ALLOW_OTHER):
            options["allow_other"] = True

        options.update(self.config.get_all().get(ConfigKey.FUSE_OPTIONS) or {})

        options.pop("rw", None)
        options["ro"] = True

        return options

    def mount_filesystem(self) -> int:
        """
        Mount the FUSE filesystem (blocks until unmount).

        Returns:
            Exit code
        """
        self.logger.info(f"Mounting at: {self.mount_point}")

        fuse_options = self._build_fuse_options()
        self.logger.debug("FUSE options", **fuse_options)

        try:
            FUSE(
                self.fuse_ops,
                self.mount_point,
                foreground=self.config.get_bool(ConfigKey.FOREGROUND),
                **fuse_options,
            )
        except RuntimeError as e:
            self.logger.exception("FUSE mount failed", e)
            return ExitCode.FAILURE

        self.logger.info("FUSE unmounted successfully")
        return ExitCode.OK

    def cleanup(self) -> None:
        """Log final state on shutdown."""
        if self.fuse_ops:
            self.logger.debug("Final configuration", **self.fuse_ops.get_stats())
        self.logger.info("Cleanup complete")

    def run(self) -> int:
        """
        Run FilteredFS.

        Returns:
            Exit code (0 for success, non-zero for failure)
        """
        try:
            self.initialize_components()
        except ValidationError as e:
            self.logger.error(f"{EXEC_NAME}: {e}")
            return ExitCode.BAD_SOURCE
        except RulesError as e:
            self.logger.error(f"{EXEC_NAME}: {e.message}")
            self.logger.error(
                f"{EXEC_NAME}: Error parsing config file: {self.config.get(ConfigKey.RULES_FILE)}"
            )
            return ExitCode.BAD_RULES

        try:
            return self.mount_filesystem()

        except KeyboardInterrupt:
            self.logger.info("Interrupted by user")
            return ExitCode.INTERRUPTED

        finally:
            self.cleanup()


def run_filteredfs(mount_point: str, config: ConfigManager, logger: Logger) -> int:
    """
    Main entry point for running FilteredFS.

    Args:
        mount_point: Mount point directory
        config: Merged process settings
        logger: Logger instance

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    return FilteredFSMain(mount_point, config, logger).run()


def main():
    """
    Entry point when run as a module.

    Delegates to filteredfs.cli for argument parsing.
    """
    from filteredfs.cli import main as cli_main

    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
