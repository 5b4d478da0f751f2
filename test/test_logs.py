"""
Logging setup tests.
"""
import io
import logging
import unittest
from unittest import TestCase

from rich.console import Console
from rich.logging import RichHandler

from munin import logs


class TestInstall(TestCase):

    def setUp(self):
        self.logger = logging.getLogger("munin")
        self.level = self.logger.level
        self.console = Console(file=io.StringIO(), width=200, color_system=None)

    def tearDown(self):
        logs.uninstall()
        self.logger.setLevel(self.level)

    def testInstallAttachesRichHandler(self):
        handler = logs.install("DEBUG", console=self.console)
        self.assertIsInstance(handler, RichHandler)
        self.assertIn(handler, self.logger.handlers)
        self.assertEqual(self.logger.level, logging.DEBUG)

    def testRecordsReachTheConsole(self):
        logs.install("INFO", console=self.console)
        logging.getLogger("munin.commands").warning("overwriting existing built-in command: spawn")
        self.assertIn("overwriting existing built-in command: spawn", self.console.file.getvalue())

    def testReinstallReplacesHandler(self):
        first = logs.install(console=self.console)
        second = logs.install(console=self.console)
        self.assertNotIn(first, self.logger.handlers)
        self.assertEqual([handler for handler in self.logger.handlers if isinstance(handler, RichHandler)], [second])

    def testUninstall(self):
        handler = logs.install(console=self.console)
        logs.uninstall()
        self.assertNotIn(handler, self.logger.handlers)
        logs.uninstall()


if __name__ == "__main__":
    unittest.main()
