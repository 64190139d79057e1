#!/usr/bin/env python3
"""
Tests for the chbuild command line: build, plan and check.

Run with: python3 -m pytest chbuild/commands/test_commands.py
"""

import io
import json
import os
import tempfile
import unittest
from unittest.mock import patch

from chbuild.build_scripts.build_utils import load_chbuild_config
from chbuild.cli import Cli
from chbuild.commands.build import Build
from chbuild.commands.check import Check
from chbuild.commands.plan import Plan
from chbuild.utils.context.context import CliContext
from chbuild.utils.context.errors import CompilerInvocationError, ConfigError
from chbuild.utils.context.namespace import CliNameSpace
from chbuild.utils.context.result import CliResult

LINUX = "x86_64-unknown-linux-gnu"


class CommandTestCase(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.project_dir = self.tmp.name
        self.out_dir = os.path.join(self.project_dir, "out")

    def tearDown(self):
        self.tmp.cleanup()

    def make_context(self, **environ):
        return CliContext(environ=environ, project_dir=self.project_dir)

    def write_sources(self, *names):
        src_dir = os.path.join(self.project_dir, "src")
        os.makedirs(src_dir, exist_ok=True)
        for name in names:
            with open(os.path.join(src_dir, name), "w") as f:
                f.write("/* helper */\n")


class TestBuild(CommandTestCase):
    """Test the build command end to end with the invoker mocked."""

    @patch("chbuild.commands.build.BuildInvoker.compile")
    @patch("sys.stdout", new_callable=io.StringIO)
    def test_build_prints_link_directives(self, mock_stdout, mock_compile):
        mock_compile.return_value = CliResult.success(os.path.join(self.out_dir, "lib_rust_crypto_helpers.a"))
        context = self.make_context(TARGET=LINUX, HOST=LINUX, OUT_DIR=self.out_dir)

        Build().exec(context, CliNameSpace())

        output = mock_stdout.getvalue()
        self.assertIn(f"cargo:rustc-link-search=native={self.out_dir}", output)
        self.assertIn("cargo:rustc-link-lib=static=_rust_crypto_helpers", output)
        self.assertIn("cargo:rerun-if-env-changed=NDK_HOME", output)
        config = mock_compile.call_args[0][0]
        self.assertEqual(config.compiler_override, "cc")

    @patch("sys.stderr", new_callable=io.StringIO)
    def test_missing_target_exits(self, mock_stderr):
        with self.assertRaises(SystemExit) as context:
            Build().exec(self.make_context(HOST=LINUX, OUT_DIR=self.out_dir), CliNameSpace())
        self.assertEqual(context.exception.code, 1)
        self.assertIn("TARGET", mock_stderr.getvalue())

    @patch("chbuild.commands.build.BuildInvoker")
    @patch("sys.stderr", new_callable=io.StringIO)
    def test_missing_ndk_home_never_compiles(self, mock_stderr, mock_invoker):
        context = self.make_context(TARGET="aarch64-linux-android", HOST=LINUX, OUT_DIR=self.out_dir)
        with self.assertRaises(SystemExit) as exit_context:
            Build().exec(context, CliNameSpace())
        self.assertEqual(exit_context.exception.code, 1)
        self.assertIn("NDK_HOME", mock_stderr.getvalue())
        mock_invoker.assert_not_called()

    @patch("sys.stderr", new_callable=io.StringIO)
    def test_missing_out_dir_exits(self, mock_stderr):
        with self.assertRaises(SystemExit):
            Build().exec(self.make_context(TARGET=LINUX, HOST=LINUX), CliNameSpace())
        self.assertIn("OUT_DIR", mock_stderr.getvalue())

    @patch("chbuild.build_scripts.build_invoker.exec_command")
    @patch("sys.stderr", new_callable=io.StringIO)
    def test_unusable_out_dir_exits(self, mock_stderr, mock_exec):
        blocker = os.path.join(self.project_dir, "file")
        with open(blocker, "w") as f:
            f.write("not a directory")
        context = self.make_context(TARGET=LINUX, HOST=LINUX, OUT_DIR=os.path.join(blocker, "out"))
        with self.assertRaises(SystemExit) as exit_context:
            Build().exec(context, CliNameSpace())
        self.assertEqual(exit_context.exception.code, 1)
        self.assertIn("cannot prepare", mock_stderr.getvalue())
        mock_exec.assert_not_called()

    def test_description_mentions_verbose_variable(self):
        self.assertIn("CHBUILD_VERBOSE", Build().description())
        self.assertIn("CHBUILD_VERBOSE", Check().description())

    @patch("chbuild.commands.build.BuildInvoker.compile")
    @patch("sys.stderr", new_callable=io.StringIO)
    def test_compiler_output_reaches_stderr(self, mock_stderr, mock_compile):
        error = CompilerInvocationError(["cc", "-c"], 1, "util_helpers.c:3: error: unknown type")
        mock_compile.return_value = CliResult.failure(error)
        context = self.make_context(TARGET=LINUX, HOST=LINUX, OUT_DIR=self.out_dir)
        with self.assertRaises(SystemExit) as exit_context:
            Build().exec(context, CliNameSpace())
        self.assertEqual(exit_context.exception.code, 1)
        self.assertIn("util_helpers.c:3: error: unknown type", mock_stderr.getvalue())

    @patch("chbuild.build_scripts.platform_identity.platform.system", return_value="Linux")
    @patch("chbuild.commands.build.BuildInvoker")
    def test_android_path_goes_to_invoker_only(self, mock_invoker, mock_system):
        mock_invoker.return_value.compile.return_value = CliResult.success("lib.a")
        mock_invoker.return_value.link_directives.return_value = []
        context = self.make_context(
            TARGET="aarch64-linux-android",
            HOST=LINUX,
            OUT_DIR=self.out_dir,
            NDK_HOME="/ndk",
            PATH="/usr/bin",
        )
        before = os.environ.get("PATH")

        Build().exec(context, CliNameSpace())

        environ = mock_invoker.call_args[0][1]
        self.assertEqual(
            environ["PATH"].split(":"),
            [
                "/usr/bin",
                "/ndk/toolchains/aarch64-linux-android-4.9/prebuilt/linux-x86_64/bin",
                "/ndk/toolchains/arm-linux-androideabi-4.9/prebuilt/linux-x86_64/bin",
                "/ndk/toolchains/x86-4.9/prebuilt/linux-x86_64/bin",
            ],
        )
        self.assertEqual(context.environ["PATH"], "/usr/bin")
        self.assertEqual(os.environ.get("PATH"), before)


class TestConfigFile(CommandTestCase):
    """Test CHBUILD.toml handling."""

    def write_config(self, text):
        with open(os.path.join(self.project_dir, "CHBUILD.toml"), "w") as f:
            f.write(text)

    def test_defaults_without_file(self):
        config = load_chbuild_config(self.project_dir)
        self.assertEqual(config, {"SRC_DIR": "src", "CFLAGS": []})

    def test_values_from_file(self):
        self.write_config('[build]\nsrc_dir = "csrc"\ncflags = ["-Wall", "-O2"]\n')
        config = load_chbuild_config(self.project_dir)
        self.assertEqual(config["SRC_DIR"], "csrc")
        self.assertEqual(config["CFLAGS"], ["-Wall", "-O2"])

    def test_invalid_file(self):
        self.write_config("[build\n")
        with self.assertRaises(ConfigError):
            load_chbuild_config(self.project_dir)

    def test_src_dir_reaches_plan(self):
        self.write_config('[build]\nsrc_dir = "csrc"\n')
        result = Build().prepare(self.make_context(TARGET=LINUX, HOST=LINUX))
        identity, build_config, build_plan = result.get_value()
        self.assertEqual(
            build_plan.config.source_files[0],
            os.path.join(self.project_dir, "csrc", "util_helpers.c"),
        )


class TestPlan(CommandTestCase):
    @patch("sys.stdout", new_callable=io.StringIO)
    def test_prints_json(self, mock_stdout):
        context = self.make_context(TARGET="x86_64-pc-windows-msvc", HOST="x86_64-pc-windows-msvc")
        Plan().exec(context, CliNameSpace())
        data = json.loads(mock_stdout.getvalue())
        self.assertEqual(data["target"], "x86_64-pc-windows-msvc")
        self.assertEqual(data["config"]["defines"], {"X64": None})
        self.assertTrue(data["config"]["source_files"][0].endswith("util_helpers.asm"))
        self.assertIsNone(data["search_path"])


@patch("sys.stdout", new_callable=io.StringIO)
class TestCheck(CommandTestCase):
    @patch("chbuild.commands.check.shutil.which", return_value="/usr/bin/tool")
    def test_ready(self, mock_which, mock_stdout):
        self.write_sources("util_helpers.c", "aesni_helpers.c")
        context = self.make_context(TARGET=LINUX, HOST=LINUX, OUT_DIR=self.out_dir)
        Check().exec(context, CliNameSpace(verbose=True))
        self.assertIn("READY", mock_stdout.getvalue())
        checked = [call[0][0] for call in mock_which.call_args_list]
        self.assertEqual(checked, ["cc", "ar"])

    @patch("chbuild.commands.check.shutil.which", return_value="/usr/bin/tool")
    def test_missing_sources(self, mock_which, mock_stdout):
        context = self.make_context(TARGET=LINUX, HOST=LINUX, OUT_DIR=self.out_dir)
        with self.assertRaises(SystemExit) as exit_context:
            Check().exec(context, CliNameSpace(verbose=False))
        self.assertEqual(exit_context.exception.code, 1)
        self.assertIn("NOT READY", mock_stdout.getvalue())

    @patch("chbuild.commands.check.shutil.which", return_value="/usr/bin/tool")
    def test_msvc_checks_assembler(self, mock_which, mock_stdout):
        self.write_sources("util_helpers.asm", "aesni_helpers.asm")
        context = self.make_context(TARGET="x86_64-pc-windows-msvc", HOST="x86_64-pc-windows-msvc", OUT_DIR=self.out_dir)
        Check().exec(context, CliNameSpace(verbose=False))
        checked = [call[0][0] for call in mock_which.call_args_list]
        self.assertEqual(checked, ["ml64.exe", "lib.exe"])

    def test_missing_target(self, mock_stdout):
        with self.assertRaises(SystemExit):
            Check().exec(self.make_context(HOST=LINUX), CliNameSpace(verbose=False))
        self.assertIn("TARGET", mock_stdout.getvalue())


class TestCli(unittest.TestCase):
    def test_command_list(self):
        self.assertEqual(Cli().get_command_list(), ["build", "check", "plan"])

    def test_default_subcommand_is_build(self):
        with patch("sys.argv", ["chbuild"]):
            self.assertEqual(Cli().cli().subcommand, "build")

    def test_explicit_subcommand(self):
        with patch("sys.argv", ["chbuild", "plan"]):
            self.assertEqual(Cli().cli().subcommand, "plan")

    def test_load_command(self):
        self.assertIsInstance(Cli().load_command("plan"), Plan)
        self.assertIsInstance(Cli().load_command("build"), Build)


if __name__ == "__main__":
    unittest.main()
