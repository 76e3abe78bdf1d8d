"""Command builder tests.

Test coverage:
- Derived-command mode per target extension
- Manual-command tokenization (quotes, escapes, unterminated quotes)
- Java target detection used by the shutdown coordinator
"""

from __future__ import annotations

import pytest

from anyjar.local.config import ServerConfig
from anyjar.local.supervisor.command import build_command, is_java_target, parse_command


def derived(target: str, ram_max: str = "1G", ram_min: str = "1G") -> ServerConfig:
    return ServerConfig(ram_max=ram_max, ram_min=ram_min, server_target=target, use_options=True)


def manual(command: str) -> ServerConfig:
    return ServerConfig(server_target="ignored.jar", use_options=False, manual_startup_command=command)


class TestDerivedCommand:
    """Command derived from server_target and the RAM options."""

    def test_jar(self):
        assert build_command(derived("app.jar", "4G", "2G")) == [
            "java", "-Xmx4G", "-Xms2G", "-jar", "app.jar", "nogui",
        ]

    def test_jar_extension_is_case_insensitive(self):
        assert build_command(derived("Server.JAR")) == [
            "java", "-Xmx1G", "-Xms1G", "-jar", "Server.JAR", "nogui",
        ]

    def test_shell_script(self):
        assert build_command(derived("start.sh")) == ["bash", "start.sh"]

    @pytest.mark.parametrize("target", ["start.bat", "start.cmd", "START.BAT"])
    def test_batch_file(self, target):
        assert build_command(derived(target)) == ["cmd", "/c", target]

    def test_exe(self):
        assert build_command(derived("server.exe")) == ["server.exe"]

    @pytest.mark.parametrize("target", ["server", "server.py", "./bin/run", "archive.tar.gz"])
    def test_unknown_extension_runs_directly(self, target):
        assert build_command(derived(target)) == [target]

    def test_target_path_is_passed_through(self):
        assert build_command(derived("servers/paper.jar"))[4] == "servers/paper.jar"

    def test_only_file_name_is_classified(self):
        assert build_command(derived("scripts.jar.d/run")) == ["scripts.jar.d/run"]

    def test_trailing_separator_still_a_jar(self):
        config = derived("srv.jar/")
        assert build_command(config)[0] == "java"
        assert is_java_target(config)

    def test_manual_command_ignored_in_derived_mode(self):
        config = ServerConfig(server_target="run.sh", use_options=True, manual_startup_command="echo nope")
        assert build_command(config) == ["bash", "run.sh"]

    def test_is_pure(self):
        config = derived("app.jar")
        first = build_command(config)
        second = build_command(config)
        assert first == second
        assert first is not second


class TestManualCommand:
    """Tokenization of manual_startup_command."""

    def test_double_quotes(self):
        assert parse_command('foo "bar baz" qux') == ["foo", "bar baz", "qux"]

    def test_single_quotes(self):
        assert parse_command("a 'b c' d") == ["a", "b c", "d"]

    def test_unterminated_quote_emits_partial_token(self):
        assert parse_command('a "b') == ["a", "b"]

    def test_unterminated_quote_keeps_spaces(self):
        assert parse_command("run 'x y") == ["run", "x y"]

    def test_other_quote_inside_quotes_is_literal(self):
        assert parse_command("""python -c "print('hi')" """) == ["python", "-c", "print('hi')"]

    def test_escaped_quote_is_literal_and_backslash_kept(self):
        assert parse_command('say \\"hello world\\"') == ["say", '\\"hello', 'world\\"']

    def test_backslash_elsewhere_is_kept(self):
        assert parse_command("C:\\srv\\run.exe --x") == ["C:\\srv\\run.exe", "--x"]

    def test_repeated_spaces_are_collapsed(self):
        assert parse_command("  java   -jar  server.jar  ") == ["java", "-jar", "server.jar"]

    def test_adjacent_quoted_parts_join(self):
        assert parse_command('--name="my server"') == ["--name=my server"]

    def test_empty_quotes_produce_no_token(self):
        assert parse_command('a "" b') == ["a", "b"]

    def test_tabs_are_not_separators(self):
        assert parse_command("a\tb c") == ["a\tb", "c"]

    def test_build_command_uses_tokenizer(self):
        assert build_command(manual('java -Xmx2G -jar "my server.jar" nogui')) == [
            "java", "-Xmx2G", "-jar", "my server.jar", "nogui",
        ]


class TestJavaTarget:
    """Which configurations get the cooperative stop command."""

    @pytest.mark.parametrize(
        "config, expected",
        [
            (derived("app.jar"), True),
            (derived("APP.Jar"), True),
            (derived("run.sh"), False),
            (derived("run.bat"), False),
            (derived("server.exe"), False),
            (derived("server"), False),
            (derived("srv.jar/"), True),
            (manual("java -jar app.jar"), False),
        ],
    )
    def test_is_java_target(self, config, expected):
        assert is_java_target(config) is expected
