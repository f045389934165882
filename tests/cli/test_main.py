"""
Test main CLI functionality
"""

from click.testing import CliRunner

from topicloader import __version__
from topicloader.cli.main import cli


class TestMainCLI:
    """Test main CLI entry point"""

    def test_cli_help(self):
        """Test CLI help display"""
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "topicloader - Exported Topic Loader" in result.output
        assert "load" in result.output
        assert "schema" in result.output
        assert "config" in result.output

    def test_cli_version(self):
        """Test CLI version display"""
        runner = CliRunner()
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_cli_global_options(self):
        """Test global options are listed"""
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])

        assert "--verbose" in result.output
        assert "--no-color" in result.output
        assert "--config" in result.output

    def test_invalid_command(self):
        """Test invalid command handling"""
        runner = CliRunner()
        result = runner.invoke(cli, ["invalid-command"])

        assert result.exit_code != 0
        assert "No such command" in result.output

    def test_load_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["load", "--help"])

        assert result.exit_code == 0
        for option in ("--folder", "--database", "--workers", "--migrate", "--strict"):
            assert option in result.output

    def test_schema_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["schema", "--help"])

        assert result.exit_code == 0
        assert "migrate" in result.output
        assert "check" in result.output
