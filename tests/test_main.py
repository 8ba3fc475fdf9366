"""Tests for CLI argument handling in main.py."""
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from clipmesh.clipboard import BackendError
from clipmesh.config import SyncConfig
from clipmesh.main import main
from clipmesh.server import ListenError


def invoke(args: list[str], env: dict[str, str] | None = None) -> tuple[object, list[SyncConfig]]:
    """Run the CLI with node startup replaced, returning result and configs."""
    configs: list[SyncConfig] = []
    runner = CliRunner()
    with patch("clipmesh.main._run_node", side_effect=configs.append):
        result = runner.invoke(main, args, env=env)
    return result, configs


class TestCLIArguments:
    """Tests for command-line argument validation."""

    def test_help_exits_with_code_0(self):
        """Test that --help exits cleanly with code 0."""
        runner = CliRunner()
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "--peers" in result.output
        assert "--key" in result.output

    def test_defaults(self):
        """Test no options gives an open node on the default port."""
        result, configs = invoke([])
        assert result.exit_code == 0
        assert configs == [SyncConfig()]

    def test_invalid_peer_exits_with_code_2(self):
        """Test a peer without a port gives a usage error."""
        result, configs = invoke(["--peers", "nohost"])
        assert result.exit_code == 2
        assert "host:port" in result.output
        assert configs == []

    def test_invalid_max_mb_exits_with_code_2(self):
        result, _ = invoke(["--max-mb", "0"])
        assert result.exit_code == 2

    def test_options_build_config(self):
        """Test every option lands in the node configuration."""
        result, configs = invoke(
            [
                "--port", "4040",
                "--peers", "10.0.0.2:3030,10.0.0.3:3030",
                "--peers", "10.0.0.2:3030",
                "--peers", "[::1]:5000",
                "--key", "  s3cret ",
                "--max-mb", "5",
                "--poll-interval", "0.5",
                "--host", "127.0.0.1",
                "--backend", "pyperclip",
            ]
        )
        assert result.exit_code == 0, result.output
        config = configs[0]
        assert config.port == 4040
        assert config.peers == ("10.0.0.2:3030", "10.0.0.3:3030", "[::1]:5000")
        assert config.key == "s3cret"
        assert config.max_mb == 5.0
        assert config.poll_interval == 0.5
        assert config.host == "127.0.0.1"
        assert config.backend == "pyperclip"

    def test_blank_key_means_open_mesh(self):
        result, configs = invoke(["--key", "   "])
        assert result.exit_code == 0
        assert configs[0].key is None

    def test_environment_variables(self):
        """Test CLIPMESH_* variables configure the node."""
        result, configs = invoke(
            [],
            env={
                "CLIPMESH_PORT": "5050",
                "CLIPMESH_PEERS": "a.local:3030,b.local:3030",
                "CLIPMESH_KEY": "envkey",
                "CLIPMESH_MAX_MB": "2.5",
            },
        )
        assert result.exit_code == 0, result.output
        config = configs[0]
        assert config.port == 5050
        assert config.peers == ("a.local:3030", "b.local:3030")
        assert config.key == "envkey"
        assert config.max_mb == 2.5

    def test_unknown_backend_exits_with_code_2(self):
        result, _ = invoke(["--backend", "xlib"])
        assert result.exit_code == 2


class TestStartupErrors:
    """Tests for fatal startup errors."""

    def test_listen_error_exits_with_code_1(self):
        """Test a port that cannot be bound exits 1 with a message."""
        runner = CliRunner()
        failing = AsyncMock(side_effect=ListenError("Cannot listen on 0.0.0.0:3030: in use"))
        with patch("clipmesh.node.run_node", failing):
            result = runner.invoke(main, [])
        assert result.exit_code == 1
        assert "Error: Cannot listen on 0.0.0.0:3030" in result.output

    def test_unknown_backend_at_startup_exits_with_code_1(self):
        """Test a backend rejected during node startup exits 1 with a message."""
        runner = CliRunner()
        failing = AsyncMock(side_effect=BackendError("Unknown clipboard backend: 'xlib'"))
        with patch("clipmesh.node.run_node", failing):
            result = runner.invoke(main, [])
        assert result.exit_code == 1
        assert "Error: Unknown clipboard backend" in result.output

    def test_unexpected_value_error_is_not_reported_as_startup_error(self):
        """Test a ValueError from inside the node propagates with its traceback."""
        runner = CliRunner()
        failing = AsyncMock(side_effect=ValueError("invalid literal for int()"))
        with patch("clipmesh.node.run_node", failing):
            result = runner.invoke(main, [])
        assert result.exit_code == 1
        assert isinstance(result.exception, ValueError)
        assert "Error:" not in result.output

    @pytest.mark.parametrize("flag", [[], ["--verbose"]])
    def test_verbose_flag_accepted(self, flag):
        result, configs = invoke(flag)
        assert result.exit_code == 0
        assert len(configs) == 1
