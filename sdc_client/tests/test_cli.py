"""
Unit tests for the sdc command line utilities.
"""
import json
from unittest.mock import MagicMock, patch

import pytest

from sdc_client import cli
from sdc_client.errors import KeyLoadIOError, SDCError
from sdc_client.schemas import Machine


@pytest.fixture
def mock_client():
    """Patch SDCClient in the CLI with a mock usable as a context manager."""
    client = MagicMock()
    with patch("sdc_client.cli.SDCClient") as client_cls:
        client_cls.return_value.__enter__.return_value = client
        yield client, client_cls


class TestCLI:
    """Test command dispatch and JSON output."""

    def test_list_machines(self, mock_client, capsys):
        client, _ = mock_client
        client.list_machines.return_value = [Machine(id="abc", name="web-1", state="running")]

        exit_code = cli.main(["--account", "bert", "list-machines"])

        assert exit_code == 0
        output = json.loads(capsys.readouterr().out)
        assert output[0]["id"] == "abc"
        assert output[0]["state"] == "running"

    def test_flags_build_config(self, mock_client):
        client, client_cls = mock_client
        client.list_machines.return_value = []

        cli.main([
            "--url", "http://sdc.local", "--account", "acme", "--user", "bert",
            "--key-id", "laptop", "--key", "/tmp/id_rsa", "list-machines",
        ])

        config = client_cls.call_args.args[0]
        assert config.url == "http://sdc.local"
        assert config.key_identifier == "/bert/keys/laptop"
        assert config.key_path == "/tmp/id_rsa"

    def test_stop_machine(self, mock_client, capsys):
        client, _ = mock_client

        exit_code = cli.main(["--account", "bert", "stop-machine", "abc"])

        assert exit_code == 0
        client.stop_machine.assert_called_once_with("abc")
        assert json.loads(capsys.readouterr().out) == {"id": "abc", "command": "stop-machine", "ok": True}

    def test_domain_error_output(self, mock_client, capsys):
        client, _ = mock_client
        client.get_machine.side_effect = SDCError("ResourceNotFound", "VM not found", status_code=404)

        exit_code = cli.main(["--account", "bert", "get-machine", "nope"])

        assert exit_code == 1
        assert json.loads(capsys.readouterr().out) == {"code": "ResourceNotFound", "message": "VM not found"}

    def test_other_errors_are_unknown(self, mock_client, capsys):
        client, _ = mock_client
        client.list_machines.side_effect = KeyLoadIOError("/nope/id_rsa", "No such file or directory")

        exit_code = cli.main(["--account", "bert", "list-machines"])

        assert exit_code == 1
        output = json.loads(capsys.readouterr().out)
        assert output["code"] == "Unknown"
        assert "/nope/id_rsa" in output["message"]

    def test_command_required(self):
        with pytest.raises(SystemExit):
            cli.main([])
