"""
Tests for the IPMI Commander module
"""

import pytest
import subprocess
from unittest.mock import Mock, patch

from superbmc.ipmi.commander import (
    IPMICommander,
    IPMIError,
    IPMIConnectionError,
    IPMICommandError,
    MalformedFrameError,
)

RSP_ERROR = (
    "Unable to send RAW command (channel=0x0 netfn=0x6 lun=0x0 cmd=0x52 rsp=0x83): "
    "NAK on Write\n"
)


def process_error(stderr):
    return subprocess.CalledProcessError(1, "ipmitool", stderr=stderr)


@pytest.fixture
def mock_run():
    with patch("superbmc.ipmi.commander.subprocess.run") as mock_run:
        yield mock_run


@pytest.fixture
def commander():
    return IPMICommander()


class TestSend:
    """Test raw request execution"""

    def test_local_command(self, commander, mock_run):
        """Local access goes through sudo ipmitool"""
        mock_run.return_value = Mock(stdout=" 50\n", returncode=0)
        frame = commander.send(0x06, 0x52, bytes([0x07, 0xB0, 0x01, 0xD0]))
        assert frame == b"\x00\x50"
        args = mock_run.call_args.args[0]
        assert args == ["sudo", "ipmitool", "raw", "0x06", "0x52", "0x07", "0xb0", "0x01", "0xd0"]

    def test_remote_command(self, mock_run):
        """Remote access passes the connection parameters"""
        mock_run.return_value = Mock(stdout="", returncode=0)
        commander = IPMICommander(host="10.0.0.5", username="admin", password="secret")
        assert commander.send(0x00, 0x02, b"\x01") == b"\x00"
        args = mock_run.call_args.args[0]
        assert args[:9] == ["ipmitool", "-I", "lanplus", "-H", "10.0.0.5", "-U", "admin", "-P", "secret"]
        assert args[9:] == ["raw", "0x00", "0x02", "0x01"]

    def test_multiline_output(self, commander, mock_run):
        mock_run.return_value = Mock(stdout=" 20 01 03 45 02 bf\n 7c 2a 00 57 09\n", returncode=0)
        frame = commander.send(0x06, 0x01)
        assert frame == bytes([0x00, 0x20, 0x01, 0x03, 0x45, 0x02, 0xBF, 0x7C, 0x2A, 0x00, 0x57, 0x09])

    def test_completion_code_error(self, commander, mock_run):
        mock_run.side_effect = process_error(RSP_ERROR)
        with pytest.raises(IPMICommandError) as exc_info:
            commander.send(0x06, 0x52, bytes([0x07, 0xB0, 0x01, 0xD0]))
        assert exc_info.value.completion_code == 0x83

    def test_generic_failure(self, commander, mock_run):
        mock_run.side_effect = process_error("Invalid command\n")
        with pytest.raises(IPMICommandError) as exc_info:
            commander.send(0x06, 0x01)
        assert exc_info.value.completion_code is None

    def test_connection_error(self, commander, mock_run):
        mock_run.side_effect = process_error("Error in open session response message\n")
        with pytest.raises(IPMIConnectionError):
            commander.send(0x06, 0x01)

    def test_missing_ipmitool(self, commander, mock_run):
        mock_run.side_effect = FileNotFoundError("ipmitool")
        with pytest.raises(IPMIConnectionError):
            commander.send(0x06, 0x01)

    def test_undecodable_output(self, commander, mock_run):
        """Unexpected failures surface as IPMIError"""
        mock_run.side_effect = UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")
        with pytest.raises(IPMIError) as exc_info:
            commander.send(0x06, 0x01)
        assert isinstance(exc_info.value.__cause__, UnicodeDecodeError)

    def test_unparseable_output(self, commander, mock_run):
        mock_run.return_value = Mock(stdout="garbage", returncode=0)
        with pytest.raises(MalformedFrameError):
            commander.send(0x06, 0x01)

    def test_byte_out_of_range(self, commander, mock_run):
        with pytest.raises(ValueError):
            commander.send(0x100, 0x01)
        mock_run.assert_not_called()


class TestBusyRetry:
    """Test transport-level retry while the BMC is busy"""

    def test_retry_then_success(self, mock_run):
        commander = IPMICommander(retries=3, retry_delay=0.5)
        mock_run.side_effect = [
            process_error("Device or resource busy\n"),
            Mock(stdout=" 01\n", returncode=0),
        ]
        with patch("superbmc.ipmi.commander.time.sleep") as mock_sleep:
            assert commander.send(0x06, 0x01) == b"\x00\x01"
        assert mock_run.call_count == 2
        mock_sleep.assert_called_once_with(0.5)

    def test_retries_exhausted(self, mock_run):
        commander = IPMICommander(retries=2, retry_delay=0)
        mock_run.side_effect = process_error("Device or resource busy\n")
        with patch("superbmc.ipmi.commander.time.sleep"):
            with pytest.raises(IPMICommandError):
                commander.send(0x06, 0x01)
        assert mock_run.call_count == 2

    def test_command_errors_not_retried(self, commander, mock_run):
        mock_run.side_effect = process_error(RSP_ERROR)
        with pytest.raises(IPMICommandError):
            commander.send(0x06, 0x01)
        assert mock_run.call_count == 1


class TestFromConfig:
    """Test construction from configuration"""

    def test_from_config(self):
        commander = IPMICommander.from_config({
            "ipmi": {"host": "bmc.example", "username": "u", "password": "p",
                     "interface": "lan", "retries": 5, "retry_delay": 2.0}
        })
        assert commander.host == "bmc.example"
        assert commander.username == "u"
        assert commander.password == "p"
        assert commander.interface == "lan"
        assert commander.retries == 5
        assert commander.retry_delay == 2.0

    def test_defaults(self):
        commander = IPMICommander.from_config({})
        assert commander.host == "localhost"
        assert commander.retries == 3
