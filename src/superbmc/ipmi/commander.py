"""
IPMI Command Execution Module

This module provides a wrapper around ipmitool for sending raw IPMI
requests to a Supermicro BMC and returning the response frames.
"""

import subprocess
import logging
import re
import time
from typing import Optional, List, Dict, Any

logger = logging.getLogger(__name__)

# Network functions used by this package
NETFN_CHASSIS = 0x00
NETFN_APP = 0x06

# Pattern ipmitool uses when the BMC returns a non-zero completion code, e.g.
# "Unable to send RAW command (channel=0x0 netfn=0x6 lun=0x0 cmd=0x52 rsp=0xc1): Invalid command"
_RSP_PATTERN = re.compile(r"rsp=0x([0-9a-fA-F]{1,2})")


class IPMIError(Exception):
    """Base exception for IPMI-related errors"""
    pass


class IPMIConnectionError(IPMIError):
    """Raised when IPMI connection fails"""
    pass


class IPMICommandError(IPMIError):
    """Raised when an IPMI command fails

    Attributes:
        completion_code: Completion code returned by the BMC, or None when
            the failure did not carry one
    """

    def __init__(self, message: str, completion_code: Optional[int] = None):
        super().__init__(message)
        self.completion_code = completion_code


class MalformedFrameError(IPMIError):
    """Raised when a frame is too short to hold its header"""
    pass


class IPMICommander:
    """Handles raw IPMI request/response exchange through ipmitool"""

    def __init__(self, host: str = "localhost", username: str = "ADMIN",
                 password: str = "ADMIN", interface: str = "lanplus",
                 retries: int = 3, retry_delay: float = 1.0):
        """Initialize IPMI commander with connection details

        Args:
            host: IPMI host address ("localhost" uses the in-band interface)
            username: IPMI username
            password: IPMI password
            interface: IPMI interface type
            retries: Attempts made while the BMC reports itself busy
            retry_delay: Delay between attempts in seconds
        """
        self.host = host
        self.username = username
        self.password = password
        self.interface = interface
        self.retries = max(1, retries)
        self.retry_delay = retry_delay

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "IPMICommander":
        """Build a commander from the ``ipmi`` section of a loaded config"""
        ipmi = config.get("ipmi", {})
        return cls(
            host=ipmi.get("host", "localhost"),
            username=ipmi.get("username", "ADMIN"),
            password=ipmi.get("password", "ADMIN"),
            interface=ipmi.get("interface", "lanplus"),
            retries=ipmi.get("retries", 3),
            retry_delay=ipmi.get("retry_delay", 1.0),
        )

    def _base_command(self) -> List[str]:
        # For local access, just use ipmitool
        if self.host == "localhost":
            return ["sudo", "ipmitool"]
        # For remote access, include connection parameters
        return [
            "ipmitool", "-I", self.interface,
            "-H", self.host,
            "-U", self.username,
            "-P", self.password
        ]

    @staticmethod
    def _format_raw(netfn: int, cmd: int, data: bytes) -> List[str]:
        """Format a raw request as ipmitool arguments

        Raises:
            ValueError: If any field does not fit in a byte
        """
        fields = [netfn, cmd, *data]
        for value in fields:
            if not 0 <= value <= 0xFF:
                raise ValueError(f"Raw request byte out of range: {value}")
        return ["raw"] + [f"0x{value:02x}" for value in fields]

    @staticmethod
    def _parse_raw_output(output: str) -> bytes:
        """Parse ipmitool's whitespace separated hex dump into bytes

        Raises:
            MalformedFrameError: If the output is not a hex dump
        """
        try:
            return bytes(int(token, 16) for token in output.split())
        except ValueError as e:
            raise MalformedFrameError(f"Unparseable raw response: {output!r}") from e

    def send(self, netfn: int, cmd: int, data: bytes = b"") -> bytes:
        """Send a raw IPMI request and return the response frame

        The returned frame always starts with the completion code, followed by
        the response data, so it can be handed to a frame decoder unchanged.

        Args:
            netfn: Network function
            cmd: Command number
            data: Request data bytes

        Returns:
            Response frame ``[completion code][data...]``

        Raises:
            IPMIConnectionError: If the session cannot be opened
            IPMICommandError: If the BMC rejects the command
            MalformedFrameError: If the response cannot be parsed

        Examples:
            >>> commander = IPMICommander()
            >>> commander.send(0x06, 0x01).hex()
            '0020018102...'
        """
        full_cmd = self._base_command() + self._format_raw(netfn, cmd, bytes(data))

        last_error: Optional[str] = None
        for attempt in range(self.retries):
            if attempt > 0:
                time.sleep(self.retry_delay)
                logger.debug(f"Retrying IPMI command (attempt {attempt + 1}/{self.retries})")

            try:
                result = subprocess.run(
                    full_cmd,
                    capture_output=True,
                    text=True,
                    check=True
                )
            except subprocess.CalledProcessError as e:
                stderr = e.stderr or ""
                last_error = stderr.strip()
                if "Device or resource busy" in stderr:
                    logger.debug(f"IPMI device busy, retrying... ({attempt + 1}/{self.retries})")
                    continue
                if "Error in open session" in stderr:
                    raise IPMIConnectionError(f"Failed to connect to IPMI: {last_error}")
                match = _RSP_PATTERN.search(stderr)
                if match:
                    code = int(match.group(1), 16)
                    raise IPMICommandError(
                        f"Command 0x{netfn:02x} 0x{cmd:02x} failed with completion code 0x{code:02x}",
                        completion_code=code
                    )
                raise IPMICommandError(f"Command 0x{netfn:02x} 0x{cmd:02x} failed: {last_error}")
            except OSError as e:
                raise IPMIConnectionError(f"Failed to run ipmitool: {e}") from e
            except Exception as e:
                raise IPMIError(f"Unexpected error running ipmitool: {e}") from e

            response = self._parse_raw_output(result.stdout)
            logger.debug(f"raw 0x{netfn:02x} 0x{cmd:02x} {bytes(data).hex()} -> {response.hex()}")
            return bytes([0x00]) + response

        raise IPMICommandError(f"Command failed after {self.retries} attempts: {last_error}")
