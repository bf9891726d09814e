"""
Boot Device Configuration Module

This module switches the BMC's next-boot device through the Set System
Boot Options command (IPMI v2.0 section 28.12, table 28-14).

The set-in-progress parameter acts as a lock on the boot options. It is
taken before the write when the BMC supports it and always released
afterwards, whether the boot flags write succeeded or not.
"""

import logging
from enum import Enum

from .commander import IPMICommander, IPMIError, NETFN_CHASSIS

logger = logging.getLogger(__name__)

CMD_SET_SYSTEM_BOOT_OPTIONS = 0x08

# Boot option parameter selectors
BOOT_PARAM_SET_IN_PROGRESS = 0x00
BOOT_PARAM_INFO_ACK = 0x04
BOOT_PARAM_BOOT_FLAGS = 0x05

# set-in-progress values
SET_COMPLETE = 0x00
SET_IN_PROGRESS = 0x01
COMMIT_WRITE = 0x02


class BootDevice(Enum):
    """Boot device selector (boot flags data byte 2)"""
    NONE = 0x00
    PXE = 0x04
    DISK = 0x08
    SAFE = 0x0C
    DIAG = 0x10
    CDROM = 0x14
    BIOS = 0x18
    REMOTE_FLOPPY = 0x1C
    REMOTE_CDROM = 0x20
    REMOTE_PRIMARY = 0x24
    REMOTE_DISK = 0x2C
    FLOPPY = 0x3C


class BootSequenceState(Enum):
    """States of one boot device change"""
    IDLE = "idle"
    PROGRESS_STARTED = "progress_started"
    PROGRESS_UNSUPPORTED = "progress_unsupported"
    COMMITTING = "committing"
    COMMITTED = "committed"
    FAILED = "failed"


class BootSequencer:
    """Runs a single boot device change against the BMC.

    A sequencer instance is used for one change only; create a new one per
    call. The sequence is:

    1. set-in-progress = in progress. A failure here means the BMC does not
       implement the lock, and every later progress write is skipped.
    2. boot info acknowledge. A failure aborts the change.
    3. boot flags with the requested device. A failure aborts the change.
    4. set-in-progress = commit-write, only after step 3 succeeded.
    5. set-in-progress = set-complete, whenever step 1 succeeded.

    Writes in steps 4 and 5 (and the release after a failed step 2) are best
    effort: their errors are logged and never replace the error of the step
    that failed.

    Attributes:
        state: Current BootSequenceState
    """

    def __init__(self, commander: IPMICommander):
        self.commander = commander
        self.state = BootSequenceState.IDLE

    def _set_boot_param(self, param: int, *data: int) -> None:
        self.commander.send(NETFN_CHASSIS, CMD_SET_SYSTEM_BOOT_OPTIONS, bytes([param, *data]))

    def _best_effort(self, value: int) -> None:
        try:
            self._set_boot_param(BOOT_PARAM_SET_IN_PROGRESS, value)
        except IPMIError as e:
            logger.warning(f"Ignoring failed set-in-progress write 0x{value:02x}: {e}")

    @property
    def _holds_progress(self) -> bool:
        return self.state in (BootSequenceState.PROGRESS_STARTED, BootSequenceState.COMMITTING)

    def _begin(self) -> None:
        if self.state != BootSequenceState.IDLE:
            raise RuntimeError(f"Boot sequence already run (state {self.state.value})")
        try:
            self._set_boot_param(BOOT_PARAM_SET_IN_PROGRESS, SET_IN_PROGRESS)
            self.state = BootSequenceState.PROGRESS_STARTED
        except IPMIError as e:
            logger.info(f"set-in-progress not supported, continuing without it: {e}")
            self.state = BootSequenceState.PROGRESS_UNSUPPORTED

    def run(self, device: BootDevice) -> None:
        """Switch the next boot device.

        Args:
            device: Boot device to select

        Raises:
            IPMIError: The first error from the info acknowledge or boot flags
                write, unmodified
        """
        self._begin()
        uses_progress = self._holds_progress
        try:
            self._set_boot_param(BOOT_PARAM_INFO_ACK, 0x01, 0x01)
            self._set_boot_param(BOOT_PARAM_BOOT_FLAGS, 0x80, device.value, 0x00, 0x00, 0x00)
            if uses_progress:
                self.state = BootSequenceState.COMMITTING
                self._best_effort(COMMIT_WRITE)
        except IPMIError:
            self.state = BootSequenceState.FAILED
            raise
        finally:
            if uses_progress:
                self._best_effort(SET_COMPLETE)

        self.state = BootSequenceState.COMMITTED
        logger.info(f"Next boot device set to {device.name}")
