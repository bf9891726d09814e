"""
Command Line Interface Module

This module provides the command-line interface for reading power supply
telemetry and controlling boot and power state through the BMC.
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from ..config import DEFAULT_CONFIG_PATH, ConfigError, build_classifier, load_config
from ..ipmi import BMCClient, BootDevice, ChassisControl, IPMICommander, IPMIError

logger = logging.getLogger(__name__)

POWER_ACTIONS = {
    "off": ChassisControl.POWER_DOWN,
    "on": ChassisControl.POWER_UP,
    "cycle": ChassisControl.POWER_CYCLE,
    "reset": ChassisControl.HARD_RESET,
    "diag": ChassisControl.PULSE_DIAG,
    "soft": ChassisControl.SOFT_SHUTDOWN,
}


def _byte(value: str) -> int:
    """argparse type for a byte given in decimal or 0x hex"""
    try:
        number = int(value, 0)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid byte value: {value}")
    if not 0 <= number <= 0xFF:
        raise argparse.ArgumentTypeError(f"byte value out of range: {value}")
    return number


class CLI:
    """Command-line interface handler"""

    def __init__(self):
        """Initialize CLI handler"""
        self.parser = self._create_parser()
        self.client: Optional[BMCClient] = None

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create command-line argument parser

        Returns:
            Configured argument parser
        """
        parser = argparse.ArgumentParser(
            description="Superbmc - Supermicro BMC power supply and boot control"
        )

        parser.add_argument(
            "-c", "--config",
            help="Path to configuration file",
            default=DEFAULT_CONFIG_PATH
        )

        parser.add_argument(
            "-v", "--verbose",
            action="store_true",
            help="Enable debug logging"
        )

        subparsers = parser.add_subparsers(dest="command", required=True)

        psu = subparsers.add_parser("psu", help="Read power supply telemetry")
        psu.add_argument("address", type=_byte, help="Power supply I2C address (e.g. 0x78)")
        psu.add_argument("--bus", type=_byte, help="Override the PMBus bus number")
        psu.add_argument("--json", action="store_true", help="Print JSON output")

        boot = subparsers.add_parser("boot", help="Set the next boot device")
        boot.add_argument(
            "device",
            choices=[d.name.lower() for d in BootDevice],
            help="Boot device"
        )

        subparsers.add_parser("info", help="Show BMC device identity")

        power = subparsers.add_parser("power", help="Chassis power control")
        power.add_argument("action", choices=sorted(POWER_ACTIONS))

        return parser

    def _create_client(self, config) -> BMCClient:
        return BMCClient(
            IPMICommander.from_config(config),
            bus=config["pmbus"]["bus"],
            classifier=build_classifier(config)
        )

    def _show_psu(self, args) -> None:
        reading = self.client.get_power_supply_info(args.address, bus=args.bus)
        if args.json:
            print(json.dumps(reading.to_dict(), indent=2))
            return

        print(f"Serial Number:   {reading.serial_number}")
        print(f"Model Number:    {reading.module_number}")
        print(f"Revision:        {reading.revision}")
        print(f"PMBus Revision:  0x{reading.pmbus_revision:02x}")
        print(f"Current Sharing: {reading.cur_sharing_control}")
        if reading.status_supported:
            print(f"Status:          {', '.join(reading.status) or '-'}")
        else:
            print("Status:          not decoded for this address")
        print(f"Input:           {reading.input_voltage:.2f} V  {reading.input_current:.2f} A  {reading.input_power:.1f} W")
        print(f"Output:          {reading.output_voltage:.2f} V  {reading.output_current:.2f} A  {reading.output_power:.1f} W")
        print(f"Temperatures:    {reading.temperature1:.1f}°C  {reading.temperature2:.1f}°C")
        print(f"Fans:            {reading.fan1:.0f} RPM  {reading.fan2:.0f} RPM")

    def _show_info(self) -> None:
        info = self.client.device_id()
        print(f"Device ID:        {info.device_id}")
        print(f"Device Revision:  {info.device_revision}")
        print(f"Firmware:         {info.firmware_major}.{info.firmware_minor:02d}")
        print(f"IPMI Version:     {info.ipmi_version}")
        print(f"Manufacturer ID:  {info.manufacturer_id}")
        print(f"Product ID:       {info.product_id}")

    def run(self, argv: Optional[List[str]] = None) -> int:
        """Run the CLI interface

        Returns:
            Process exit code
        """
        args = self.parser.parse_args(argv)

        logging.basicConfig(
            level=logging.DEBUG if args.verbose else logging.WARNING,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

        try:
            config = load_config(args.config)
            self.client = self._create_client(config)

            if args.command == "psu":
                self._show_psu(args)
            elif args.command == "boot":
                device = BootDevice[args.device.upper()]
                self.client.set_boot_device(device)
                print(f"Next boot device set to {device.name.lower()}")
            elif args.command == "info":
                self._show_info()
            elif args.command == "power":
                self.client.chassis_control(POWER_ACTIONS[args.action])
                print(f"Chassis power {args.action} sent")

        except (IPMIError, ConfigError) as e:
            logger.error(f"Error: {e}")
            return 1

        return 0


def main() -> None:
    """Main entry point"""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
