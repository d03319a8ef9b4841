# SPDX-License-Identifier: GPL-3.0-only
"""SMS Authenticator CLI"""

import argparse
import sys

from base_logger import get_logger
from sms_authenticator.code_generator import generate_code
from sms_authenticator.config import GatewayConfig
from sms_authenticator.exceptions import ConfigurationError, DeliveryError
from sms_authenticator.gateway import create_dispatcher

logger = get_logger("sms_authenticator.cli")


def generate(count):
    """Print sample codes."""
    for _ in range(count):
        print(generate_code())
    return 0


def send(phonenumber, message):
    """Send a test SMS with the environment configuration."""
    try:
        config = GatewayConfig.from_env()
        dispatcher = create_dispatcher(config)
    except ConfigurationError as error:
        logger.error("Invalid SMS configuration: %s", error)
        return 1

    try:
        dispatcher.send(phonenumber, message or f"Test code: {generate_code()}")
    except DeliveryError as error:
        logger.error("SMS not sent: %s", error.diagnostic)
        return 1
    finally:
        dispatcher.close()

    logger.info("Test SMS sent")
    return 0


def init_db():
    """Create the session note table."""
    from sms_authenticator.db_models import AuthNote
    from sms_authenticator.utils import create_tables

    create_tables([AuthNote])
    return 0


def main(argv=None):
    """Entry function"""

    parser = argparse.ArgumentParser(description="SMS Authenticator CLI")
    subparsers = parser.add_subparsers(dest="command", description="Expected commands")

    generate_parser = subparsers.add_parser("generate", help="Prints sample codes.")
    generate_parser.add_argument(
        "-c", "--count", type=int, default=1, help="Number of codes."
    )

    send_parser = subparsers.add_parser("send", help="Sends a test SMS.")
    send_parser.add_argument(
        "-n", "--phonenumber", type=str, help="Recipient phone number.", required=True
    )
    send_parser.add_argument("-m", "--message", type=str, help="Message text.")

    subparsers.add_parser("init-db", help="Creates the session note table.")

    args = parser.parse_args(argv)

    if args.command == "generate":
        return generate(args.count)
    if args.command == "send":
        return send(args.phonenumber, args.message)
    if args.command == "init-db":
        return init_db()

    parser.print_help()
    return 2


if __name__ == "__main__":
    sys.exit(main())
