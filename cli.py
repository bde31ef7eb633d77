#!/usr/bin/env python3
"""
Command-line access to the Lightsail control API operations.

Examples:
    python cli.py regions
    python cli.py instances --region eu-west-1 --profile prod
    python cli.py action changeip --region eu-west-1 --profile prod --name web-1
"""
import argparse
import json
import sys

from config import get_config
from credentials import get_dns_accounts
from handler import REGIONS, summarize_instance
from logger_config import get_logger
from services.dns_sync_service import DNSSyncService
from services.instance_actions import InstanceAction, run_action
from services.lightsail_service import LightsailService
from utils.decorators import json_default
from utils.exceptions import ProviderError, ValidationError

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Lightsail instance control")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("regions", help="List supported regions")

    instances = subparsers.add_parser("instances", help="List instances of a region")
    instances.add_argument("--region", "-r", required=True, choices=REGIONS)
    instances.add_argument("--profile", "-p", default="default", help="Credential profile")

    action = subparsers.add_parser("action", help="Run an action against one instance")
    action.add_argument("action", choices=[a.value for a in InstanceAction])
    action.add_argument("--region", "-r", required=True, choices=REGIONS)
    action.add_argument("--profile", "-p", default="default", help="Credential profile")
    action.add_argument("--name", "-n", required=True, help="Instance name")

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        get_config()
        if args.command == "regions":
            result = list(REGIONS)
        elif args.command == "instances":
            lightsail = LightsailService(args.region, args.profile)
            result = [summarize_instance(i) for i in lightsail.list_instances()]
        else:
            instance_action = InstanceAction(args.action)
            lightsail = LightsailService(args.region, args.profile)
            dns_sync = None
            if instance_action is InstanceAction.CHANGEIP:
                dns_sync = DNSSyncService(account_loader=get_dns_accounts)
            result = run_action(instance_action, lightsail, args.name, dns_sync)
    except (ValueError, ValidationError, ProviderError) as e:
        logger.error(str(e))
        return 1

    print(json.dumps(result, indent=2, default=json_default))
    return 0


if __name__ == "__main__":
    sys.exit(main())
