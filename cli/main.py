import argparse
import json
import logging
import sys

from core.address import is_valid_address
from core.authz_scope import evaluate
from core.config import settings
from core.ranges import is_valid_range
from elk.adapter import ElasticsearchAdapter


def _print(obj):
    print(json.dumps(obj, indent=2, default=str))


def cmd_check(args):
    allow_ipv6 = args.ipv6 or settings.allow_ipv6_ranges
    decision = evaluate(args.ip, args.ranges.split(","), allow_ipv6=allow_ipv6)
    _print(
        {
            "ip": args.ip,
            "allowed": decision.matched,
            "matched_range": decision.matched_range,
            "skipped": list(decision.skipped),
            "errors": list(decision.errors),
        }
    )
    return 0 if decision.matched else 1


def cmd_validate_address(args):
    valid = is_valid_address(args.value)
    _print({"value": args.value, "valid": valid})
    return 0 if valid else 1


def cmd_validate_range(args):
    valid = is_valid_range(args.value, allow_ipv6=args.ipv6 or settings.allow_ipv6_ranges)
    _print({"value": args.value, "valid": valid})
    return 0 if valid else 1


def cmd_verify(args):
    invalid = {
        client_id: [r.strip() for r in ranges.split(",") if r.strip() and not is_valid_range(r, settings.allow_ipv6_ranges)]
        for client_id, ranges in settings.clients.items()
    }
    elk_ok = False
    if settings.elasticsearch_url:
        elk_ok = ElasticsearchAdapter().ping()
    _print(
        {
            "clients": len(settings.clients),
            "invalid_ranges": {k: v for k, v in invalid.items() if v},
            "elk": elk_ok,
        }
    )
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(description="Client IP allowlist checker")
    parser.add_argument("--log-level", default=settings.log_level, help="logging level")
    sub = parser.add_subparsers()

    p_check = sub.add_parser("check", help="Check an IP against comma-separated CIDR ranges")
    p_check.add_argument("ip")
    p_check.add_argument("ranges")
    p_check.add_argument("--ipv6", action="store_true", default=False, help="accept IPv6 ranges")
    p_check.set_defaults(func=cmd_check)

    p_addr = sub.add_parser("validate-address", help="Validate a literal IP address")
    p_addr.add_argument("value")
    p_addr.set_defaults(func=cmd_validate_address)

    p_range = sub.add_parser("validate-range", help="Validate CIDR notation")
    p_range.add_argument("value")
    p_range.add_argument("--ipv6", action="store_true", default=False, help="accept IPv6 ranges")
    p_range.set_defaults(func=cmd_validate_range)

    p_verify = sub.add_parser("verify", help="Config + ES connectivity check")
    p_verify.set_defaults(func=cmd_verify)

    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), stream=sys.stderr)
    if hasattr(args, "func"):
        return args.func(args)
    parser.print_help()
    return 2


if __name__ == "__main__":
    sys.exit(main())
