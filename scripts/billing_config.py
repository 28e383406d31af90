import argparse

from petsitter_billing.db import SessionLocal
from petsitter_billing.schemas import BillingConfig
from petsitter_billing.services.billing_config import get_billing_config, save_billing_config


def print_config(config: BillingConfig) -> None:
    print(f"grace_days: {config.grace_days}")
    if not config.plans:
        print("plans: none configured")
        return
    for plan in config.plans:
        print(f"{plan.code}\t{plan.price_id}\t{plan.amount} {plan.currency}/{plan.interval}\t{plan.name}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Inspect or change the billing configuration")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("show", help="Print grace days and the plan catalog")

    grace = subparsers.add_parser("set-grace-days", help="Change the grace period length")
    grace.add_argument("days", type=int)
    grace.add_argument("--actor", default="cli")

    args = parser.parse_args()

    db = SessionLocal()
    try:
        if args.command == "show":
            print_config(get_billing_config(db))
            return 0

        if args.days < 0 or args.days > 90:
            print("Grace days must be between 0 and 90")
            return 1
        config = save_billing_config(db, actor=args.actor, grace_days=args.days)
        print_config(config)
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    raise SystemExit(main())
