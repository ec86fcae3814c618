"""Storefront management CLI.

Usage:
    python src/manage.py setup-db                      # Create all tables
    python src/manage.py drop-db                       # Drop all tables
    python src/manage.py repair-workflow ORD-2025-000123 [--actor ops]
"""

import argparse
import sys


def _domain():
    from storefront.domain import storefront

    storefront.init()
    return storefront


def setup_database():
    from storefront.utils.db import setup_db

    domain = _domain()
    print("Creating storefront database schema...")
    touched = setup_db(domain)
    print(f"  schema ready ({', '.join(touched) or 'no SQL providers configured'}).")


def drop_database():
    from storefront.utils.db import drop_db

    domain = _domain()
    print("Dropping storefront database schema...")
    touched = drop_db(domain)
    print(f"  schema dropped ({', '.join(touched) or 'no SQL providers configured'}).")


def repair_workflow(order_ref: str, actor: str):
    """Re-run workflow advancement for one order as a superuser."""
    from storefront.auth import Role
    from storefront.workflow.kickoff import RepairWorkflow

    domain = _domain()
    with domain.domain_context():
        outcome = domain.process(
            RepairWorkflow(order_ref=order_ref, actor_id=actor, actor_role=Role.SUPERUSER.value),
            asynchronous=False,
        )
    created = ", ".join(t["type"] for t in outcome["created_tasks"]) or "none"
    print(f"Order {order_ref}: created tasks: {created}; status: {outcome['order_status']}")
    if outcome["incidents"]:
        print(f"  incidents: {', '.join(outcome['incidents'])}")
        sys.exit(2)


def main():
    parser = argparse.ArgumentParser(description="Storefront management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    repair_parser = subparsers.add_parser("repair-workflow", help="Close workflow gaps for an order")
    repair_parser.add_argument("order", help="Order id or order number")
    repair_parser.add_argument("--actor", default="ops", help="Superuser id recorded on created tasks")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "repair-workflow":
        repair_workflow(args.order, args.actor)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
