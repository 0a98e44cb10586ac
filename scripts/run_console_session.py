"""
Runs a console session against a live backend (RIDER_API_BASE_URL) and prints what a
dispatcher would see. Optionally assigns one order to watch the reconciliation happen.

    python scripts/run_console_session.py
    python scripts/run_console_session.py --assign ord-3 r1
"""
import argparse
import asyncio
import logging

from dispatch.console import DispatchConsole
from reconciliation.merge import MergedView


def print_view(view: MergedView) -> None:
    print(f"\n--- {len(view.orders)} orders / {len(view.riders)} riders ---")
    print(
        f"Active riders {view.summary.active_riders}/{view.summary.max_riders} | "
        f"In transit {view.summary.orders_in_transit} | SLA breaches {view.summary.sla_breaches}"
    )
    for order in view.sorted_by_eta()[:20]:
        eta = f"{order.eta_minutes}m" if order.eta_minutes is not None else "-"
        print(f"  {order.id:<12} {order.status.value:<11} rider={order.rider_id or '-':<12} eta={eta}")


async def run_session(assign=None):
    console = DispatchConsole.from_env()
    console.subscribe(print_view)

    print("=== LOADING SNAPSHOT ===")
    result = await console.request_refresh()
    print(f"Loaded: {', '.join(result.succeeded)} (status: {console.refresh_status.value})")

    if assign:
        order_id, rider_id = assign
        print(f"\n=== ASSIGNING {rider_id} -> {order_id} ===")
        outcome = await console.request_assignment(order_id, rider_id)
        if outcome.ok:
            print(f"[SUCCESS] Order {outcome.order_id} -> {outcome.rider_id} (eta {outcome.eta_minutes})")
        else:
            print(f"[FAILED] {outcome.error.message}")
        await console.wait_for_background()

    await console.close()
    print("\n=== SESSION COMPLETE ===")


def main():
    parser = argparse.ArgumentParser(description="Dispatch console session")
    parser.add_argument("--assign", nargs=2, metavar=("ORDER_ID", "RIDER_ID"))
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    asyncio.run(run_session(args.assign))


if __name__ == "__main__":
    main()
