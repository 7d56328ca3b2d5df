from __future__ import annotations

import argparse
import json

from invcount_sdk import ApiSession, ScannerCallbacks, load_config
from invcount_sdk.count_state import count_action_availability
from invcount_sdk.exceptions import ApiError


def _print_error(exc: ApiError) -> None:
    print(json.dumps({"error": exc.code, "message": exc.message, "trace_id": exc.trace_id}, indent=2))


def main() -> None:
    parser = argparse.ArgumentParser(description="Scan one barcode into a count session")
    parser.add_argument("--env-file", default=None)
    parser.add_argument("--token", default=None)
    parser.add_argument("--count-id", required=True)
    parser.add_argument("--barcode", required=True)
    parser.add_argument("--qty", type=int, default=None)
    parser.add_argument("--lot-id", default=None)
    args = parser.parse_args()

    cfg = load_config(args.env_file)
    session = ApiSession(cfg, token=args.token)

    try:
        count = session.counts_client().get_count(args.count_id)
    except ApiError as exc:
        _print_error(exc)
        raise SystemExit(1) from exc
    if not count_action_availability(count.status).can_scan:
        print(json.dumps({"error": "COUNT_NOT_IN_PROGRESS", "status": count.status.value}, indent=2))
        raise SystemExit(1)

    callbacks = ScannerCallbacks(
        on_product_suggestion=lambda suggestion, barcode: print(
            json.dumps({"suggestion": suggestion.model_dump(mode="json"), "barcode": barcode}, indent=2)
        ),
    )
    scanner = session.count_scanner(args.count_id, callbacks=callbacks)
    outcome = scanner.scan(args.barcode, args.qty, lot_id=args.lot_id)

    print(
        json.dumps(
            {
                "outcome": outcome.kind.value,
                "result": outcome.result.model_dump(mode="json") if outcome.result else None,
                "lookup": outcome.lookup.kind.value if outcome.lookup else None,
                "error": scanner.error,
                "notifications": scanner.notifier.center.render()["messages"],
            },
            indent=2,
        )
    )
    if scanner.error:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
