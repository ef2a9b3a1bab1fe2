#!/usr/bin/env python3
"""Script to review sourcing items that share an ASIN."""

import sys

sys.path.insert(0, '.')

from dealflow.db.repository import Repository
from dealflow.db.session import init_database


def main():
    init_database()
    repo = Repository()
    duplicates = repo.find_duplicate_asins()

    if not duplicates:
        print("✅ No duplicates found!")
        return

    print(f"Found {len(duplicates)} duplicate ASINs\n")

    for asin, count, item_ids in duplicates:
        print(f"\n{'='*60}")
        print(f"ASIN: {asin} (submitted {count} times)")

        print("\nDetails:")
        for item_id in item_ids:
            item = repo.get_sourcing_item(item_id)
            if item is None:
                continue
            margin = f"{item.profit_margin}%" if item.profit_margin is not None else "n/a"
            print(
                f"  [{item.id}] {item.status.value:<10} {item.product_name[:40]:<40} "
                f"margin {margin}, by {item.submitted_by} on {item.created_at:%Y-%m-%d}"
            )

        # The importer skips ASINs that already exist; these came in by hand.
        # Resolve by rejecting the extra submissions in the dashboard.


if __name__ == "__main__":
    main()
