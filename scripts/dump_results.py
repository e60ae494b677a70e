import argparse
import csv
import logging
import sys

from orgscraper.infrastructure.json_storage import JsonCheckpointStore, ORGANIZATION_KEYS, organization_to_json

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
log = logging.getLogger(__name__)

OUTPUT_FILE = "organizations.csv"


def dump(input_path: str, output_path: str = OUTPUT_FILE) -> int:
    log.info("Reading checkpoint %s …", input_path)
    checkpoint = JsonCheckpointStore(input_path).load()
    if checkpoint is None:
        log.error("No readable checkpoint at %s", input_path)
        return 1

    organizations = sorted(checkpoint.organizations, key=lambda o: o.total_repo_stars, reverse=True)
    columns = list(ORGANIZATION_KEYS.values())

    log.info("Writing %d rows to %s …", len(organizations), output_path)
    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=columns)
        writer.writeheader()
        writer.writerows(organization_to_json(o) for o in organizations)

    log.info("Dump complete: %s (%d rows)", output_path, len(organizations))
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Export recorded organizations to CSV")
    parser.add_argument("--input", default="result.json", help="checkpoint file (default: result.json)")
    parser.add_argument("--output", default=OUTPUT_FILE, help=f"CSV file (default: {OUTPUT_FILE})")
    args = parser.parse_args()

    sys.exit(dump(args.input, args.output))
