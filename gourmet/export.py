import csv
from pathlib import Path
from typing import Iterable

from gourmet.models import Shop

CSV_HEADERS = [
    "id",
    "name",
    "genre_name",
    "budget_label",
    "access",
    "address",
    "open_hours",
    "catchphrase",
    "detail_url",
    "image_url",
]


def generate_csv(shops: Iterable[Shop], output_path: Path) -> int:
    output_path.parent.mkdir(parents=True, exist_ok=True)

    written = 0
    with output_path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.DictWriter(handle, fieldnames=CSV_HEADERS)
        writer.writeheader()
        for shop in shops:
            record = shop.to_dict()
            writer.writerow({header: record[header] for header in CSV_HEADERS})
            written += 1
    return written
