from argparse import ArgumentParser
from dataclasses import replace
import logging
from pathlib import Path
import sys

if __package__ in (None, ""):
    sys.path.append(str(Path(__file__).resolve().parent.parent))

from gourmet.config import get_settings
from gourmet.errors import SearchError
from gourmet.export import generate_csv
from gourmet.gateway import SearchGateway
from gourmet.models import DEFAULT_RANGE_CODE, RANGE_BANDS, ProviderKind, Query, SortKey
from gourmet.paging import sort_shops
from gourmet.providers import get_provider

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )


def serve(host: str, port: int) -> None:
    import uvicorn

    from gourmet.web_app import create_app

    uvicorn.run(create_app(), host=host, port=port)


def search(
    lat: float,
    lng: float,
    range_code: int,
    provider: str | None = None,
    sort_key: str = SortKey.DISTANCE.value,
    csv_path: Path | None = None,
) -> int:
    settings = get_settings()
    if provider:
        settings = replace(settings, provider=ProviderKind(provider))
    gateway = SearchGateway(get_provider(settings.provider), settings)

    try:
        shops = gateway.search(Query(lat=lat, lng=lng, range_code=range_code))
    except SearchError as error:
        print(error.user_message)
        return 1

    ordered = sort_shops(shops, sort_key)
    if csv_path is not None:
        written = generate_csv(ordered, csv_path)
        print(f"Wrote {written} shops to {csv_path}")
        return 0

    if not ordered:
        print("No shops found. Try a wider range.")
        return 0
    for number, shop in enumerate(ordered, start=1):
        print(f"{number}. {shop.name} [{shop.genre_name}] {shop.budget_label} / {shop.access}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = ArgumentParser(description="Nearby restaurant search")
    sub = parser.add_subparsers(dest="command", required=True)

    serve_cmd = sub.add_parser("serve", help="Run the web application")
    serve_cmd.add_argument("--host", default="127.0.0.1")
    serve_cmd.add_argument("--port", type=int, default=8000)

    search_cmd = sub.add_parser("search", help="Run one search and print the shops")
    search_cmd.add_argument("--lat", type=float, required=True)
    search_cmd.add_argument("--lng", type=float, required=True)
    search_cmd.add_argument(
        "--range",
        type=int,
        default=DEFAULT_RANGE_CODE,
        choices=sorted(RANGE_BANDS),
        help="Search radius band 1-5 (300/500/1000/2000/3000 m, default: 3)",
    )
    search_cmd.add_argument("--provider", choices=[kind.value for kind in ProviderKind], default=None)
    search_cmd.add_argument("--sort", choices=[key.value for key in SortKey], default=SortKey.DISTANCE.value)
    search_cmd.add_argument("--csv", type=Path, default=None, help="Write the shops to a CSV file instead")
    args = parser.parse_args(argv)

    configure_logging(get_settings().log_level)

    if args.command == "serve":
        serve(args.host, args.port)
        return 0
    if args.command == "search":
        return search(
            args.lat,
            args.lng,
            args.range,
            provider=args.provider,
            sort_key=args.sort,
            csv_path=args.csv,
        )
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
