import argparse

from loguru import logger

from localdeals.config import get_settings
from localdeals.db.database import IN_MEMORY_URLS, create_db_engine, init_db

settings = get_settings()


def _warn_if_in_memory():
    if settings.database_url in IN_MEMORY_URLS:
        logger.warning(
            "DATABASE_URL is in-memory, nothing is kept between CLI runs. "
            "Use a file URL such as sqlite:///./data/deals.db"
        )


def init_database():
    """初始化資料庫"""
    _warn_if_in_memory()
    engine = create_db_engine(settings.database_url)
    init_db(engine)
    logger.info(f"Database initialized at {settings.database_url}")


def geocode(postal_code: str):
    """查詢郵遞區號座標"""
    from localdeals.geo.geocoder import ZippopotamGeocoder

    geocoder = ZippopotamGeocoder()
    try:
        geo = geocoder.resolve(postal_code)
    finally:
        geocoder.close()
    if geo is None:
        logger.error(f"Zip code not found: {postal_code}")
        return
    logger.info(f"{postal_code}: {geo.display_name} ({geo.latitude}, {geo.longitude})")


def list_deals(lat=None, lng=None, radius=None, sort=None):
    """列出目前有效的優惠"""
    _warn_if_in_memory()
    from localdeals.api.dependencies import get_deal_service
    from localdeals.deals.exceptions import ValidationError

    service = get_deal_service()
    try:
        results = service.list(latitude=lat, longitude=lng, radius_miles=radius, sort=sort)
    except ValidationError as e:
        logger.error(e.message)
        return

    logger.info(f"{len(results)} active deals")
    for r in results:
        deal = r.deal
        distance = f" - {r.distance:.1f} mi" if r.distance is not None else ""
        logger.info(
            f"#{deal.id} {deal.product} @ {deal.store_name} "
            f"${deal.sale_price:.2f} ({deal.location}){distance} "
            f"[{deal.upvotes} upvotes]"
        )


def main():
    parser = argparse.ArgumentParser(description="Local Deals CLI")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # init command
    subparsers.add_parser(
        "init", help="Initialize database (set DATABASE_URL to a sqlite file URL)"
    )

    # serve command
    subparsers.add_parser("serve", help="Start API server")

    # geocode command
    geocode_parser = subparsers.add_parser("geocode", help="Resolve a zip code")
    geocode_parser.add_argument("postal_code", help="Zip code (e.g., 78701)")

    # list command
    list_parser = subparsers.add_parser(
        "list", help="List active deals (set DATABASE_URL to a sqlite file URL)"
    )
    list_parser.add_argument("--lat", type=float, help="Viewer latitude")
    list_parser.add_argument("--lng", type=float, help="Viewer longitude")
    list_parser.add_argument("--radius", "-r", type=float, help="Radius in miles")
    list_parser.add_argument(
        "--sort", "-s", choices=["distance", "popular", "recent"], help="Sort mode"
    )

    args = parser.parse_args()

    if args.command == "init":
        init_database()
    elif args.command == "serve":
        import uvicorn

        uvicorn.run(
            "localdeals.main:app",
            host=settings.api_host,
            port=settings.api_port,
            reload=settings.debug,
        )
    elif args.command == "geocode":
        geocode(args.postal_code)
    elif args.command == "list":
        list_deals(args.lat, args.lng, args.radius, args.sort)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
