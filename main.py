"""
Clubhouse entry point
"""
import sys

from loguru import logger


# Logging setup
logger.remove()
logger.add(
    sys.stderr,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    level="INFO"
)
logger.add(
    "logs/clubhouse_{time:YYYY-MM-DD}.log",
    rotation="1 day",
    retention="30 days",
    level="DEBUG"
)


def main():
    """Main function"""
    import argparse

    parser = argparse.ArgumentParser(description="Club membership API")
    parser.add_argument(
        "--mode",
        choices=["serve", "check"],
        default="serve",
        help="serve the API or check the database tables"
    )
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--reload", action="store_true", help="auto reload (development)")

    args = parser.parse_args()

    if args.mode == "serve":
        import uvicorn

        uvicorn.run(
            "app.server:app",
            host=args.host,
            port=args.port,
            reload=args.reload,
            log_level="info"
        )

    elif args.mode == "check":
        from database.run_migration import check_tables

        missing = check_tables()
        if missing:
            sys.exit(1)


if __name__ == "__main__":
    main()
