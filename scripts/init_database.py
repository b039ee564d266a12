#!/usr/bin/env python3
"""
Database Initialization Script
==============================

Create the regulatory feed tables and optionally seed a demo firm.

Usage:
    python scripts/init_database.py
    python scripts/init_database.py --seed

Version: 0.1.0
"""

import argparse
import asyncio
import sys
import uuid
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from shared.logging import get_logger, setup_logging

setup_logging(log_level="INFO", json_logs=False, service_name="init-db")
logger = get_logger(__name__)


async def init_postgres() -> bool:
    """Create all tables and verify the connection."""
    from sqlalchemy import text

    # Registers the ORM tables on Base.metadata
    import services.regulatory_feed.models  # noqa: F401
    from shared.database.postgres import PostgresClient

    logger.info("Initializing PostgreSQL...")

    try:
        await PostgresClient.create_tables()

        async with PostgresClient.get_engine().connect() as conn:
            result = await conn.execute(text("SELECT version()"))
            version = result.scalar()
            logger.info(f"PostgreSQL connected: {str(version)[:50]}...")

        logger.info("PostgreSQL initialized successfully")
        return True

    except Exception as e:
        logger.error(f"PostgreSQL initialization failed: {e}")
        return False


async def seed_data() -> bool:
    """Seed one firm with a member and clients covering the entity types."""
    from services.regulatory_feed.models import ClientModel, ProfileModel
    from shared.database.postgres import postgres_session

    logger.info("Seeding initial data...")

    firm_id = uuid.uuid4()
    clients = [
        ("Acme Finance Pvt Ltd", "NBFC", "Financial Services"),
        ("Brightpath Technologies", "Pvt Ltd", "Information Technology"),
        ("Kaveri Partners", "LLP", "Consulting"),
        ("Northstar Retail", "Listed", "Retail"),
    ]

    try:
        async with postgres_session() as session:
            session.add(
                ProfileModel(
                    id=uuid.uuid4(),
                    firm_id=firm_id,
                    full_name="Demo Compliance Officer",
                    email="compliance@example.com",
                )
            )
            for name, entity_type, industry in clients:
                session.add(
                    ClientModel(
                        id=uuid.uuid4(),
                        firm_id=firm_id,
                        client_name=name,
                        entity_type=entity_type,
                        industry_type=industry,
                    )
                )

        logger.info(f"Seeded firm {firm_id} with {len(clients)} clients")
        return True

    except Exception as e:
        logger.error(f"Data seeding failed: {e}")
        return False


async def main(args: argparse.Namespace) -> int:
    """Main initialization function."""
    from shared.database.postgres import PostgresClient

    logger.info("=" * 60)
    logger.info("Regulatory Feed Database Initialization")
    logger.info("=" * 60)

    results = {"PostgreSQL": await init_postgres()}

    if args.seed and results["PostgreSQL"]:
        results["Seed Data"] = await seed_data()

    await PostgresClient.close()

    failed = [name for name, success in results.items() if not success]
    for name, success in results.items():
        logger.info(f"  {name}: {'OK' if success else 'FAILED'}")

    if failed:
        logger.error(f"Failed: {', '.join(failed)}")
        return 1

    logger.info("Database initialized successfully!")
    return 0


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Initialize the regulatory feed database",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--seed",
        action="store_true",
        help="Seed a demo firm, member and clients",
    )
    return parser.parse_args()


if __name__ == "__main__":
    args = parse_args()
    exit_code = asyncio.run(main(args))
    sys.exit(exit_code)
