#!/usr/bin/env python3
"""
QMS Database Initialization Script
Creates database tables, the first admin user and a default chart of accounts
"""
import argparse
import logging
import os
import sys

from qms.core.config import settings
from qms.core.database import SessionLocal, check_db_connection, init_db
from qms.core.exceptions import ConflictError
from qms.models.ledger import ChartOfAccount
from qms.schemas.auth import UserCreate
from qms.services.auth_service import AuthService

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)

DEFAULT_ACCOUNTS = [
    ("1000", "Cash", "asset"),
    ("1100", "Bank", "asset"),
    ("1200", "Accounts Receivable", "asset"),
    ("1300", "Inventory", "asset"),
    ("2000", "Accounts Payable", "liability"),
    ("2100", "Sales Tax Payable", "liability"),
    ("3000", "Owner Equity", "equity"),
    ("3100", "Retained Earnings", "equity"),
    ("4000", "Sales Revenue", "revenue"),
    ("4100", "Service Revenue", "revenue"),
    ("5000", "Cost of Goods Sold", "expense"),
    ("5100", "Operating Expenses", "expense"),
    ("5200", "Utilities", "expense"),
    ("5300", "Rent", "expense"),
]


def seed_accounts(db) -> int:
    """Insert any default accounts that are missing; returns how many were added"""
    existing = {code for (code,) in db.query(ChartOfAccount.account_code)}
    added = 0
    for code, name, account_type in DEFAULT_ACCOUNTS:
        if code in existing:
            continue
        db.add(ChartOfAccount(account_code=code, account_name=name, account_type=account_type))
        added += 1
    db.commit()
    return added


def seed_admin(db, email: str, password: str) -> None:
    try:
        AuthService(db).create_user(UserCreate(
            email=email,
            password=password,
            first_name="System",
            last_name="Administrator",
            role="admin",
        ))
        logger.info(f"Admin user {email} created")
    except ConflictError:
        logger.info(f"Admin user {email} already exists")


def main() -> int:
    parser = argparse.ArgumentParser(description="Initialize the QMS database")
    parser.add_argument("--admin-email", default=os.environ.get("QMS_ADMIN_EMAIL", "admin@example.com"))
    parser.add_argument("--admin-password", default=os.environ.get("QMS_ADMIN_PASSWORD"))
    parser.add_argument("--skip-accounts", action="store_true", help="Do not seed the chart of accounts")
    args = parser.parse_args()

    logger.info(f"Initializing database at {settings.DATABASE_URL.split('@')[-1]}")
    if not check_db_connection():
        logger.error("Cannot connect to the database")
        return 1

    init_db()

    db = SessionLocal()
    try:
        if args.admin_password:
            seed_admin(db, args.admin_email, args.admin_password)
        else:
            logger.warning("No admin password given (--admin-password or QMS_ADMIN_PASSWORD); admin not created")

        if not args.skip_accounts:
            added = seed_accounts(db)
            logger.info(f"Chart of accounts ready, {added} accounts added")
    finally:
        db.close()

    logger.info("Database initialization completed")
    return 0


if __name__ == "__main__":
    sys.exit(main())
