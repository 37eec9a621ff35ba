#!/usr/bin/env python3
"""
Admin account creation script for Booyah Arena

Environment Variables:
- SEED_ADMIN_USERNAME: Admin username (required)
- SEED_ADMIN_EMAIL: Admin email address (required)
- SEED_ADMIN_PASSWORD: Admin password (optional - will generate if not provided)

Usage:
    python scripts/create_admin.py
"""

import asyncio
import logging
import os
import secrets
import string
import sys

from app.core.errors import ValidationError
from app.db.session import AsyncSessionLocal
from app.repos.account_repo import get_account_by_email
from app.services.registration import create_admin_account

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger("create_admin")


def generate_secure_password(length: int = 16) -> str:
    """Generate a secure random password."""
    alphabet = string.ascii_letters + string.digits + "!@#$%^&*"
    return ''.join(secrets.choice(alphabet) for _ in range(length))


async def main() -> int:
    username = os.getenv('SEED_ADMIN_USERNAME')
    email = os.getenv('SEED_ADMIN_EMAIL')
    password = os.getenv('SEED_ADMIN_PASSWORD')
    
    if not username or not email:
        logger.error("SEED_ADMIN_USERNAME and SEED_ADMIN_EMAIL environment variables are required")
        return 1
    
    generated = False
    if not password:
        password = generate_secure_password()
        generated = True
    
    async with AsyncSessionLocal() as session:
        existing = await get_account_by_email(session, email.strip().lower())
        if existing:
            if not existing.is_admin:
                logger.error(f"{email} is registered as a player account")
                return 1
            logger.info(f"Admin account already exists: {existing.username} ({existing.id})")
            return 0
        
        try:
            admin = await create_admin_account(session, email, username, password)
        except ValidationError as e:
            logger.error(f"Could not create admin account: {e.message}")
            return 1
    
    logger.info(f"Admin account created: {admin.username} ({admin.id})")
    if generated:
        print(f"Generated password: {password}")
        print("IMPORTANT: Save this password and change it after first login!")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
