import os
import argparse
import asyncio
import subprocess
import sys
import logging
from pathlib import Path
from dotenv import load_dotenv

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler()]
)
logger = logging.getLogger("examdesk")

# Load environment variables
load_dotenv()

DEFAULT_ENV = {
    "SECRET_KEY": "change-me",
    "ALGORITHM": "HS256",
    "DATABASE_URL": "sqlite:///./examdesk.db",
    "OTP_EXPOSE_CODE": "true",
    "MEDIA_ROOT": "./media",
}

def setup_environment():
    """Write a development .env unless one is already present"""
    env_path = Path(".env")
    if env_path.exists():
        logger.info(".env file already exists")
        return

    env_path.write_text("".join(f"{key}={value}\n" for key, value in DEFAULT_ENV.items()))
    logger.info(f"Created {env_path} with development defaults; set SECRET_KEY and the SMS gateway before deploying.")

def setup_database():
    """Create database tables"""
    logger.info("Setting up database...")

    try:
        from examdesk.db.base import Base, engine
        import examdesk.models  # noqa: F401

        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully!")
        return True
    except Exception as e:
        logger.error(f"Error setting up database: {str(e)}")
        logger.debug("This error may be normal if the database is already set up.", exc_info=True)
        return False

def run_housekeeping(purge_otps=False, expire_assignments=False):
    """Run the periodic cleanup jobs once and return"""
    from examdesk.db.base import SessionLocal
    from examdesk.services.assignment import expire_overdue_assignments
    from examdesk.services.otp import purge_expired_otps

    db = SessionLocal()
    try:
        if purge_otps:
            removed = asyncio.run(purge_expired_otps(db))
            logger.info(f"Purged {removed} expired verification code(s)")
        if expire_assignments:
            expired = asyncio.run(expire_overdue_assignments(db))
            logger.info(f"Marked {expired} overdue assignment(s) as expired")
    finally:
        db.close()

def start_server(port=8000, reload=True):
    """Run the API under uvicorn until interrupted"""
    port = int(os.environ.get("PORT", port))
    command = ["uvicorn", "main:app", "--host", "0.0.0.0", "--port", str(port)]
    if reload:
        command.append("--reload")

    logger.info(f"Serving examdesk on port {port} ({'reload' if reload else 'no reload'})")
    try:
        subprocess.run(command)
    except KeyboardInterrupt:
        logger.info("Server stopped")
        sys.exit(0)

def main():
    """Parse command-line arguments and run the application"""
    parser = argparse.ArgumentParser(description="Examdesk Backend Starter")
    parser.add_argument("--port", type=int, default=8000, help="Port to run the server on")
    parser.add_argument("--no-reload", action="store_true", help="Disable auto-reload on code changes")
    parser.add_argument("--skip-setup", action="store_true", help="Skip setting up database")
    parser.add_argument("--setup-only", action="store_true", help="Only set up environment and database")
    parser.add_argument("--purge-otps", action="store_true", help="Delete expired verification codes and exit")
    parser.add_argument("--expire-assignments", action="store_true", help="Expire overdue assignments and exit")

    args = parser.parse_args()

    logger.info("Examdesk Backend Starter")
    logger.info("------------------------")

    setup_environment()

    if not args.skip_setup:
        setup_database()

    if args.purge_otps or args.expire_assignments:
        run_housekeeping(purge_otps=args.purge_otps, expire_assignments=args.expire_assignments)
        return

    if args.setup_only:
        logger.info("Setup complete. Exiting.")
        return

    start_server(port=args.port, reload=not args.no_reload)

if __name__ == "__main__":
    main()
