import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./odim.db")

# Firebase Configuration
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID")

# Paystack Configuration
PAYSTACK_SECRET_KEY = os.getenv("PAYSTACK_SECRET_KEY")
PAYSTACK_PUBLIC_KEY = os.getenv("PAYSTACK_PUBLIC_KEY")
PAYSTACK_BASE_URL = os.getenv("PAYSTACK_BASE_URL", "https://api.paystack.co")

# Escrow / fee split (fractions of the gross amount)
PLATFORM_FEE_PERCENT = float(os.getenv("PLATFORM_FEE_PERCENT", "0.05"))
FIRST_PAYOUT_PERCENT = float(os.getenv("FIRST_PAYOUT_PERCENT", "0.6"))
SUBSCRIPTION_PLATFORM_FEE_PERCENT = float(os.getenv("SUBSCRIPTION_PLATFORM_FEE_PERCENT", "0.15"))

# Automatic payouts only run for balances at or above this many kobo (₦100)
MIN_PAYOUT_KOBO = int(os.getenv("MIN_PAYOUT_KOBO", "10000"))

# Cloudflare R2 Configuration
R2_ACCOUNT_ID = os.getenv("R2_ACCOUNT_ID")
R2_ACCESS_KEY_ID = os.getenv("R2_ACCESS_KEY_ID")
R2_SECRET_ACCESS_KEY = os.getenv("R2_SECRET_ACCESS_KEY")
R2_BUCKET_NAME = os.getenv("R2_BUCKET_NAME", "odim")
R2_PUBLIC_URL = os.getenv("R2_PUBLIC_URL")

# Mux Video Configuration
MUX_TOKEN_ID = os.getenv("MUX_TOKEN_ID")
MUX_TOKEN_SECRET = os.getenv("MUX_TOKEN_SECRET")

# Frontend base URL for redirects and tracking links
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "Odim <noreply@odim.app>")

# Comma separated list of emails allowed on the admin reconciliation endpoints
ADMIN_EMAILS = [e.strip().lower() for e in os.getenv("ADMIN_EMAILS", "").split(",") if e.strip()]

# Webhook processing
WEBHOOK_MAX_ATTEMPTS = int(os.getenv("WEBHOOK_MAX_ATTEMPTS", "3"))

REQUIRED_ENV_VARS = [
    "DATABASE_URL",
    "FIREBASE_PROJECT_ID",
    "PAYSTACK_SECRET_KEY",
    "R2_ACCOUNT_ID",
    "R2_ACCESS_KEY_ID",
    "R2_SECRET_ACCESS_KEY",
    "MUX_TOKEN_ID",
    "MUX_TOKEN_SECRET",
    "RESEND_API_KEY",
]


def get_missing_env() -> list:
    """Names of required environment variables that are unset (never their values)."""
    return [name for name in REQUIRED_ENV_VARS if not os.getenv(name)]
