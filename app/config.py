import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./zahiflow.db")

# Public base URL of the web app (used for checkout redirects and invite links)
APP_URL = os.getenv("APP_URL", "http://localhost:3000")

# Supabase Auth Configuration
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY")
SUPABASE_JWT_SECRET = os.getenv("SUPABASE_JWT_SECRET")
if not SUPABASE_JWT_SECRET:
    import warnings

    warnings.warn(
        "SUPABASE_JWT_SECRET not set! Using insecure default - DO NOT USE IN PRODUCTION",
        RuntimeWarning,
        stacklevel=2,
    )
    SUPABASE_JWT_SECRET = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only
SUPABASE_JWT_AUDIENCE = os.getenv("SUPABASE_JWT_AUDIENCE", "authenticated")

# LemonSqueezy Configuration
LEMONSQUEEZY_API_KEY = os.getenv("LEMONSQUEEZY_API_KEY")
LEMONSQUEEZY_STORE_ID = os.getenv("LEMONSQUEEZY_STORE_ID")
LEMONSQUEEZY_WEBHOOK_SECRET = os.getenv("LEMONSQUEEZY_WEBHOOK_SECRET")
LEMONSQUEEZY_VARIANT_PROFESSIONAL = os.getenv("LEMONSQUEEZY_VARIANT_PROFESSIONAL")
LEMONSQUEEZY_VARIANT_ENTERPRISE = os.getenv("LEMONSQUEEZY_VARIANT_ENTERPRISE")

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "ZahiFlow <noreply@zahiflow.com>")

# Team invitations
INVITE_EXPIRY_DAYS = int(os.getenv("INVITE_EXPIRY_DAYS", "7"))
# Off by default: any signed-in user holding the token may accept
INVITE_REQUIRE_EMAIL_MATCH = os.getenv("INVITE_REQUIRE_EMAIL_MATCH", "false").lower() == "true"

# Demo account allowed to bypass admin-only deletes
DEMO_EMAIL = os.getenv("DEMO_EMAIL", "demo@zahiflow.com")

# Comma-separated origins allowed by CORS
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", APP_URL).split(",")
    if origin.strip()
]
ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()
SECURITY_HEADERS_ENABLED = os.getenv("SECURITY_HEADERS_ENABLED", "true").lower() == "true"
