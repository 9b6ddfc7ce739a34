import os
from decimal import Decimal

SERVICE_NAME = "storefront-service"

# ----- Database -----
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./storefront.db")

# ----- Sessions -----
JWT_SECRET = os.getenv("JWT_SECRET", "change-me")
JWT_ALGORITHM = "HS256"
# Unset means tokens never expire, same as the tokens the storefront has always issued.
SESSION_TTL_SECONDS = int(os.getenv("SESSION_TTL_SECONDS", "0")) or None
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "10"))
MIN_PASSWORD_LENGTH = 8

# ----- Orders -----
DELIVERY_FEE = Decimal(os.getenv("DELIVERY_FEE", "2.00"))
CURRENCY = os.getenv("CURRENCY", "usd")
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

# ----- Payment gateway -----
PAYMENT_GATEWAY = os.getenv("PAYMENT_GATEWAY", "fake")
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY", "")
STRIPE_API_BASE = os.getenv("STRIPE_API_BASE", "https://api.stripe.com")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
