import os
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./admissions.db")
BASE_DIR = os.path.dirname(__file__)
UPLOAD_DIR = os.getenv("UPLOAD_DIR", os.path.join(os.path.dirname(BASE_DIR), "uploads"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]

# JWT Settings
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "your-secret-key-change-in-production")
JWT_ALGORITHM = "HS256"
STUDENT_TOKEN_EXPIRE_MINUTES = 7 * 24 * 60  # 7 days
ADMIN_TOKEN_EXPIRE_MINUTES = 24 * 60  # 24 hours

# Admin lock-out
ADMIN_MAX_LOGIN_ATTEMPTS = int(os.getenv("ADMIN_MAX_LOGIN_ATTEMPTS", "5"))
ADMIN_LOCK_MINUTES = int(os.getenv("ADMIN_LOCK_MINUTES", "120"))

# Application fee and numbering
APPLICATION_FEE = int(os.getenv("APPLICATION_FEE", "500"))
CURRENCY = os.getenv("CURRENCY", "INR")
APPLICATION_ID_PREFIX = os.getenv("APPLICATION_ID_PREFIX", "SU")

# Uploads
MAX_DOCUMENT_SIZE = 2 * 1024 * 1024  # 2MB
MAX_PAYMENT_PROOF_SIZE = 5 * 1024 * 1024  # 5MB

# Razorpay (gateway disabled when keys are missing)
RAZORPAY_KEY_ID = os.getenv("RAZORPAY_KEY_ID")
RAZORPAY_KEY_SECRET = os.getenv("RAZORPAY_KEY_SECRET")
RAZORPAY_API_URL = os.getenv("RAZORPAY_API_URL", "https://api.razorpay.com/v1")
RAZORPAY_TIMEOUT_SECONDS = 10

# SMTP (notifications disabled when MAIL_SERVER is empty)
MAIL_USERNAME = os.getenv("MAIL_USERNAME", "")
MAIL_PASSWORD = os.getenv("MAIL_PASSWORD", "")
MAIL_FROM = os.getenv("MAIL_FROM", "admissions@example.com")
MAIL_PORT = int(os.getenv("MAIL_PORT", "587"))
MAIL_SERVER = os.getenv("MAIL_SERVER", "")
MAIL_STARTTLS = os.getenv("MAIL_STARTTLS", "true").lower() == "true"
MAIL_SSL_TLS = os.getenv("MAIL_SSL_TLS", "false").lower() == "true"
