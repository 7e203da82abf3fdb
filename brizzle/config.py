"""
Brizzle Configuration
Database, session, mail and feature settings
"""

import os

# Database
MONGO_URL = os.getenv("MONGO_URL", "mongodb://localhost:27017")
MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "brizzle_db")

# Session tokens
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "brizzle_session")
SESSION_TTL_HOURS = int(os.getenv("SESSION_TTL_HOURS", "168"))
COOKIE_SECURE = os.getenv("COOKIE_SECURE", "false").lower() == "true"

# Passwords
MIN_PASSWORD_LENGTH = 6
RESET_TOKEN_TTL_HOURS = int(os.getenv("RESET_TOKEN_TTL_HOURS", "1"))

# Transactional email (Resend)
RESEND_API_KEY = os.getenv("RESEND_API_KEY", "")
RESEND_API_URL = "https://api.resend.com/emails"
MAIL_FROM = os.getenv("MAIL_FROM", "Brizzle TOEIC <noreply@brizzle-english.com>")
SITE_URL = os.getenv("SITE_URL", "http://localhost:3000")
MAIL_TIMEOUT_SECONDS = 10

# HTTP
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
VERSION = os.getenv("VERSION")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Vocabulary levels with a published word list
AVAILABLE_VOCAB_LEVELS = [
    lvl.strip().lower() for lvl in os.getenv("AVAILABLE_VOCAB_LEVELS", "a1").split(",") if lvl.strip()
]

# Student documents
DOCUMENT_MIME_TYPES = {"application/pdf", "image/png", "image/jpeg", "image/jpg"}
DOCUMENT_MAX_BYTES = 10 * 1024 * 1024
