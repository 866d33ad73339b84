"""Test environment: fixed secrets, cheap bcrypt, no API prefix. Set before calmato is imported."""

import os

os.environ["APP_ENV"] = "dev"
os.environ["API_PREFIX"] = ""
os.environ["JWT_SECRET"] = "test-secret-not-for-production"
os.environ["JWT_EXPIRE_MINUTES"] = "10080"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_LEVEL"] = "WARNING"
