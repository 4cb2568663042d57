"""Development settings, for local use only."""
import os

from dotenv import load_dotenv

# Load .env FIRST so its values take priority over the dev defaults below.
# (python-dotenv won't overwrite vars already in the environment, so .env
# values only apply when the shell hasn't already set them.)
load_dotenv()

# base.py requires these via require_env(); these defaults only apply
# when the developer hasn't set them in .env or the shell.
os.environ.setdefault("SECRET_KEY", "insecure-dev-key-do-not-use-in-production")
os.environ.setdefault("DATABASE_URL", "sqlite:///efemera-dev.sqlite3")

# SUPABASE_URL / SUPABASE_KEY get no default on purpose: pointing a dev
# checkout at a real project must be an explicit choice. Without them every
# page shows the "store not configured" screen.

from .base import *  # noqa: F401, F403

DEBUG = True
ALLOWED_HOSTS = ["*"]

# Relax security for local dev
SESSION_COOKIE_SECURE = False
CSRF_COOKIE_SECURE = False
LANGUAGE_COOKIE_SECURE = False

LOG_LEVEL = "DEBUG"
LOGGING["loggers"]["apps"]["level"] = LOG_LEVEL  # noqa: F405
