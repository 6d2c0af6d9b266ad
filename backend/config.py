"""
Central configuration for the wiki backend.

All settings loaded from .env file or environment variables.
See .env.example for available options.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file from backend directory
load_dotenv(Path(__file__).parent / ".env")

# Wiki repository path (required by main.create_app)
WIKI_REPO_PATH = os.getenv("WIKI_REPO_PATH")

# Page shown for "/" and treated as the wiki's index
WIKI_INDEX_PAGE = os.getenv("WIKI_INDEX_PAGE", "Home")

# Prefix for generated URLs when served behind a reverse proxy (e.g. "/wiki-app")
WIKI_PROXY_PATH = os.getenv("WIKI_PROXY_PATH", "").rstrip("/")

# Pages per listing page
PAGES_PER_LIST = int(os.getenv("PAGES_PER_LIST", 25))

# Seconds before a git invocation is abandoned
GIT_TIMEOUT = float(os.getenv("GIT_TIMEOUT", 10))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 8000))
