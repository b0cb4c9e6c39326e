"""Shared pytest setup for the API tests."""

import os

# Settings are built at import time; give them something to load.
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
