import os

# Default to SQLite for tests
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_storefront.db")
os.environ.setdefault("PRICING_HASH_SECRET", "test-pricing-secret")
