import os

# Signing key for tokens minted in tests; must be set before recode.core.config is imported
os.environ.setdefault("SECRET_KEY", "test-secret-key")
