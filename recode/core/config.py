import os

# ✅ Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./recode.db")

# ✅ Security
SECRET_KEY = os.getenv("SECRET_KEY")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")  # unset disables admin login
ADMIN_TOKEN_EXPIRE_HOURS = int(os.getenv("ADMIN_TOKEN_EXPIRE_HOURS", "24"))

# ✅ Redis (empty disables the distributed cache tier)
REDIS_URL = os.getenv("REDIS_URL", "")

# ✅ Solution cache
SOLUTION_CACHE_TTL_SECONDS = int(os.getenv("SOLUTION_CACHE_TTL_SECONDS", str(7 * 24 * 60 * 60)))
MEMORY_CACHE_MAX_ENTRIES = int(os.getenv("MEMORY_CACHE_MAX_ENTRIES", "500"))

# ✅ OpenAI-compatible LLM endpoint
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL") or None

# ✅ Usage limits
IGNORE_USAGE_LIMITS = os.getenv("IGNORE_USAGE_LIMITS", "false").lower() == "true"
TRIAL_DAYS = int(os.getenv("TRIAL_DAYS", "7"))

# ✅ App
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if origin.strip()
]
