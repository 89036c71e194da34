import os
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    app_version: str = os.getenv("APP_VERSION", "1.0.0")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./meetpost.db")
    base_url: str = os.getenv("BASE_URL", "http://localhost:8000")

    # Sessions: HS256 JWT carried in a cookie or Authorization header
    session_secret: str = os.getenv("SESSION_SECRET", "dev-session-secret-change-me")
    session_cookie_name: str = os.getenv("SESSION_COOKIE_NAME", "session")
    session_ttl_hours: int = int(os.getenv("SESSION_TTL_HOURS", "168"))

    # LLM (any OpenAI-compatible chat completions endpoint)
    openai_api_key: str = os.getenv("OPENAI_API_KEY", "")
    openai_base_url: str = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
    llm_model: str = os.getenv("LLM_MODEL", "gpt-4")
    llm_analysis_model: str = os.getenv("LLM_ANALYSIS_MODEL", "gpt-4")
    llm_timeout: float = float(os.getenv("LLM_TIMEOUT", "60"))

    # Transcription bot
    recall_api_key: str = os.getenv("RECALL_API_KEY", "")
    recall_api_base: str = os.getenv("RECALL_API_BASE", "https://us-west-2.recall.ai/api/v1")

    # Google login + calendar
    google_client_id: str = os.getenv("GOOGLE_CLIENT_ID", "")
    google_client_secret: str = os.getenv("GOOGLE_CLIENT_SECRET", "")
    google_redirect_uri: str = os.getenv("GOOGLE_REDIRECT_URI", "http://localhost:8000/auth/google/callback")
    google_scopes: str = os.getenv(
        "GOOGLE_SCOPES",
        "openid email profile https://www.googleapis.com/auth/calendar.readonly",
    )

    # Social platforms
    linkedin_client_id: str = os.getenv("LINKEDIN_CLIENT_ID", "")
    linkedin_client_secret: str = os.getenv("LINKEDIN_CLIENT_SECRET", "")
    linkedin_redirect_uri: str = os.getenv("LINKEDIN_REDIRECT_URI", "http://localhost:8000/social/callback/linkedin")
    # OpenID scopes; the id_token sub becomes the author of published posts
    linkedin_scopes: str = os.getenv("LINKEDIN_SCOPES", "openid profile email w_member_social")
    facebook_client_id: str = os.getenv("FACEBOOK_CLIENT_ID", "")
    facebook_client_secret: str = os.getenv("FACEBOOK_CLIENT_SECRET", "")
    facebook_redirect_uri: str = os.getenv("FACEBOOK_REDIRECT_URI", "http://localhost:8000/social/callback/facebook")
    facebook_scopes: str = os.getenv("FACEBOOK_SCOPES", "pages_manage_posts,pages_read_engagement")

    fernet_key: str = os.getenv("FERNET_KEY", "")

    # Scheduled publishing
    scheduler_enabled: bool = _flag("SCHEDULER_ENABLED")
    scheduler_cron: str = os.getenv("SCHEDULER_CRON", "*/5 * * * *")

    # Per-client request limits ("<count> per <n> <unit>")
    rate_limit_enabled: bool = _flag("RATE_LIMIT_ENABLED", "true")
    meetings_read_limit: str = os.getenv("MEETINGS_READ_LIMIT", "100 per 15 minutes")
    meetings_write_limit: str = os.getenv("MEETINGS_WRITE_LIMIT", "10 per 15 minutes")

    # Transcript characters sent to the LLM per prompt; 0 sends the whole transcript
    llm_max_transcript_chars: int = int(os.getenv("LLM_MAX_TRANSCRIPT_CHARS", "12000"))


settings = Settings()
