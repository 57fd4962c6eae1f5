"""
Application settings

Every value can be overridden from the environment or a local .env file.
"""
from pydantic_settings import BaseSettings
from pydantic import Field
from dotenv import load_dotenv

load_dotenv()


class SupabaseConfig(BaseSettings):
    """Supabase settings"""

    supabase_url: str = Field(default="", description="Supabase Project URL")
    supabase_key: str = Field(default="", description="Supabase service role key")
    storage_bucket: str = Field(default="club-files", description="Storage bucket for uploaded files")

    class Config:
        env_prefix = ""
        case_sensitive = False


class MailConfig(BaseSettings):
    """Outbound mail settings"""

    default_from_email: str = Field(
        default="notifications@sportspanel.app",
        description="Sender used until a club verifies its own address"
    )
    default_club_name: str = Field(default="Tu Club", description="Club name when none is set")
    smtp_timeout: int = Field(default=30, description="SMTP connection timeout (seconds)")
    sendpulse_token_url: str = "https://api.sendpulse.com/oauth/access_token"
    sendpulse_send_url: str = "https://api.sendpulse.com/smtp/emails"
    http_timeout: float = Field(default=30.0, description="HTTP mail API timeout (seconds)")

    class Config:
        env_prefix = "mail_"
        case_sensitive = False


class DispatchConfig(BaseSettings):
    """Email batch dispatch settings"""

    daily_email_limit: int = Field(default=100, description="Emails a club may send per 24h window")
    batch_chunk_size: int = Field(default=100, description="Recipients handled per processing run")
    token_valid_days: int = Field(default=7, description="Validity of data update tokens (days)")
    public_base_url: str = Field(
        default="http://localhost:8000",
        description="Base URL used to build links sent to members"
    )

    class Config:
        env_prefix = ""
        case_sensitive = False


class UploadConfig(BaseSettings):
    """Upload limits"""

    max_upload_bytes: int = Field(default=10 * 1024 * 1024, description="Maximum file size (10MB)")

    class Config:
        env_prefix = ""
        case_sensitive = False


class SchedulerConfig(BaseSettings):
    """Scheduler settings"""

    scheduler_enabled: bool = Field(default=True, description="Start the scheduler with the API")
    batch_interval_minutes: int = Field(default=15, description="Pending batch dispatch interval")
    forms_refresh_hour: int = Field(default=0, description="Hour of the daily registration form refresh")

    class Config:
        env_prefix = ""
        case_sensitive = False


# global settings instances
supabase_config = SupabaseConfig()
mail_config = MailConfig()
dispatch_config = DispatchConfig()
upload_config = UploadConfig()
scheduler_config = SchedulerConfig()
