from textwrap import dedent

from meetpost.errors import ExternalServiceError
from meetpost.services.llm_client import LLMClient, clip_transcript


def _build_prompt(transcript: str, meeting_title: str) -> str:
    return dedent(f'''
    Based on the following meeting transcript, write a professional follow-up email
    recapping what was discussed.

    Meeting title: {meeting_title}

    Transcript:
    {clip_transcript(transcript)}

    The email should:
    1. Thank the attendees for their time
    2. Summarize the key points discussed
    3. Outline next steps and action items
    4. Keep a warm, professional tone

    Return only the email body, without a subject line.
    ''').strip()


def write_follow_up_email(llm: LLMClient, transcript: str, meeting_title: str) -> str:
    email = llm.complete(_build_prompt(transcript, meeting_title), temperature=0.7, max_tokens=500)
    if not email.strip():
        raise ExternalServiceError(LLMClient.service, "model returned an empty email")
    return email.strip()
