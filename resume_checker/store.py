"""
Resume Checker Store
=====================
Pass-through access to the managed Supabase tables:

- resumes               → uploaded resume records (dashboard)
- ats_scores            → stored analyses per resume
- chat_history          → last user message / assistant reply pairs
- resume_builder_data   → one builder draft document per user

The supabase-py client is synchronous; async callers go through
run_in_threadpool.
"""

import logging
from typing import Any, Dict, List, Optional

from supabase import Client, create_client

from .config import Settings
from .exceptions import StoreError
from .models import AnalysisResult, ResumeBuilderData

logger = logging.getLogger(__name__)

RESUMES = "resumes"
ATS_SCORES = "ats_scores"
CHAT_HISTORY = "chat_history"
BUILDER_DRAFTS = "resume_builder_data"


class ResumeStore:
    """Table operations keyed by the authenticated user id."""

    def __init__(self, client: Client):
        self.client = client

    # ==================== Resumes ====================

    def list_resumes(self, user_id: str) -> List[Dict[str, Any]]:
        """Resumes for a user, newest first, with their score summaries."""
        try:
            res = (
                self.client.table(RESUMES)
                .select("id, file_name, created_at, job_description, ats_scores (id, overall_score)")
                .eq("user_id", user_id)
                .order("created_at", desc=True)
                .execute()
            )
            return res.data or []
        except Exception as e:
            logger.error(f"Failed to list resumes for {user_id}: {e}")
            raise StoreError(f"Failed to list resumes: {e}") from e

    def create_resume(self, user_id: str, file_name: str,
                      job_description: Optional[str] = None) -> str:
        """Insert a resume record and return its id."""
        try:
            res = (
                self.client.table(RESUMES)
                .insert({
                    "user_id": user_id,
                    "file_name": file_name,
                    "job_description": job_description or None,
                })
                .execute()
            )
            resume_id = str(res.data[0]["id"])
            logger.info(f"Created resume {resume_id} for user {user_id[:8]}...")
            return resume_id
        except Exception as e:
            logger.error(f"Failed to create resume: {e}")
            raise StoreError(f"Failed to create resume: {e}") from e

    def delete_resume(self, user_id: str, resume_id: str) -> bool:
        """Delete a resume owned by the user. Returns False when nothing matched."""
        try:
            res = (
                self.client.table(RESUMES)
                .delete()
                .eq("id", resume_id)
                .eq("user_id", user_id)
                .execute()
            )
            return bool(res.data)
        except Exception as e:
            logger.error(f"Failed to delete resume {resume_id}: {e}")
            raise StoreError(f"Failed to delete resume: {e}") from e

    # ==================== Scores ====================

    def save_score(self, user_id: str, resume_id: str, analysis: AnalysisResult) -> str:
        """Insert an ats_scores row for a resume and return its id."""
        row = {
            "user_id": user_id,
            "resume_id": resume_id,
            "overall_score": analysis.overall_score,
            "keyword_score": analysis.keyword_score,
            "formatting_score": analysis.formatting_score,
            "experience_score": analysis.experience_score,
            "skills_score": analysis.skills_score,
            "antigravity_boost": analysis.antigravity_boost,
            "final_score": analysis.final_score,
            "feedback": analysis.feedback.model_dump(),
        }
        try:
            res = self.client.table(ATS_SCORES).insert(row).execute()
            return str(res.data[0]["id"])
        except Exception as e:
            logger.error(f"Failed to save score for resume {resume_id}: {e}")
            raise StoreError(f"Failed to save score: {e}") from e

    def get_score(self, user_id: str, resume_id: str) -> Optional[Dict[str, Any]]:
        try:
            res = (
                self.client.table(ATS_SCORES)
                .select("*")
                .eq("resume_id", resume_id)
                .eq("user_id", user_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to fetch score for resume {resume_id}: {e}")
            raise StoreError(f"Failed to fetch score: {e}") from e
        return res.data[0] if res.data else None

    # ==================== Chat history ====================

    def insert_chat_history(self, user_id: str, user_message: str,
                            assistant_response: str) -> None:
        try:
            self.client.table(CHAT_HISTORY).insert({
                "user_id": user_id,
                "user_message": user_message,
                "assistant_response": assistant_response,
            }).execute()
        except Exception as e:
            raise StoreError(f"Failed to insert chat history: {e}") from e

    # ==================== Builder drafts ====================

    def load_draft(self, user_id: str) -> Optional[ResumeBuilderData]:
        """Saved builder draft for a user, or None if nothing was saved."""
        try:
            res = (
                self.client.table(BUILDER_DRAFTS)
                .select("data")
                .eq("user_id", user_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to load builder draft for {user_id}: {e}")
            raise StoreError(f"Failed to load draft: {e}") from e

        if not res.data or not res.data[0].get("data"):
            return None
        return ResumeBuilderData.model_validate(res.data[0]["data"])

    def save_draft(self, user_id: str, data: ResumeBuilderData) -> None:
        """Upsert the user's builder draft (one row per user)."""
        try:
            self.client.table(BUILDER_DRAFTS).upsert(
                {"user_id": user_id, "data": data.model_dump(by_alias=True)},
                on_conflict="user_id",
            ).execute()
            logger.info(f"Saved builder draft for user {user_id[:8]}...")
        except Exception as e:
            logger.error(f"Failed to save builder draft for {user_id}: {e}")
            raise StoreError(f"Failed to save draft: {e}") from e


def create_store(settings: Settings) -> Optional[ResumeStore]:
    """Build the store from settings, or None when Supabase is not configured."""
    if not settings.supabase_configured:
        logger.warning("⚠️ SUPABASE_URL / SUPABASE_SERVICE_KEY not set — persistence disabled")
        return None
    client = create_client(settings.supabase_url, settings.supabase_service_key)
    logger.info("✅ Supabase client initialized")
    return ResumeStore(client)
