"""Resume analysis orchestration: AI first, keyword matching as the guaranteed fallback."""

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Dict, List, Mapping, Optional

from ai_analyzer import AIAnalyzer, build_openai_client
from analyzer import AnalysisResult, analyze_resume, load_ats_weights
from config import AI_TIMEOUT_SECONDS, HISTORY_LIMIT, HISTORY_PATH
from errors import ConfigurationError, ProviderError
from history import DEFAULT_RESUME_NAME, HistoryEntry, HistoryStore, JsonFileHistoryBackend, scope_for_user
from skills import Role, get_role, list_roles, load_role_catalog, load_skill_aliases

logger = logging.getLogger(__name__)

AI_MAX_WORKERS = 4


class ResumeAnalysisService:
    """Ties the skill catalog, both analysis paths and the history store together."""

    def __init__(
        self,
        history: Optional[HistoryStore] = None,
        ai_analyzer: Optional[AIAnalyzer] = None,
        roles: Optional[Mapping[str, Role]] = None,
        aliases: Optional[Mapping[str, List[str]]] = None,
        ats_weights: Optional[Mapping[str, float]] = None,
        ai_timeout: float = AI_TIMEOUT_SECONDS,
        ai_max_workers: int = AI_MAX_WORKERS,
    ):
        self.history = history if history is not None else HistoryStore()
        self.ai_analyzer = ai_analyzer
        self.roles = roles
        self.aliases = aliases
        self.ats_weights = ats_weights
        self.ai_timeout = ai_timeout
        self._executor = ThreadPoolExecutor(max_workers=ai_max_workers, thread_name_prefix="ai-analysis")

    @property
    def ai_enabled(self) -> bool:
        return self.ai_analyzer is not None and self.ai_analyzer.is_configured

    def get_role(self, role_id: str) -> Role:
        return get_role(role_id, self.roles)

    def analyze(self, resume_text: str, role_id: str) -> AnalysisResult:
        """Analyze *resume_text* for *role_id*.

        Raises UnknownRoleError for an unrecognised role; every AI failure is
        absorbed here and answered with the keyword-matching result instead.
        """
        role = self.get_role(role_id)
        resume_text = resume_text or ""

        if self.ai_enabled:
            try:
                return self._analyze_with_ai(resume_text, role)
            except FutureTimeoutError:
                logger.warning("AI analysis exceeded %ss, using keyword matching.", self.ai_timeout)
            except ConfigurationError as exc:
                logger.warning("AI analysis unavailable, using keyword matching: %s", exc)
            except ProviderError as exc:
                logger.warning(
                    "AI analysis failed (retryable=%s, status=%s), using keyword matching: %s",
                    exc.retryable,
                    exc.status_code,
                    exc,
                )

        result = analyze_resume(resume_text, role.required_skills, self.aliases, self.ats_weights)
        logger.info(
            "Keyword analysis complete for role=%s match=%s ats=%s",
            role.id,
            result.match_percentage,
            result.ats_score,
        )
        return result

    def _analyze_with_ai(self, resume_text: str, role: Role) -> AnalysisResult:
        future = self._executor.submit(
            self.ai_analyzer.analyze, resume_text, role.id, role.name, role.required_skills
        )
        try:
            return future.result(timeout=self.ai_timeout)
        except FutureTimeoutError:
            # a queued call never starts; a running one is abandoned
            future.cancel()
            raise

    def close(self) -> None:
        """Stop accepting AI calls; calls already running are not waited for."""
        self._executor.shutdown(wait=False)

    def analyze_and_record(
        self,
        resume_text: str,
        role_id: str,
        resume_name: str = DEFAULT_RESUME_NAME,
        user_id: Optional[str] = None,
    ) -> HistoryEntry:
        """Analyze and append the outcome to the caller's history scope."""
        role = self.get_role(role_id)
        result = self.analyze(resume_text, role_id)
        scope = scope_for_user(user_id)
        entry_id = self.history.append(result, role.id, role.name, resume_name, scope=scope)
        return self.history.get(entry_id, scope=scope)

    def role_summaries(self) -> List[Dict[str, object]]:
        return [role.to_dict() for role in list_roles(self.roles)]


def build_service_from_env() -> ResumeAnalysisService:
    """Production wiring: JSON-file history, catalog overrides and (if configured) the AI client."""
    client = build_openai_client()
    return ResumeAnalysisService(
        history=HistoryStore(JsonFileHistoryBackend(HISTORY_PATH), limit=HISTORY_LIMIT),
        ai_analyzer=AIAnalyzer(client) if client is not None else None,
        roles=load_role_catalog(),
        aliases=load_skill_aliases(),
        ats_weights=load_ats_weights(),
    )
