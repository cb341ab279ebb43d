"""Server handler: dispatches JSON-lines requests to puzzle sessions."""

from __future__ import annotations

import logging
import random
import uuid
from typing import Callable, Optional

from patternprophet.config.settings import Settings
from patternprophet.engine.elements import PatternAttempt, PatternElement, PatternProgress
from patternprophet.engine.factory import PatternFactory, PatternType
from patternprophet.engine.session import PuzzleSession

from .protocol import Notification

logger = logging.getLogger(__name__)

MAX_SESSIONS = 256


def _elements_from_params(params: dict) -> list[PatternElement]:
    return [PatternElement.from_dict(e) for e in params.get("elements", [])]


class ServerHandler:
    """Routes incoming requests to sessions and returns result dicts.

    Holds one engine per session and never persists anything: updated
    progress records are returned for the host to store. At most
    ``max_sessions`` stay open; starting another drops the oldest.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        write_notification: Optional[Callable[[Notification], None]] = None,
        max_sessions: int = MAX_SESSIONS,
    ):
        self.settings = settings or Settings.load()
        self._write_notification = write_notification or (lambda n: None)
        self._sessions: dict[str, PuzzleSession] = {}
        self.max_sessions = max_sessions

    async def dispatch(self, msg: dict) -> dict:
        """Route a request message to the appropriate handler method."""
        method = msg.get("method", "")
        params = msg.get("params") or {}

        handler_map = {
            "listPatternTypes": self._list_pattern_types,
            "getDefaultConfig": self._get_default_config,
            "getDefaultProgress": self._get_default_progress,
            "startSession": self._start_session,
            "generate": self._generate,
            "validate": self._validate,
            "submit": self._submit,
            "getHint": self._get_hint,
            "getProgress": self._get_progress,
            "getMetrics": self._get_metrics,
            "adaptDifficulty": self._adapt_difficulty,
            "endSession": self._end_session,
        }

        handler = handler_map.get(method)
        if handler is None:
            raise ValueError(f"Unknown method: {method}")

        return await handler(params)

    def _session(self, params: dict) -> PuzzleSession:
        session_id = params.get("sessionId", "")
        session = self._sessions.get(session_id)
        if session is None:
            raise ValueError(f"Unknown session: {session_id}")
        return session

    async def _list_pattern_types(self, params: dict) -> dict:
        return {
            "patternTypes": [
                {"id": t.value, "implemented": PatternFactory.is_implemented(t)}
                for t in PatternType
            ]
        }

    async def _get_default_config(self, params: dict) -> dict:
        config = PatternFactory.get_default_config(
            params["patternType"],
            params.get("difficulty", self.settings.generator.default_difficulty),
        )
        config.accessibility = self.settings.accessibility.to_features()
        return {"config": config.to_dict()}

    async def _get_default_progress(self, params: dict) -> dict:
        progress = PatternFactory.get_default_progress(params["userId"], params["patternType"])
        return {"progress": progress.to_dict()}

    async def _start_session(self, params: dict) -> dict:
        pattern_type = params["patternType"]
        generator = self.settings.generator

        if params.get("progress"):
            progress = PatternProgress.from_dict(params["progress"])
        else:
            progress = PatternFactory.get_default_progress(params["userId"], pattern_type)
        difficulty = params.get("difficulty", progress.current_difficulty)

        config = PatternFactory.get_default_config(pattern_type, difficulty)
        config.accessibility = self.settings.accessibility.to_features()

        seed = params.get("seed", generator.get_seed())
        engine = PatternFactory.create_pattern(
            pattern_type,
            config,
            progress,
            rng=random.Random(seed) if seed is not None else None,
            **generator.engine_options(),
        )
        engine.apply_difficulty(difficulty)

        history = [PatternAttempt.from_dict(a) for a in params.get("history", [])]
        while self._sessions and len(self._sessions) >= self.max_sessions:
            stale = next(iter(self._sessions))
            del self._sessions[stale]
            logger.warning("Session limit reached, dropped session %s", stale)

        session_id = str(uuid.uuid4())
        self._sessions[session_id] = PuzzleSession(
            engine,
            history=history,
            adaptation_window=generator.adaptation_window,
        )
        logger.info("Started %s session %s for user %s", pattern_type, session_id, progress.user_id)
        return {"sessionId": session_id, "progress": progress.to_dict()}

    async def _generate(self, params: dict) -> dict:
        config = self._session(params).new_puzzle()
        return {"config": config.to_dict()}

    async def _validate(self, params: dict) -> dict:
        session = self._session(params)
        result = session.engine.validate_solution(_elements_from_params(params))
        return {"result": result.to_dict()}

    async def _submit(self, params: dict) -> dict:
        session = self._session(params)
        outcome = session.submit(
            _elements_from_params(params),
            time_spent=params.get("timeSpent"),
        )
        progress = session.progress.to_dict()
        self._write_notification(Notification(
            "progressUpdated",
            {"sessionId": params["sessionId"], "progress": progress},
        ))
        return {
            "result": outcome.result.to_dict(),
            "attempt": outcome.attempt.to_dict(),
            "previousDifficulty": outcome.previous_difficulty,
            "difficulty": outcome.difficulty,
            "progress": progress,
            "attemptsRemaining": session.attempts_remaining,
        }

    async def _get_hint(self, params: dict) -> dict:
        session = self._session(params)
        hint = session.get_hint()
        return {"hint": hint, "hintsUsed": session.hints_used}

    async def _get_progress(self, params: dict) -> dict:
        return {"progress": self._session(params).progress.to_dict()}

    async def _get_metrics(self, params: dict) -> dict:
        return {"metrics": self._session(params).metrics().to_dict()}

    async def _adapt_difficulty(self, params: dict) -> dict:
        """Preview the next difficulty without applying it."""
        session = self._session(params)
        if "attempts" in params:
            attempts = [PatternAttempt.from_dict(a) for a in params["attempts"]]
        else:
            attempts = session.history[-session.adaptation_window:]
        return {"difficulty": session.engine.adapt_difficulty(attempts)}

    async def _end_session(self, params: dict) -> dict:
        session = self._session(params)
        del self._sessions[params["sessionId"]]
        return {"ok": True, "progress": session.progress.to_dict()}
