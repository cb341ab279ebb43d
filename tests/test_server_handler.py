"""Tests for the ServerHandler dispatch layer."""

from __future__ import annotations

import pytest

from patternprophet.config.settings import Settings
from patternprophet.engine.factory import UnsupportedPatternType
from patternprophet.server.handler import ServerHandler
from patternprophet.server.protocol import Notification


@pytest.fixture
def handler(tmp_path):
    settings = Settings(data_dir=tmp_path / "data")
    settings.generator.seed = 7
    settings.generator.degenerate_match_override = False

    notifications: list[Notification] = []
    h = ServerHandler(settings=settings, write_notification=notifications.append)
    h._notifications = notifications
    return h


async def start(handler, **params) -> str:
    params.setdefault("userId", "user-1")
    params.setdefault("patternType", "visual-sequence")
    result = await handler.dispatch({"method": "startSession", "params": params})
    return result["sessionId"]


class TestDispatch:
    @pytest.mark.asyncio
    async def test_unknown_method(self, handler):
        with pytest.raises(ValueError, match="Unknown method"):
            await handler.dispatch({"method": "nonExistent", "params": {}})

    @pytest.mark.asyncio
    async def test_unknown_session(self, handler):
        with pytest.raises(ValueError, match="Unknown session"):
            await handler.dispatch({"method": "generate", "params": {"sessionId": "nope"}})

    @pytest.mark.asyncio
    async def test_list_pattern_types(self, handler):
        result = await handler.dispatch({"method": "listPatternTypes"})
        implemented = {t["id"]: t["implemented"] for t in result["patternTypes"]}
        assert implemented["visual-sequence"] is True
        assert implemented["musical"] is False


class TestDefaults:
    @pytest.mark.asyncio
    async def test_default_config(self, handler):
        result = await handler.dispatch({
            "method": "getDefaultConfig",
            "params": {"patternType": "visual-sequence"},
        })
        config = result["config"]
        assert config["difficulty"] == 3
        assert config["elements"] == []
        assert config["accessibilityFeatures"]["highContrast"] is True

    @pytest.mark.asyncio
    async def test_default_progress(self, handler):
        result = await handler.dispatch({
            "method": "getDefaultProgress",
            "params": {"userId": "user-2", "patternType": "visual-sequence"},
        })
        assert result["progress"]["userId"] == "user-2"
        assert result["progress"]["currentDifficulty"] == 1


class TestSessions:
    @pytest.mark.asyncio
    async def test_unsupported_type(self, handler):
        with pytest.raises(UnsupportedPatternType):
            await start(handler, patternType="spatial")

    @pytest.mark.asyncio
    async def test_generate_and_submit(self, handler):
        session_id = await start(handler, difficulty=4)
        generated = await handler.dispatch({"method": "generate", "params": {"sessionId": session_id}})
        config = generated["config"]
        assert len(config["hints"]) == 4
        assert config["maskedPositions"]

        answer = config["validSolutions"][0]["elements"]
        result = await handler.dispatch({
            "method": "submit",
            "params": {"sessionId": session_id, "elements": answer, "timeSpent": 9},
        })
        assert result["result"]["isValid"] is True
        assert result["attempt"]["timeSpent"] == 9
        assert result["previousDifficulty"] == 4
        assert result["difficulty"] == 4.5
        assert result["progress"]["totalAttempts"] == 1

        assert handler._notifications[-1].method == "progressUpdated"
        assert handler._notifications[-1].params["sessionId"] == session_id

    @pytest.mark.asyncio
    async def test_validate_does_not_record(self, handler):
        session_id = await start(handler)
        await handler.dispatch({"method": "generate", "params": {"sessionId": session_id}})
        result = await handler.dispatch({
            "method": "validate",
            "params": {"sessionId": session_id, "elements": []},
        })
        assert result["result"]["confidence"] == 0.0
        progress = await handler.dispatch({"method": "getProgress", "params": {"sessionId": session_id}})
        assert progress["progress"]["totalAttempts"] == 0

    @pytest.mark.asyncio
    async def test_resume_from_host_progress(self, handler):
        stored = {
            "userId": "user-3",
            "patternType": "visual-sequence",
            "currentDifficulty": 7.5,
            "totalAttempts": 12,
            "successfulAttempts": 9,
            "averageTimeToSolve": 14.0,
            "preferredStrategies": [],
            "lastPlayed": "2024-05-01T08:00:00",
            "masteryLevel": 0.6,
        }
        result = await handler.dispatch({
            "method": "startSession",
            "params": {"patternType": "visual-sequence", "progress": stored},
        })
        assert result["progress"]["currentDifficulty"] == 7.5
        assert result["progress"]["totalAttempts"] == 12

    @pytest.mark.asyncio
    async def test_hint_counts(self, handler):
        session_id = await start(handler)
        await handler.dispatch({"method": "generate", "params": {"sessionId": session_id}})
        await handler.dispatch({"method": "getHint", "params": {"sessionId": session_id}})
        result = await handler.dispatch({"method": "getHint", "params": {"sessionId": session_id}})
        assert result["hintsUsed"] == 2
        assert isinstance(result["hint"], str)

    @pytest.mark.asyncio
    async def test_adapt_difficulty_preview(self, handler):
        session_id = await start(handler, difficulty=5)
        attempts = [
            {"id": str(i), "isCorrect": True, "confidence": 1.0, "timeSpent": 12}
            for i in range(5)
        ]
        result = await handler.dispatch({
            "method": "adaptDifficulty",
            "params": {"sessionId": session_id, "attempts": attempts},
        })
        assert result["difficulty"] == 5.5
        progress = await handler.dispatch({"method": "getProgress", "params": {"sessionId": session_id}})
        assert progress["progress"]["currentDifficulty"] == 5

    @pytest.mark.asyncio
    async def test_metrics(self, handler):
        session_id = await start(handler)
        await handler.dispatch({"method": "generate", "params": {"sessionId": session_id}})
        result = await handler.dispatch({"method": "getMetrics", "params": {"sessionId": session_id}})
        assert set(result["metrics"]) == {
            "complexity", "cognitiveLoad", "timeToSolve", "errorRate", "frustrationLevel",
        }

    @pytest.mark.asyncio
    async def test_end_session(self, handler):
        session_id = await start(handler)
        result = await handler.dispatch({"method": "endSession", "params": {"sessionId": session_id}})
        assert result["ok"] is True
        with pytest.raises(ValueError, match="Unknown session"):
            await handler.dispatch({"method": "getProgress", "params": {"sessionId": session_id}})

    @pytest.mark.asyncio
    async def test_new_user_starts_at_default_progress_difficulty(self, handler):
        default = await handler.dispatch({
            "method": "getDefaultProgress",
            "params": {"userId": "user-4", "patternType": "visual-sequence"},
        })
        from_record = await handler.dispatch({
            "method": "startSession",
            "params": {"patternType": "visual-sequence", "progress": default["progress"]},
        })
        fresh = await handler.dispatch({
            "method": "startSession",
            "params": {"userId": "user-4", "patternType": "visual-sequence"},
        })
        assert default["progress"]["currentDifficulty"] == 1
        assert from_record["progress"]["currentDifficulty"] == 1
        assert fresh["progress"]["currentDifficulty"] == 1

    @pytest.mark.asyncio
    async def test_oldest_session_dropped_at_limit(self, handler):
        handler.max_sessions = 2
        first = await start(handler)
        second = await start(handler)
        third = await start(handler)
        assert set(handler._sessions) == {second, third}
        with pytest.raises(ValueError, match="Unknown session"):
            await handler.dispatch({"method": "getProgress", "params": {"sessionId": first}})
