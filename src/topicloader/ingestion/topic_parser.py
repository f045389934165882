"""
Topic document decoder.

Turns the JSON export of one discussion topic into a Topic. The exporter
writes Go zero values for absent data, so ``0`` reply references and a poll
with id ``0`` are treated as missing.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..models.errors import DecodeError
from ..models.topic_models import Comment, Poll, PollAnswer, Profile, Topic

logger = logging.getLogger(__name__)


class TopicParser:
    """
    Decoder for exported topics.

    Features:
    - Strict typing of identities and timestamps
    - Participant map keyed by string or integer ids, or given as a list
    - Opaque attachment tokens (non-string attachments are kept as canonical JSON)
    - Tolerates creator or updater absent from the participant map
    """

    def parse(self, raw: bytes, ref: Optional[Path] = None) -> Topic:
        """
        Decode raw document content.

        Args:
            raw: Document bytes (UTF-8 JSON)
            ref: Document reference, for error reporting

        Returns:
            The decoded topic

        Raises:
            DecodeError: If the content is not a valid topic export
        """
        try:
            content = json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise DecodeError(
                f"could not decode the file {ref}: {e}", ref=ref, original_error=e
            ) from e

        try:
            return self._build_topic(content)
        except DecodeError as e:
            e.ref = ref
            raise
        except (TypeError, ValueError) as e:
            raise DecodeError(
                f"could not decode the file {ref}: {e}", ref=ref, original_error=e
            ) from e

    def _build_topic(self, content: Any) -> Topic:
        data = _require_object(content, "topic")

        topic_id = _int(data, "id", "topic")
        context = f"topic {topic_id}"

        try:
            return Topic(
                id=topic_id,
                title=_str(data, "title", context),
                is_closed=_bool(data, "is_closed", context),
                is_fixed=_bool(data, "is_fixed", context),
                created_at=_int(data, "created_at", context, default=0),
                updated_at=_int(data, "updated_at", context),
                created_by=self._build_profile(
                    _require_object(data.get("created_by"), f"{context} created_by")
                ),
                updated_by=self._build_profile(
                    _require_object(data.get("updated_by"), f"{context} updated_by")
                ),
                profiles=self._build_profiles(data.get("profiles"), context),
                comments=[
                    self._build_comment(item, context)
                    for item in _list(data, "comments", context)
                ],
                poll=self._build_poll(data.get("poll"), context),
            )
        except DecodeError as e:
            e.topic_id = topic_id
            raise

    def _build_profile(self, data: Dict[str, Any]) -> Profile:
        profile_id = _int(data, "id", "profile")
        context = f"profile {profile_id}"
        return Profile(
            id=profile_id,
            first_name=_str(data, "first_name", context),
            last_name=_str(data, "last_name", context),
            screen_name=_str(data, "screen_name", context),
            photo=_str(data, "photo", context),
        )

    def _build_profiles(self, value: Any, context: str) -> Dict[int, Profile]:
        if value is None:
            return {}

        if isinstance(value, list):
            items = value
        elif isinstance(value, dict):
            items = list(value.values())
        else:
            raise DecodeError(f"{context}: profiles must be an object or a list")

        profiles = {}
        for item in items:
            profile = self._build_profile(_require_object(item, f"{context} profile"))
            profiles[profile.id] = profile
        return profiles

    def _build_comment(self, value: Any, context: str) -> Comment:
        data = _require_object(value, f"{context} comment")
        comment_id = _int(data, "id", f"{context} comment")
        comment_context = f"{context} comment {comment_id}"

        return Comment(
            id=comment_id,
            from_id=_int(data, "from_id", comment_context),
            date=_int(data, "date", comment_context, default=0),
            text=_str(data, "text", comment_context),
            likes=_int(data, "likes", comment_context, default=0),
            reply_to_uid=_optional_ref(data, "reply_to_uid", comment_context),
            reply_to_cid=_optional_ref(data, "reply_to_cid", comment_context),
            attachments=_attachments(data, comment_context),
        )

    def _build_poll(self, value: Any, context: str) -> Optional[Poll]:
        if value is None:
            return None

        data = _require_object(value, f"{context} poll")
        poll_id = _int(data, "id", f"{context} poll", default=0)
        if poll_id == 0:
            return None

        poll_context = f"{context} poll {poll_id}"
        return Poll(
            id=poll_id,
            question=_str(data, "question", poll_context),
            votes=_int(data, "votes", poll_context, default=0),
            multiple=_bool(data, "multiple", poll_context),
            end_date=_int(data, "end_date", poll_context, default=0),
            closed=_bool(data, "closed", poll_context),
            answers=[
                self._build_answer(item, poll_context)
                for item in _list(data, "answers", poll_context)
            ],
        )

    def _build_answer(self, value: Any, context: str) -> PollAnswer:
        data = _require_object(value, f"{context} answer")
        answer_id = _int(data, "id", f"{context} answer")
        answer_context = f"{context} answer {answer_id}"
        return PollAnswer(
            id=answer_id,
            text=_str(data, "text", answer_context),
            votes=_int(data, "votes", answer_context, default=0),
            rate=_float(data, "rate", answer_context),
        )


_MISSING = object()

# Identities and timestamps are stored as signed 64-bit integers
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


def _require_object(value: Any, context: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise DecodeError(f"{context} must be a JSON object")
    return value


def _int(data: Dict[str, Any], key: str, context: str, default: Any = _MISSING) -> int:
    value = data.get(key)
    if value is None:
        if default is _MISSING:
            raise DecodeError(f"{context}: missing required field '{key}'")
        return default

    # bool is an int subclass, but never a valid identity or timestamp
    if isinstance(value, bool) or not isinstance(value, int):
        if not (isinstance(value, float) and value.is_integer()):
            raise DecodeError(f"{context}: field '{key}' must be an integer, got {value!r}")
        value = int(value)

    if not INT64_MIN <= value <= INT64_MAX:
        raise DecodeError(f"{context}: field '{key}' is out of the 64-bit range, got {value}")
    return value


def _optional_ref(data: Dict[str, Any], key: str, context: str) -> Optional[int]:
    value = _int(data, key, context, default=None)
    return value or None


def _str(data: Dict[str, Any], key: str, context: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise DecodeError(f"{context}: field '{key}' must be a string")
    return value


def _bool(data: Dict[str, Any], key: str, context: str) -> bool:
    value = data.get(key)
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    raise DecodeError(f"{context}: field '{key}' must be a boolean")


def _float(data: Dict[str, Any], key: str, context: str) -> float:
    value = data.get(key)
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DecodeError(f"{context}: field '{key}' must be a number")
    return float(value)


def _list(data: Dict[str, Any], key: str, context: str) -> List[Any]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise DecodeError(f"{context}: field '{key}' must be a list")
    return value


def _attachments(data: Dict[str, Any], context: str) -> List[str]:
    tokens = []
    for item in _list(data, "attachments", context):
        if isinstance(item, str):
            tokens.append(item)
        else:
            tokens.append(json.dumps(item, sort_keys=True, ensure_ascii=False))
    return tokens
