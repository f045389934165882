"""
Topic document model.

In-memory shape of an exported discussion topic and the entities nested
inside it. Identities are assigned by the exporting system, never here.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class Profile:
    """A participant of a topic."""

    id: int
    first_name: str = ""
    last_name: str = ""
    screen_name: str = ""
    photo: str = ""


@dataclass
class Comment:
    """A single comment of a topic."""

    id: int
    from_id: int
    date: int
    text: str = ""
    likes: int = 0
    reply_to_uid: Optional[int] = None
    reply_to_cid: Optional[int] = None
    attachments: List[str] = field(default_factory=list)


@dataclass
class PollAnswer:
    id: int
    text: str
    votes: int = 0
    rate: float = 0.0


@dataclass
class Poll:
    """Poll attached to a topic."""

    id: int
    question: str
    votes: int = 0
    multiple: bool = False
    end_date: int = 0
    closed: bool = False
    answers: List[PollAnswer] = field(default_factory=list)


@dataclass
class Topic:
    """
    A discussion topic with everything mentioned in it.

    ``profiles`` maps profile id to every participant the exporter listed.
    The creator and updater are not guaranteed to be part of that mapping.
    """

    id: int
    title: str
    is_closed: bool
    is_fixed: bool
    created_at: int
    updated_at: int
    created_by: Profile
    updated_by: Profile
    profiles: Dict[int, Profile] = field(default_factory=dict)
    comments: List[Comment] = field(default_factory=list)
    poll: Optional[Poll] = None


@dataclass(frozen=True)
class TopicVersion:
    """Identity and version marker of a persisted topic."""

    id: int
    updated_at: int
