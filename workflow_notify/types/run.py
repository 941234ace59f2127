from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

MESSAGE_CARD_TYPE = "MessageCard"
MESSAGE_CARD_CONTEXT = "http://schema.org/extensions"

class ResolvedStatus(Enum):
    STARTED = "started"
    SUCCEEDED = "succeeded"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def label(self) -> str:
        return self.name

@dataclass(frozen=True)
class RunIds:
    owner: str
    repo: str
    run_id: int
    job_name: Optional[str] = None

    @property
    def owner_repo(self) -> str:
        return f"{self.owner}/{self.repo}"

@dataclass(frozen=True)
class RunContext:
    owner_repo: str
    run_id: int
    run_number: Optional[int]
    workflow_name: Optional[str]
    event_name: Optional[str]
    ref: Optional[str]
    actor: Optional[str]
    repository_url: Optional[str] = None
    repository_full_name: Optional[str] = None
    pull_request_url: Optional[str] = None
    run_url: Optional[str] = None

@dataclass(frozen=True)
class JobStep:
    name: str
    status: str
    conclusion: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "JobStep":
        return cls(
            name=str(data.get("name") or ""),
            status=str(data.get("status") or ""),
            conclusion=data.get("conclusion"),
        )

@dataclass(frozen=True)
class Job:
    name: str
    steps: Tuple[JobStep, ...] = ()

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Job":
        steps = data.get("steps") or []
        return cls(
            name=str(data.get("name") or ""),
            steps=tuple(JobStep.from_api(s) for s in steps if isinstance(s, dict)),
        )

@dataclass(frozen=True)
class Fact:
    name: str
    value: str

@dataclass(frozen=True)
class NotificationPayload:
    theme_color: str
    summary: str
    activity_title: str
    activity_subtitle: str
    facts: Tuple[Fact, ...]
    markdown: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "@type": MESSAGE_CARD_TYPE,
            "@context": MESSAGE_CARD_CONTEXT,
            "themeColor": self.theme_color,
            "summary": self.summary,
            "sections": [
                {
                    "activityTitle": self.activity_title,
                    "activitySubtitle": self.activity_subtitle,
                    "facts": [{"name": f.name, "value": f.value} for f in self.facts],
                    "markdown": self.markdown,
                }
            ],
        }

@dataclass(frozen=True)
class ColorScheme:
    started: str = "888ABD"
    success: str = "90C978"
    cancelled: str = "FFF175"
    failure: str = "C23B23"

@dataclass(frozen=True)
class ComposerOptions:
    include_env_fact: bool = True
    include_publish_url_on_success: bool = True
    colors: ColorScheme = field(default_factory=ColorScheme)

@dataclass(frozen=True)
class NotifyMeta:
    name: str = ""
    email: str = ""
    message: str = ""
    env: str = ""
    publish_url: str = ""
