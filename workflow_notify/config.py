import json
import os
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv

from .errors import ConfigError

if not os.getenv("GITHUB_ACTIONS"):
    load_dotenv(override=False)

PHASES = ("start", "finish")
GITHUB_API = "https://api.github.com"

def get_input(environ: Mapping[str, str], name: str) -> str:
    # same mangling the runner applies to `with:` inputs
    key = "INPUT_" + name.replace(" ", "_").upper()
    return (environ.get(key) or "").strip()

def _read_event(path: str) -> Dict[str, Any]:
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as fp:
            data = json.load(fp)
    except (OSError, ValueError) as e:
        raise ConfigError(f"could not read event payload at {path}: {e}") from e
    return data if isinstance(data, dict) else {}

def _to_int(value: Optional[str]) -> Optional[int]:
    try:
        return int(value) if value else None
    except ValueError:
        return None

class Settings:
    def __init__(self, environ: Mapping[str, str]):
        self.GITHUB_TOKEN = get_input(environ, "github-token")
        self.WEBHOOK_URI = get_input(environ, "webhook-uri")
        self.PHASE = (get_input(environ, "type") or get_input(environ, "position")).lower()
        self.STATUS = get_input(environ, "status").lower()
        self.EMAIL = get_input(environ, "email")
        self.NAME = get_input(environ, "name")
        self.MESSAGE = get_input(environ, "message")
        self.ENV = get_input(environ, "env")
        self.PUBLISH_URL = get_input(environ, "publish-url")
        self.TIMEOUT_SECONDS = get_input(environ, "timeout-seconds") or "15"

        self.API_URL = environ.get("GITHUB_API_URL") or GITHUB_API
        self.REPOSITORY = environ.get("GITHUB_REPOSITORY", "")
        self.RUN_ID = _to_int(environ.get("GITHUB_RUN_ID"))
        self.RUN_NUMBER = _to_int(environ.get("GITHUB_RUN_NUMBER"))
        self.WORKFLOW = environ.get("GITHUB_WORKFLOW")
        self.EVENT_NAME = environ.get("GITHUB_EVENT_NAME")
        self.REF = environ.get("GITHUB_REF")
        self.ACTOR = environ.get("GITHUB_ACTOR")
        self.JOB = environ.get("GITHUB_JOB")
        self.EVENT_PATH = environ.get("GITHUB_EVENT_PATH", "")

    @property
    def owner(self) -> str:
        return self.REPOSITORY.split("/", 1)[0]

    @property
    def repo(self) -> str:
        return self.REPOSITORY.split("/", 1)[1]

    def validate(self) -> "Settings":
        if not self.GITHUB_TOKEN:
            raise ConfigError("Input required and not supplied: github-token")
        if not self.WEBHOOK_URI:
            raise ConfigError("Input required and not supplied: webhook-uri")
        if self.PHASE not in PHASES:
            raise ConfigError("'type' input must be 'start' or 'finish'")
        if self.PHASE == "finish" and not self.STATUS:
            raise ConfigError("Input required and not supplied: status")
        owner, _, repo = self.REPOSITORY.partition("/")
        if not owner or not repo:
            raise ConfigError("GITHUB_REPOSITORY must be set as 'owner/repo'")
        if self.RUN_ID is None:
            raise ConfigError("GITHUB_RUN_ID must be set to a numeric run id")
        try:
            self.TIMEOUT_SECONDS = float(self.TIMEOUT_SECONDS)
        except ValueError as e:
            raise ConfigError(f"timeout-seconds must be a number, got {self.TIMEOUT_SECONDS!r}") from e
        return self

    def event_payload(self) -> Dict[str, Any]:
        return _read_event(self.EVENT_PATH)

def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    return Settings(os.environ if environ is None else environ).validate()
