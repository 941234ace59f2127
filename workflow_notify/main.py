import asyncio
import sys
from typing import Any, Callable, Dict, Mapping, Optional

from .config import Settings, load_settings
from .errors import NotifyError
from .github import GitHubClient
from .services.composer import compose
from .services.run_context import RunContextResolver
from .types.run import ComposerOptions, NotifyMeta, ResolvedStatus, RunContext, RunIds
from .webhook import send_card

# status input values that map onto a resolved status
STATUS_INPUTS = {
    "success": ResolvedStatus.SUCCEEDED,
    "cancelled": ResolvedStatus.CANCELLED,
}

def escape_command_data(message: str) -> str:
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")

def set_failed(message: str) -> None:
    print(f"::error::{escape_command_data(message)}")

def base_context(settings: Settings, event: Dict[str, Any]) -> RunContext:
    repository = event.get("repository") or {}
    pull_request = event.get("pull_request") or {}
    return RunContext(
        owner_repo=settings.REPOSITORY,
        run_id=settings.RUN_ID,
        run_number=settings.RUN_NUMBER,
        workflow_name=settings.WORKFLOW,
        event_name=settings.EVENT_NAME,
        ref=settings.REF,
        actor=settings.ACTOR,
        repository_url=repository.get("html_url"),
        repository_full_name=repository.get("full_name"),
        pull_request_url=pull_request.get("html_url"),
    )

def notify_meta(settings: Settings) -> NotifyMeta:
    return NotifyMeta(
        name=settings.NAME,
        email=settings.EMAIL,
        message=settings.MESSAGE,
        env=settings.ENV,
        publish_url=settings.PUBLISH_URL,
    )

async def notify(
    settings: Settings,
    gh,
    sender: Callable = send_card,
    options: Optional[ComposerOptions] = None,
):
    event = settings.event_payload()
    resolver = RunContextResolver(gh, base_context(settings, event))
    ids = RunIds(settings.owner, settings.repo, settings.RUN_ID, settings.JOB)

    if settings.PHASE == "start":
        ctx = await resolver.resolve(ids)
        payload = compose("start", ctx, None, notify_meta(settings), options)
    else:
        ctx, status = await resolver.resolve_with_steps(ids)
        expected = STATUS_INPUTS.get(settings.STATUS, ResolvedStatus.FAILED)
        if expected is not status:
            print(
                f"[notify] warning: status input {settings.STATUS!r} disagrees with "
                f"job steps ({status.label}); using job steps"
            )
        payload = compose("finish", ctx, status, notify_meta(settings), options)

    print(f"[notify] sending {settings.PHASE} card: {payload.summary}")
    await sender(settings.WEBHOOK_URI, payload, timeout=settings.TIMEOUT_SECONDS)
    return payload

async def run(
    environ: Optional[Mapping[str, str]] = None,
    client_factory: Optional[Callable[[Settings], Any]] = None,
    sender: Callable = send_card,
) -> int:
    try:
        settings = load_settings(environ)
    except NotifyError as e:
        set_failed(str(e))
        return 1

    if client_factory is None:
        def client_factory(s: Settings):
            return GitHubClient(s.GITHUB_TOKEN, base_url=s.API_URL, timeout=s.TIMEOUT_SECONDS)

    gh = client_factory(settings)
    try:
        await notify(settings, gh, sender)
    except NotifyError as e:
        set_failed(str(e))
        return 1
    except Exception as e:
        set_failed(f"{type(e).__name__}: {e}")
        return 1
    finally:
        close = getattr(gh, "close", None)
        if close is not None:
            await close()
    return 0

def main() -> None:
    sys.exit(asyncio.run(run()))

if __name__ == "__main__":
    main()
